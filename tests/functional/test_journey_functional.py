"""End-to-end journeys through the HTTP surface.

Walks the example pets form from the start page to the confirmation page
through the live routes and checks redirects, validation responses, the
repeat list flow and the delivered submission.
"""

from __future__ import annotations

import json
import pathlib
import re

from fastapi.testclient import TestClient

from forms_engine.config import AppConfig
from forms_engine.logic.events import FORM_SUBMITTED, SESSION_SAVED_AND_EXITED, get_buffered_events, subscribe
from forms_engine.main import create_app

ITEM_URL = re.compile(r"^/register-pets/pets/[0-9a-f-]{36}$")


def _view(response) -> dict:
    body = response.json()
    assert set(body) == {"view", "model"}
    return body


def test_start_redirects_to_first_page(client: TestClient) -> None:
    response = client.get("/register-pets")
    assert response.status_code == 302
    assert response.headers["location"] == "/register-pets/your-details"


def test_session_cookie_is_issued(client: TestClient) -> None:
    response = client.get("/register-pets/your-details")
    assert response.status_code == 200
    assert "forms_session=" in response.headers["set-cookie"]
    assert "HttpOnly" in response.headers["set-cookie"]


def test_first_page_renders_view_model(client: TestClient) -> None:
    body = _view(client.get("/register-pets/your-details"))
    assert body["view"] == "index"
    assert body["model"]["pageTitle"] == "Your details"
    assert [c["model"]["name"] for c in body["model"]["components"]] == ["fullName", "email"]


def test_skipping_ahead_redirects_to_the_relevant_page(client: TestClient) -> None:
    response = client.get("/register-pets/summary")
    assert response.status_code == 303
    assert response.headers["location"] == "/register-pets/your-details"


def test_invalid_post_returns_errors(client: TestClient) -> None:
    response = client.post("/register-pets/your-details", data={"fullName": "", "email": "nope"})
    assert response.status_code == 400
    body = _view(response)
    assert {e["name"] for e in body["model"]["errors"]} == {"fullName", "email"}


def test_unknown_page_is_problem_json(client: TestClient) -> None:
    response = client.get("/register-pets/not-a-page")
    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")


def test_unknown_form_is_problem_json(client: TestClient) -> None:
    response = client.get("/no-such-form")
    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["status"] == 404


def test_full_journey_submits_and_confirms(client: TestClient) -> None:
    response = client.post(
        "/register-pets/your-details", data={"fullName": "Ada Lovelace", "email": "ada@example.com"}
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/register-pets/has-pets"

    body = _view(client.get("/register-pets/has-pets"))
    assert body["model"]["pageTitle"] == "Do you have any pets, Ada Lovelace?"

    response = client.post("/register-pets/has-pets", data={"hasPets": "true"})
    assert response.headers["location"] == "/register-pets/pets"

    response = client.get("/register-pets/pets")
    assert response.status_code == 303
    item_url = response.headers["location"]
    assert ITEM_URL.match(item_url)

    body = _view(client.get(item_url))
    assert body["model"]["pageTitle"] == "Pet 1"

    response = client.post(item_url, data={"petName": "Rex", "petType": "dog"})
    assert response.headers["location"] == "/register-pets/pets/summary"

    body = _view(client.get("/register-pets/pets/summary"))
    assert body["view"] == "repeaters/summary"
    assert body["model"]["pageTitle"] == "You have added 1 pet"

    response = client.post("/register-pets/pets/summary", data={"action": "continue"})
    assert response.headers["location"] == "/register-pets/summary"

    body = _view(client.get("/register-pets/summary"))
    assert body["view"] == "summary"
    assert body["model"]["referenceNumber"].startswith("PET-")

    response = client.post("/register-pets/summary", data={})
    assert response.status_code == 303
    assert response.headers["location"] == "/register-pets/status"

    body = _view(client.get("/register-pets/status"))
    assert body["view"] == "confirmation"

    outbox = client.app.state.services.output_service.sender.outbox
    assert len(outbox) == 1
    assert outbox[0].subject == "Register your pets"
    assert outbox[0].email_address == "pets-team@example.com"
    assert "Rex" in outbox[0].body


def test_answering_no_skips_the_pets_page(client: TestClient) -> None:
    client.post("/register-pets/your-details", data={"fullName": "Ada", "email": "ada@example.com"})
    response = client.post("/register-pets/has-pets", data={"hasPets": "false"})
    assert response.headers["location"] == "/register-pets/summary"


def test_status_without_submission_redirects_to_start(client: TestClient) -> None:
    response = client.get("/register-pets/status")
    assert response.status_code == 303
    assert response.headers["location"] == "/register-pets/your-details"


def test_preview_routes_use_preview_base_path(client: TestClient) -> None:
    response = client.get("/preview/draft/register-pets")
    assert response.status_code == 302
    assert response.headers["location"] == "/preview/draft/register-pets/your-details"


def test_unknown_preview_state_is_not_found(client: TestClient) -> None:
    assert client.get("/preview/bogus/register-pets").status_code == 404


def test_yaml_definition_loads(client: TestClient) -> None:
    response = client.get("/feedback")
    assert response.status_code == 302
    assert response.headers["location"] == "/feedback/rating"


def test_exit_page(client: TestClient) -> None:
    body = _view(client.get("/register-pets/exit"))
    assert body["view"] == "exit"
    assert body["model"]["pageTitle"] == "Your progress has been saved"


def test_health_reports_loaded_models(client: TestClient) -> None:
    client.get("/register-pets")
    assert client.get("/health").json() == {"status": "ok", "forms_loaded": 1}


def test_submission_publishes_event(client: TestClient) -> None:
    get_buffered_events()
    client.post("/register-pets/your-details", data={"fullName": "Ada", "email": "ada@example.com"})
    client.post("/register-pets/has-pets", data={"hasPets": "false"})
    response = client.post("/register-pets/summary", data={"action": "send"})
    assert response.headers["location"] == "/register-pets/status"

    events = [e for e in get_buffered_events() if e["type"] == FORM_SUBMITTED]
    assert len(events) == 1
    assert events[0]["payload"]["form"] == "Register your pets"
    assert events[0]["payload"]["reference"].startswith("PET-")


def test_save_and_exit_hands_state_to_persister(app_config: AppConfig) -> None:
    saved = []

    def persist(state, request) -> None:
        saved.append((dict(state), request.slug))

    app = create_app(app_config, session_persister=persist)
    with TestClient(app, follow_redirects=False) as client:
        client.post("/register-pets/your-details", data={"fullName": "Ada", "email": "ada@example.com"})
        response = client.post("/register-pets/has-pets", data={"action": "save-and-exit"})

    assert response.status_code == 303
    assert response.headers["location"] == "/register-pets/exit"
    assert saved[0][0]["fullName"] == "Ada"
    assert saved[0][1] == "register-pets"


def test_save_and_exit_without_persister_is_a_server_error(client: TestClient) -> None:
    response = client.post("/register-pets/your-details", data={"action": "save-and-exit"})
    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/problem+json")


def test_event_listeners_receive_saved_sessions(app_config: AppConfig) -> None:
    received = []
    unsubscribe = subscribe(lambda event_type, payload: received.append(event_type))
    try:
        app = create_app(app_config, session_persister=lambda state, request: None)
        with TestClient(app, follow_redirects=False) as client:
            client.post("/register-pets/your-details", data={"action": "save-and-exit"})
    finally:
        unsubscribe()
    assert received == [SESSION_SAVED_AND_EXITED]


ANIMALS = {
    "name": "Animals",
    "outputEmail": "animals@example.com",
    "pages": [
        {
            "path": "/likes",
            "title": "Likes",
            "components": [{"id": "likes-id", "type": "YesNoField", "name": "likesCats", "title": "Likes cats?"}],
        },
        {
            "path": "/pick",
            "title": "Pick",
            "components": [{"id": "pet-id", "type": "RadiosField", "name": "pet", "title": "Pet", "list": "animals"}],
        },
        {"path": "/summary", "title": "Summary", "controller": "SummaryPageController"},
    ],
    "lists": [
        {
            "id": "animals-id",
            "name": "animals",
            "title": "Animals",
            "items": [
                {"text": "Dog", "value": "dog"},
                {"text": "Cat", "value": "cat", "condition": "likes-cats"},
            ],
        }
    ],
    "conditions": [
        {
            "id": "likes-cats",
            "items": [
                {"id": "c1", "componentId": "likes-id", "operator": "is", "type": "BooleanValue", "value": True}
            ],
        }
    ],
}


def test_changed_answer_explains_dropped_option(forms_dir: pathlib.Path, client: TestClient) -> None:
    (forms_dir / "animals.json").write_text(json.dumps(ANIMALS), encoding="utf-8")

    assert client.post("/animals/likes", data={"likesCats": "true"}).headers["location"] == "/animals/pick"
    assert client.post("/animals/pick", data={"pet": "cat"}).headers["location"] == "/animals/summary"
    client.post("/animals/likes", data={"likesCats": "false"})

    body = _view(client.get("/animals/pick"))
    errors = body["model"]["errors"]
    assert [e["text"] for e in errors] == ["Options are different because you changed a previous answer"]
    assert errors[0]["name"] == "pet"
    pet = body["model"]["components"][0]["model"]
    assert [item["value"] for item in pet["items"]] == ["dog"]
