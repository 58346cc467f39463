"""Functional test bootstrap for the forms engine.

Copies the example definitions under ``forms/`` into a per-test directory and
builds the FastAPI app against it with the in-memory cache backend, so every
test starts with empty session state and a fresh form model registry.
"""

from __future__ import annotations

import json
import pathlib
import shutil
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from forms_engine.config import AppConfig
from forms_engine.logic.form_model import FormModel
from forms_engine.main import create_app

ROOT = pathlib.Path(__file__).resolve().parents[2]
EXAMPLE_FORMS = ROOT / "forms"


def load_example(name: str) -> Dict[str, Any]:
    with open(EXAMPLE_FORMS / name, "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture()
def pets_definition() -> Dict[str, Any]:
    return load_example("register-pets.json")


@pytest.fixture()
def pets_model(pets_definition: Dict[str, Any]) -> FormModel:
    return FormModel(pets_definition, base_path="register-pets")


@pytest.fixture()
def forms_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    target = tmp_path / "forms"
    shutil.copytree(EXAMPLE_FORMS, target)
    return target


@pytest.fixture()
def app_config(forms_dir: pathlib.Path) -> AppConfig:
    return AppConfig(forms_dir=str(forms_dir), cache_backend="memory", designer_url="http://designer.test")


@pytest.fixture()
def app(app_config: AppConfig):
    return create_app(app_config)


@pytest.fixture()
def client(app) -> TestClient:
    with TestClient(app, follow_redirects=False) as c:
        yield c
