"""Application factory for the forms engine.

Wires configuration, logging, the engine's collaborators and the form model
registry onto a FastAPI app, then registers problem+json handlers, the session
cookie middleware and the routers.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from forms_engine.config import AppConfig, load_config
from forms_engine.errors import ConfigurationError, FormsEngineError
from forms_engine.http.problem import (
    handle_engine_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from forms_engine.http.session import SessionMiddleware
from forms_engine.logging_setup import configure_logging
from forms_engine.routes import api_router
from forms_engine.services import EngineServices, SessionPersister
from forms_engine.services.cache_service import CacheService, KeyGenerator, SessionHydrator, create_backend
from forms_engine.services.forms_service import HttpFormsService, LocalFormsService
from forms_engine.services.output_service import OutputService
from forms_engine.services.registry import FormModelRegistry
from forms_engine.services.submission_service import LocalSubmissionService
from forms_engine.services.upload_service import HttpUploadService, InMemoryUploadService

logger = logging.getLogger(__name__)


def build_services(
    config: AppConfig,
    session_persister: Optional[SessionPersister] = None,
    key_generator: Optional[KeyGenerator] = None,
    session_hydrator: Optional[SessionHydrator] = None,
) -> EngineServices:
    """Default collaborators for ``config``."""
    if config.forms_api_url:
        forms_service = HttpFormsService(config.forms_api_url)
    elif Path(config.forms_dir).is_dir():
        forms_service = LocalFormsService(config.forms_dir, notification_email=config.submission_email)
    else:
        raise ConfigurationError(f"No forms source: set forms_api_url or create forms_dir '{config.forms_dir}'")

    if config.upload_api_url:
        upload_service = HttpUploadService(config.upload_api_url)
    else:
        upload_service = InMemoryUploadService()

    return EngineServices(
        config=config,
        cache_service=CacheService(
            create_backend(config),
            config=config,
            key_generator=key_generator,
            session_hydrator=session_hydrator,
        ),
        forms_service=forms_service,
        output_service=OutputService(),
        submission_service=LocalSubmissionService(),
        upload_service=upload_service,
        session_persister=session_persister,
    )


def create_app(
    config: Optional[AppConfig] = None,
    services: Optional[EngineServices] = None,
    controllers: Optional[Mapping[str, type]] = None,
    session_persister: Optional[SessionPersister] = None,
) -> FastAPI:
    config = config or (services.config if services else load_config())
    configure_logging(config.log_level)
    services = services or build_services(config, session_persister=session_persister)

    app = FastAPI(title=config.service_name)
    app.state.config = config
    app.state.services = services
    app.state.registry = FormModelRegistry(services, controllers=controllers)

    app.add_exception_handler(FormsEngineError, handle_engine_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.add_middleware(
        SessionMiddleware,
        cookie_name=config.session_cookie_name,
        max_age=config.session_timeout // 1000,
    )
    app.include_router(api_router)

    logger.info(
        "app_created service=%s cache_backend=%s forms_source=%s",
        config.service_name,
        config.cache_backend,
        config.forms_api_url or config.forms_dir,
    )
    return app


def serve(host: str = "127.0.0.1", port: int = 8000) -> None:
    """Run the service with uvicorn, building the app from the loaded config."""
    uvicorn.run("forms_engine.main:create_app", factory=True, host=host, port=port, log_config=None)


__all__ = ["build_services", "create_app", "serve"]
