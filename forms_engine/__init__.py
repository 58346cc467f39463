"""Forms engine package.

Turns declarative form definitions into multi-page journeys served over
FastAPI. Business logic lives in `forms_engine/logic/`, collaborators in
`forms_engine/services/` and route handlers in `forms_engine/routes/`. The
application factory is `forms_engine.main.create_app`.
"""

__version__ = "0.1.0"
