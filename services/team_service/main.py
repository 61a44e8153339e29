from fastapi import FastAPI

from shared.exception_handler import setup_exception_handlers
from shared.observability import setup_observability

from .models import BakerApplication, BakerTeam  # noqa: F401 (registers models with Base)
from .router import public_router, router

team_app = FastAPI(title="Baker Team Service", version="1.0.0")

setup_observability(team_app, "team_service")
setup_exception_handlers(team_app)

team_app.include_router(public_router)
team_app.include_router(router)
