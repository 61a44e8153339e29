from fastapi import FastAPI

from shared.exception_handler import setup_exception_handlers
from shared.observability import setup_observability

from .router import public_router, router

assignment_app = FastAPI(title="Order Assignment Service", version="1.0.0")

setup_observability(assignment_app, "assignment_service")
setup_exception_handlers(assignment_app)

assignment_app.include_router(public_router)
assignment_app.include_router(router)
