from fastapi import FastAPI

from shared.exception_handler import setup_exception_handlers
from shared.observability import setup_observability

from .models import ChatParticipant  # noqa: F401 (registers model with Base)
from .router import internal_router, public_router, router

chat_app = FastAPI(title="Chat Participant Service", version="1.0.0")

setup_observability(chat_app, "chat_service")
setup_exception_handlers(chat_app)

chat_app.include_router(public_router)
chat_app.include_router(internal_router)
chat_app.include_router(router)
