from fastapi import FastAPI

from shared.exception_handler import setup_exception_handlers
from shared.observability import setup_observability

from .models import Order  # noqa: F401 (registers model with Base)
from .router import public_router, router

order_app = FastAPI(title="Order Service", version="1.0.0")

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(order_app, "order_service")
setup_exception_handlers(order_app)

order_app.include_router(public_router)
order_app.include_router(router)
