from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.exception_handler import setup_exception_handlers
from shared.observability import setup_observability
from shared.security import limiter

from .models import BakerEarning, PaymentDistribution  # noqa: F401 (registers models with Base)
from .router import router, public_router

payment_app = FastAPI(title="Payment Distribution Service", version="2.0.0")

# Structured logs, OTLP traces and /metrics
setup_observability(payment_app, "payment_service")
setup_exception_handlers(payment_app)

# --- SECURITY SETUP ---
payment_app.state.limiter = limiter
payment_app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

payment_app.include_router(public_router)
payment_app.include_router(router)
