from fastapi import FastAPI
from shared.config.database import engine, Base

# IMPORTANT: import models so they register with Base
from services.user_service import models as user_models
from services.order_service import models as order_models
from services.team_service import models as team_models
from services.chat_service import models as chat_models
from services.payment_service import models as payment_models

from services.order_service.main import order_app
from services.assignment_service.main import assignment_app
from services.team_service.main import team_app
from services.chat_service.main import chat_app
from services.payment_service.main import payment_app

app = FastAPI(title="Bakery Fulfillment Cluster")

@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        # Create all tables
        await conn.run_sync(Base.metadata.create_all)

app.mount("/orders", order_app)
app.mount("/assignments", assignment_app)
app.mount("/teams", team_app)
app.mount("/chats", chat_app)
app.mount("/payments", payment_app)
