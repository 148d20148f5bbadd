import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.db.database import Base, engine, check_db_connection
from app.api.v1.routes.users import router as users_router
from app.api.v1.routes.groups import router as groups_router
from app.api.v1.routes.expenses import router as expenses_router
from app.api.v1.routes.settlements import router as settlements_router
from app.api.v1.routes.ledger import router as ledger_router
from app.rabbitmq.config import reminder_settings
from app.rabbitmq.producer import close_rabbitmq_producer
from app.services.debt_reminder_job import start_debt_reminders, stop_debt_reminders

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    check_db_connection()
    # Publish debt reminders in the background when enabled
    if reminder_settings.reminders_enabled:
        start_debt_reminders()
    yield
    if reminder_settings.reminders_enabled:
        stop_debt_reminders()
        close_rabbitmq_producer()


app = FastAPI(
    title="Ledger Service - Shared Expenses",
    description="Tracks shared expenses and settlements and computes who owes whom",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(users_router)
app.include_router(groups_router)
app.include_router(expenses_router)
app.include_router(settlements_router)
app.include_router(ledger_router)


@app.get("/")
def read_root():
    return {"message": "Ledger Service API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}
