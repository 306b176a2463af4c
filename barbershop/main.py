# barbershop/main.py

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from . import db
from .config import get_settings
from .exceptions import DomainException
from .polling import Poller
from .repository import SqlRepository
from .routers import (
    appointments_routes,
    auth_routes,
    barbers_routes,
    notifications_routes,
    users_routes,
)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def _snapshot_pending():
    with Session(db.engine) as session:
        return SqlRepository(session).pending_counts()


async def refresh_pending_counts():
    return await asyncio.to_thread(_snapshot_pending)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db.init_db()
    logger.info("Database ready")
    async with Poller(refresh_pending_counts, settings.poll_interval_seconds) as poller:
        app.state.pending_poller = poller
        yield
    del app.state.pending_poller


app = FastAPI(title="Barbershop Booking", lifespan=lifespan)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    http_exc = exc.to_http_exception()
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(barbers_routes.router)
app.include_router(appointments_routes.router)
app.include_router(notifications_routes.router)
