from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import (
    class_groups,
    classrooms,
    health,
    notifications,
    reservations,
    settings as settings_routes,
    timetables,
    users,
)
from app.core.config import get_settings
from app.core.exceptions import AppError
from app.db.bootstrap import ensure_schema
from app.schemas.settings import ReservationPolicy
from app.services.settings_provider import settings_provider

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def log_policy_change(policy: ReservationPolicy) -> None:
    logger.info("Reservation policy updated: %s", policy.model_dump())


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_schema()
    unsubscribe = settings_provider.subscribe(log_policy_change)
    yield
    unsubscribe()
    settings_provider.clear()


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "code": exc.code, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(users.router, prefix=f"{settings.api_prefix}/users", tags=["users"])
app.include_router(classrooms.router, prefix=f"{settings.api_prefix}/classrooms", tags=["classrooms"])
app.include_router(class_groups.router, prefix=f"{settings.api_prefix}/class-groups", tags=["class-groups"])
app.include_router(timetables.router, prefix=f"{settings.api_prefix}/timetables", tags=["timetables"])
app.include_router(reservations.router, prefix=f"{settings.api_prefix}/reservations", tags=["reservations"])
app.include_router(settings_routes.router, prefix=settings.api_prefix, tags=["settings"])
app.include_router(notifications.router, prefix=settings.api_prefix, tags=["notifications"])
