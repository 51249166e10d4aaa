from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .database import Base
from .observability import RequestTimingLoggingMiddleware, add_exception_handlers, configure_logging
from .routers import checkin as checkin_router
from .routers import health
from .routers import members as members_router
from .services import Services, build_services


@asynccontextmanager
async def lifespan(app: FastAPI):
    services: Services = app.state.services
    Base.metadata.create_all(bind=services.engine)
    yield
    services.close()


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    services = services or build_services(settings)
    # Ensure schema is present for TestClient usage without lifespan
    Base.metadata.create_all(bind=services.engine)

    application = FastAPI(title="Membership API", version="0.1.0", lifespan=lifespan)
    application.state.services = services

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(RequestTimingLoggingMiddleware)

    add_exception_handlers(application)

    # Routers
    application.include_router(health.router)
    application.include_router(members_router.router)
    application.include_router(checkin_router.router)

    return application


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run("membership.main:create_app", factory=True, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
