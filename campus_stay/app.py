import logging

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from campus_stay.core.catch_error_middleware import ErrorHandlerMiddleware
from campus_stay.core.errors import AppError
from campus_stay.core.exception_handler import (
    AppErrorHandler,
    HTTPErrorHandler,
    ValidationErrorHandler,
)
from campus_stay.core.get_db import Database
from campus_stay.core.lifespan import lifespan
from campus_stay.core.refresh_cookie_middleware import RenewedAccessCookieMiddleware
from campus_stay.core.settings import settings
from campus_stay.notifications.outbox import NotificationPublisher
from campus_stay.notifications.publisher import DramatiqPublisher
from campus_stay.routes.admin_routes import router as admin_router
from campus_stay.routes.agent_routes import router as agent_router
from campus_stay.routes.auth_routes import router as auth_router
from campus_stay.routes.health_routes import router as health_router
from campus_stay.routes.listing_routes import router as listing_router
from campus_stay.routes.payment_routes import router as payment_router
from campus_stay.routes.roommate_routes import router as roommate_router
from campus_stay.routes.saved_routes import router as saved_router

logging.basicConfig(level=logging.INFO)


def create_app(
    database: Database | None = None,
    publisher: NotificationPublisher | None = None,
) -> FastAPI:
    app = FastAPI(
        lifespan=lifespan,
        title=settings.PROJECT_NAME,
        version="1.0.0",
    )

    app.state.database = database or Database(
        settings.DATABASE_URL, echo=settings.DATABASE_ECHO
    )
    app.state.notification_publisher = publisher or DramatiqPublisher()

    prefix = settings.API_PREFIX
    app.include_router(health_router, prefix=prefix)
    app.include_router(auth_router, prefix=f"{prefix}/auth")
    app.include_router(listing_router, prefix=prefix)
    app.include_router(roommate_router, prefix=prefix)
    app.include_router(saved_router, prefix=f"{prefix}/users/me")
    app.include_router(payment_router, prefix=f"{prefix}/payments")
    app.include_router(admin_router, prefix=f"{prefix}/admin")
    app.include_router(agent_router, prefix=f"{prefix}/agents")

    app.add_exception_handler(RequestValidationError, ValidationErrorHandler())
    app.add_exception_handler(AppError, AppErrorHandler())
    app.add_exception_handler(StarletteHTTPException, HTTPErrorHandler())

    app.add_middleware(
        RenewedAccessCookieMiddleware,
        skip_paths={f"{prefix}/auth/logout", f"{prefix}/auth/refresh"},
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_HOSTS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ErrorHandlerMiddleware)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8001)
