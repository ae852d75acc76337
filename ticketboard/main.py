from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from ticketboard.api.routers import dashboard as dashboard_router
from ticketboard.api.routers import device_logs as device_logs_router
from ticketboard.api.routers import esim_profiles as esim_profiles_router
from ticketboard.api.routers import monday as monday_router
from ticketboard.api.routers import monday_config as monday_config_router
from ticketboard.api.routers import ticket_mappings as ticket_mappings_router
from ticketboard.api.routers import tickets as tickets_router
from ticketboard.core.config import get_settings
from ticketboard.core.db import dispose_engine, get_engine


class DashboardCORSMiddleware(CORSMiddleware):
    """CORS for the dashboard API that leaves ``exempt_paths`` to their own routes.

    The webhook router answers its own preflight with an empty body and sets
    CORS headers on every response, so requests under those prefixes bypass
    the middleware entirely.
    """

    def __init__(self, app: ASGIApp, *, exempt_paths: tuple[str, ...] = (), **options) -> None:
        super().__init__(app, **options)
        self.exempt_paths = exempt_paths

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"].startswith(self.exempt_paths):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await get_engine()
    yield
    await dispose_engine()


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
)
app.add_middleware(
    DashboardCORSMiddleware,
    exempt_paths=(monday_router.router.prefix,),
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(dashboard_router.router)
app.include_router(device_logs_router.router)
app.include_router(esim_profiles_router.router)
app.include_router(monday_router.router)
app.include_router(monday_config_router.router)
app.include_router(ticket_mappings_router.router)
app.include_router(tickets_router.router)
