"""HTTP routers mounted under ``/api``."""

from fastapi import APIRouter

from muabook.routes import auth, bookings, dashboard, muas, portfolio, users

api_router = APIRouter(prefix="/api")
for module in (auth, users, muas, bookings, dashboard, portfolio):
    api_router.include_router(module.router)

__all__ = ["api_router"]
