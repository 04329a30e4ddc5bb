# erp_pos/api/__init__.py
from fastapi import FastAPI

from erp_pos.api.routers import carts, catalog, health, notifications, permissions, sales, users


def create_app() -> FastAPI:
    app = FastAPI(
        title="ERP POS Service",
        version="1.0.0",
    )

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(catalog.router)
    app.include_router(carts.router)
    app.include_router(sales.router)
    app.include_router(permissions.router)
    app.include_router(notifications.router)

    return app
