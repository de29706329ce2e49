# microstore/api/__init__.py
from fastapi import FastAPI, Request

from microstore.api.routers import carts, gateway, health, notifications, orders, payments, products, users
from microstore.integration.service_registry import ServiceRegistry, default_registry
from microstore.utils.logging import bind_context, clear_context
from microstore.utils.settings import SERVICE_BASE_URL


def create_app(registry: ServiceRegistry | None = None) -> FastAPI:
    app = FastAPI(title="MicroStore", version="1.0.0")

    #rejestr uslug per aplikacja
    app.state.registry = registry or default_registry(SERVICE_BASE_URL)

    @app.middleware("http")
    async def request_log_context(request: Request, call_next):
        """Metoda i sciezka requestu trafiaja do kazdego wpisu logu."""
        clear_context()
        bind_context(method=request.method, path=request.url.path)
        try:
            return await call_next(request)
        finally:
            clear_context()

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(payments.router)
    app.include_router(notifications.router)
    app.include_router(gateway.router)
    return app
