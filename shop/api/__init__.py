# shop/api/__init__.py
import uuid

from fastapi import FastAPI, Request

from shop.api.routers import admin_orders, carts, health, orders, products, users
from shop.utils.logging import REQUEST_ID_CTX


def create_app() -> FastAPI:
    app = FastAPI(
        title="Shop Order Service",
        version="1.0.0",
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        token = REQUEST_ID_CTX.set(request_id)
        try:
            response = await call_next(request)
        finally:
            REQUEST_ID_CTX.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(admin_orders.router)

    return app
