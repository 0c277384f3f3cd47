# storefront/api/__init__.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from storefront.api.routers import checkout, directory, health, orders, promo_codes


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # bledne body = 400, bez efektow ubocznych
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": jsonable_encoder(exc.errors())},
    )


def create_app(lifespan=None) -> FastAPI:
    app = FastAPI(
        title="Storefront COD Checkout",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(directory.router)
    app.include_router(promo_codes.router)
    app.include_router(checkout.router)
    app.include_router(orders.router)

    return app
