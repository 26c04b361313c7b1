import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dabba.config import settings
from dabba.database import create_db_and_tables
from dabba.routes import auth, checkout, cooks, health, orders, razorpay, users
from dabba.services.errors import CheckoutError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local, migrations handle everything else
    if settings.env == "local":
        create_db_and_tables()
    yield


app = FastAPI(title="Campus Dabba API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CheckoutError)
async def checkout_error_handler(request: Request, exc: CheckoutError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(cooks.router, prefix="/cooks", tags=["Cooks"])
app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(razorpay.router, prefix="/api/razorpay", tags=["Razorpay"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "auth_endpoints": ["/auth/register", "/auth/login"],
        "user_endpoints": ["/users/me", "/users/update-profile", "/users/me/profile-status"],
        "checkout": [
            "/checkout/summary", "/checkout/place-order",
            "/checkout/orders/{order_id}/verify",
            "/checkout/orders/{order_id}/cancel",
            "/checkout/orders/{order_id}/failed",
        ],
        "orders": ["/orders", "/orders/{order_id}"],
        "cooks": [
            "/cooks/register", "/cooks/me/payments", "/cooks/me/orders",
            "/cooks/orders/{order_id}/deliver", "/cooks/{cook_id}/menu",
        ],
        "razorpay": ["/api/razorpay/create-order", "/api/razorpay/verify-payment"],
    }
