from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.config.database import create_tables
from shared.errors import CapacityExceededError, TRANSIENT_DB_ERRORS
from shared.observability import setup_observability
from shared.security import limiter

# IMPORTANT: import models so they register with Base
from services.auth_service import models as auth_models
from services.schedule_service import models as schedule_models
from services.order_service import models as order_models
from services.payment_service import models as payment_models
from services.tracking_service import models as tracking_models

from services.auth_service.router import router as auth_router
from services.schedule_service.router import router as schedule_router
from services.order_service.router import router as order_router
from services.payment_service.router import router as payment_router
from services.checkout.router import router as checkout_router
from services.tracking_service.router import router as tracking_router, ws_router

app = FastAPI(title="CollegeBites Booking API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(app, "collegebites_api")

# --- SECURITY SETUP ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(CapacityExceededError)
async def capacity_exceeded_handler(request: Request, exc: CapacityExceededError):
    # Callers need the remaining capacity to retry with a smaller quantity
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "available": exc.available},
        headers=exc.headers,
    )


async def store_unavailable_handler(request: Request, exc: Exception):
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable, please retry"},
    )

for _error in TRANSIENT_DB_ERRORS:
    app.add_exception_handler(_error, store_unavailable_handler)


@app.on_event("startup")
async def startup_event():
    await create_tables()


@app.get("/health", tags=["Health Check"])
async def health_check():
    return {"service": "collegebites", "status": "running"}


app.include_router(auth_router)
app.include_router(schedule_router)
app.include_router(order_router)
app.include_router(payment_router)
app.include_router(checkout_router)
app.include_router(tracking_router)
app.include_router(ws_router)
