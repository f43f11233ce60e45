from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.config.database import AsyncSessionLocal, Base, engine
from shared.exceptions import register_exception_handlers
from shared.observability import setup_observability
from shared.security import ADMIN_ROLE, DEFAULT_ROLE, limiter

# IMPORTANT: import models so they register with Base
from services.auth_service import models as auth_models  # noqa: F401
from services.customer_service import models as customer_models  # noqa: F401
from services.product_service import models as product_models  # noqa: F401
from services.order_service import models as order_models  # noqa: F401
from services.payment_service import models as payment_models  # noqa: F401

from services.auth_service.repository import RoleRepository
from services.auth_service import router as auth_router
from services.customer_service import router as customer_router
from services.product_service import router as product_router
from services.order_service import router as order_router
from services.payment_service import router as payment_router

app = FastAPI(
    title="Storefront API",
    version="1.0.0",
    description="Customers, catalog lookup, orders and payments.",
)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(app, "storefront")

# --- SECURITY & ERRORS ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

app.include_router(auth_router.public_router)
app.include_router(auth_router.router)
app.include_router(auth_router.users_router)
app.include_router(auth_router.roles_router)
app.include_router(customer_router.public_router)
app.include_router(customer_router.router)
app.include_router(product_router.public_router)
app.include_router(product_router.router)
app.include_router(order_router.public_router)
app.include_router(order_router.router)
app.include_router(payment_router.public_router)
app.include_router(payment_router.router)

@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        await RoleRepository.ensure_roles(db, [ADMIN_ROLE, DEFAULT_ROLE])
