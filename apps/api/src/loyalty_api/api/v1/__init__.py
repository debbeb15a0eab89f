from fastapi import APIRouter

from .endpoints import checkout, health, loyalty, vouchers

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(vouchers.router)
router.include_router(checkout.router)
router.include_router(loyalty.router)
