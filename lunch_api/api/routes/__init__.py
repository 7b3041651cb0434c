"""API routes."""

from fastapi import APIRouter

from lunch_api.api.routes import auth, backoffice, events, health, orders, shops, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(users.admin_router, prefix="/admin", tags=["admin"])
router.include_router(shops.router, prefix="/shops", tags=["shops"])
router.include_router(shops.menus_router, prefix="/menus", tags=["menus"])
router.include_router(events.router, prefix="/events", tags=["events"])
router.include_router(orders.router, prefix="/orders", tags=["orders"])
router.include_router(backoffice.crm_router, prefix="/crm", tags=["crm"])
router.include_router(backoffice.erp_router, prefix="/erp", tags=["erp"])
