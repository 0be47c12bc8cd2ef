from rentledger.api.routes.auth import router as auth_router
from rentledger.api.routes.profile import router as profile_router
from rentledger.api.routes.properties import router as properties_router
from rentledger.api.routes.tenants import router as tenants_router
from rentledger.api.routes.tenancies import router as tenancies_router
from rentledger.api.routes.payments import router as payments_router
from rentledger.api.routes.tenant_portal import router as tenant_portal_router
from rentledger.api.routes.notifications import router as notifications_router
from rentledger.api.routes.dashboard import router as dashboard_router

__all__ = [
    "auth_router",
    "profile_router",
    "properties_router",
    "tenants_router",
    "tenancies_router",
    "payments_router",
    "tenant_portal_router",
    "notifications_router",
    "dashboard_router",
]
