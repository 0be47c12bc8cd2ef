"""
Business logic shared by the API routes.

Route handlers stay thin: they parse the request, hand the explicit
AuthContext to a service function and shape the response.
"""

__all__ = [
    "rent_cycle",
    "notification_service",
    "property_service",
    "tenancy_service",
    "payment_service",
    "dashboard_service",
    "supabase_service",
    "storage_service",
]
