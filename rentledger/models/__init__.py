# Import all models in dependency order so string relationships resolve
from rentledger.models.profile import Profile, UserRole
from rentledger.models.property import Property, Unit
from rentledger.models.tenancy import Tenancy, TenancyStatus, RentCycle
from rentledger.models.payment import Payment, PaymentStatus
from rentledger.models.notification import Notification, NotificationType

__all__ = [
    "Profile",
    "UserRole",
    "Property",
    "Unit",
    "Tenancy",
    "TenancyStatus",
    "RentCycle",
    "Payment",
    "PaymentStatus",
    "Notification",
    "NotificationType",
]
