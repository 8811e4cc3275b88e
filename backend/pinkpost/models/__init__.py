from .auth import User, SessionToken
from .catalog import PostType, RiderCatalog, LockboxType
from .storage import CustomerSign, CustomerRider, CustomerLockbox, CustomerBrochureBox
from .promotions import PromoCode, PromoCodeUsage
from .orders import Order, OrderItem
from .installations import Installation, InstallationRider, InstallationLockbox, ServiceRequest
from .payments import PaymentMethod
from .notifications import Notification

__all__ = [
    'User', 'SessionToken',
    'PostType', 'RiderCatalog', 'LockboxType',
    'CustomerSign', 'CustomerRider', 'CustomerLockbox', 'CustomerBrochureBox',
    'PromoCode', 'PromoCodeUsage',
    'Order', 'OrderItem',
    'Installation', 'InstallationRider', 'InstallationLockbox', 'ServiceRequest',
    'PaymentMethod',
    'Notification',
]
