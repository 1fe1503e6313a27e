from .auth import User, SessionToken
from .inventory import Product, Wholesaler
from .sales import Sale
from .customers import Customer
from .deposits import DailyDeposit
from .audit import AuditLog

__all__ = [
    'User', 'SessionToken',
    'Product', 'Wholesaler',
    'Sale',
    'Customer',
    'DailyDeposit',
    'AuditLog',
]
