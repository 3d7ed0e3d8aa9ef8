from .auth import User, SessionToken
from .customers import Customer, CustomerInteraction
from .workflow import PaintOrder, ServiceRequest
from .catalog import PaintType, Machine

__all__ = [
    'User', 'SessionToken',
    'Customer', 'CustomerInteraction',
    'PaintOrder', 'ServiceRequest',
    'PaintType', 'Machine',
]
