from .auth import User, SessionToken
from .geography import Country, County, City
from .addresses import Address
from .catalog import Brand
from .orders import Order, OrderStatusEvent
from .notifications import PushSubscription

__all__ = [
    'User', 'SessionToken',
    'Country', 'County', 'City',
    'Address',
    'Brand',
    'Order', 'OrderStatusEvent',
    'PushSubscription',
]
