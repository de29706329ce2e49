#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from microstore.data.models.user import UserModel
from microstore.data.models.product import ProductModel
from microstore.data.models.cart import CartModel
from microstore.data.models.cart_item import CartItemModel
from microstore.data.models.order import OrderModel
from microstore.data.models.order_item import OrderItemModel
from microstore.data.models.payment import PaymentModel
from microstore.data.models.notification import NotificationModel
from microstore.data.models.service_status import ServiceStatusModel

__all__ = [
    "UserModel",
    "ProductModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "PaymentModel",
    "NotificationModel",
    "ServiceStatusModel",
]
