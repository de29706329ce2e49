# microstore/domain/errors.py
"""
Typowane bledy domenowe.

Klasy dziedzicza tez po wbudowanych wyjatkach (ValueError, LookupError,
PermissionError, RuntimeError), wiec routery moga je lapac tak samo jak
wczesniej lapaly wbudowane.
"""


class ServiceError(Exception):
    pass


# 404
class NotFoundError(ServiceError, LookupError):
    pass


class CartNotFoundError(NotFoundError):
    def __init__(self, user_id: int):
        super().__init__(f"Cart not found for user {user_id}")
        self.user_id = user_id


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class PaymentNotFoundError(NotFoundError):
    def __init__(self, payment_id: int):
        super().__init__(f"Payment {payment_id} not found")
        self.payment_id = payment_id


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


# 400
class ValidationError(ServiceError, ValueError):
    pass


class EmptyCartError(ValidationError):
    def __init__(self):
        super().__init__("Cart is empty")


class OutOfStockError(ValidationError):
    def __init__(self, product_id: int, requested: int):
        super().__init__(f"Insufficient inventory for product {product_id} (requested {requested})")
        self.product_id = product_id
        self.requested = requested


class DuplicatePaymentError(ValidationError):
    def __init__(self, order_id: int):
        super().__init__(f"Payment for order {order_id} already exists")
        self.order_id = order_id


class InvalidStatusTransitionError(ValidationError):
    def __init__(self, current: str, new: str):
        super().__init__(f"Cannot change order status from {current} to {new}")
        self.current = current
        self.new = new


class RefundNotAllowedError(ValidationError):
    def __init__(self, payment_id: int, status: str):
        super().__init__(f"Cannot refund payment {payment_id} with status {status}")
        self.payment_id = payment_id
        self.status = status


# 403
class AccessError(ServiceError, PermissionError):
    pass


# 409
class ConcurrencyError(ServiceError, RuntimeError):
    pass


# 502 - zewnetrzne zaleznosci (bramka platnosci, powiadomienia)
class DependencyError(ServiceError):
    pass


class GatewayNotConfiguredError(DependencyError):
    def __init__(self):
        super().__init__("Stripe is not configured. Please add STRIPE_SECRET_KEY to your environment variables.")


class PaymentGatewayError(DependencyError):
    pass
