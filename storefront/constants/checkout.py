from enum import Enum

from storefront.constants.order_status import OrderStatus


class DeliveryRegion(str, Enum):
    northern = "Northern"
    upper_east = "Upper East"
    upper_west = "Upper West"
    north_east = "North East"
    savannah = "Savannah"


class PaymentMethod(str, Enum):
    stripe = "stripe"   # card rail, confirmed with the gateway before checkout
    momo = "momo"       # cash / mobile money, collected on delivery


def initial_status_for(payment_method: PaymentMethod) -> str:
    if payment_method == PaymentMethod.stripe:
        return OrderStatus.paid.value
    return OrderStatus.pending.value
