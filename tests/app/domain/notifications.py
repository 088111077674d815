from dataclasses import dataclass

from mediflow import Notification
from tests.app.domain.models import OrderId


@dataclass
class OrderCreated(Notification):
    order_id: OrderId
    sku: str
    qty: int


@dataclass
class OrderDeleted(Notification):
    order_id: OrderId
