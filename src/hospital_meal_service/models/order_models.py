"""Order models and status enumerations.

Orders are stored in DynamoDB with ``order_id`` as partition key and a
``user_id-index`` GSI (``user_id``, ``created_at``) for per-owner listing.
"""

import random
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from hospital_meal_service.models.base import ApiModel, drop_none, from_decimal, to_decimal
from hospital_meal_service.models.user_models import OwnerSummary


class OrderStatus(str, Enum):
    """Enumeration of order lifecycle states."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    PROCESSING = "processing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Enumeration of payment states."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """Accepted payment methods."""

    HOSPITAL_ACCOUNT = "hospital-account"
    CASH = "cash"
    CARD = "card"


def generate_order_number(now: datetime) -> str:
    """Build a human-readable order reference, e.g. ``ORD-512345-042``."""
    millis = str(int(now.timestamp() * 1000))
    return f"ORD-{millis[-6:]}-{random.randint(0, 999):03d}"


class OrderItem(ApiModel):
    """Line item snapshot taken from the menu at order time."""

    menu_item: str = Field(..., description="Referenced menu item id")
    name: str
    category: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Unit price at order time")
    special_instructions: str = ""

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def to_dynamodb_map(self) -> dict[str, Any]:
        return {
            "menu_item": self.menu_item,
            "name": self.name,
            "category": self.category,
            "quantity": self.quantity,
            "price": to_decimal(self.price),
            "special_instructions": self.special_instructions,
        }

    @classmethod
    def from_dynamodb_map(cls, data: dict[str, Any]) -> "OrderItem":
        return cls(
            menu_item=data["menu_item"],
            name=data["name"],
            category=data.get("category", ""),
            quantity=int(data["quantity"]),
            price=from_decimal(data["price"]),
            special_instructions=data.get("special_instructions", ""),
        )


class DeliveryDetails(ApiModel):
    """Where and when the order is delivered."""

    ward_number: str = Field(..., min_length=1)
    bed_number: str = Field(..., min_length=1)
    delivery_time: datetime | None = None
    special_instructions: str = ""

    def to_dynamodb_map(self) -> dict[str, Any]:
        return drop_none(
            {
                "ward_number": self.ward_number,
                "bed_number": self.bed_number,
                "delivery_time": self.delivery_time.isoformat() if self.delivery_time else None,
                "special_instructions": self.special_instructions,
            }
        )

    @classmethod
    def from_dynamodb_map(cls, data: dict[str, Any]) -> "DeliveryDetails":
        delivery_time = data.get("delivery_time")
        return cls(
            ward_number=data["ward_number"],
            bed_number=data["bed_number"],
            delivery_time=datetime.fromisoformat(delivery_time) if delivery_time else None,
            special_instructions=data.get("special_instructions", ""),
        )


class PaymentDetails(ApiModel):
    """Payment method and state of an order."""

    method: PaymentMethod = PaymentMethod.HOSPITAL_ACCOUNT
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str | None = None

    def to_dynamodb_map(self) -> dict[str, Any]:
        return drop_none(
            {
                "method": self.method.value,
                "status": self.status.value,
                "transaction_id": self.transaction_id,
            }
        )

    @classmethod
    def from_dynamodb_map(cls, data: dict[str, Any]) -> "PaymentDetails":
        return cls(
            method=PaymentMethod(data.get("method", PaymentMethod.HOSPITAL_ACCOUNT.value)),
            status=PaymentStatus(data.get("status", PaymentStatus.PENDING.value)),
            transaction_id=data.get("transaction_id"),
        )


class Order(ApiModel):
    """Persisted meal order.

    ``status`` and ``payment_details.status`` only change through the order
    lifecycle engine; everything else is fixed at creation.
    """

    id: str = Field(..., description="Unique order identifier")
    order_number: str = Field(..., description="Human-readable order reference")
    user_id: str = Field(..., description="Owner of the order")
    items: list[OrderItem] = Field(..., min_length=1)
    total_amount: float = Field(..., ge=0)
    status: OrderStatus = Field(default=OrderStatus.PENDING)
    delivery_details: DeliveryDetails
    payment_details: PaymentDetails = Field(default_factory=PaymentDetails)
    created_at: datetime
    updated_at: datetime

    @property
    def payment_status(self) -> PaymentStatus:
        return self.payment_details.status

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        return {
            "order_id": self.id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "items": [item.to_dynamodb_map() for item in self.items],
            "total_amount": to_decimal(self.total_amount),
            "status": self.status.value,
            "delivery_details": self.delivery_details.to_dynamodb_map(),
            "payment_details": self.payment_details.to_dynamodb_map(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Order":
        """Create Order from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Order: Parsed model instance
        """
        return cls(
            id=item["order_id"],
            order_number=item["order_number"],
            user_id=item["user_id"],
            items=[OrderItem.from_dynamodb_map(line) for line in item["items"]],
            total_amount=from_decimal(item["total_amount"]),
            status=OrderStatus(item["status"]),
            delivery_details=DeliveryDetails.from_dynamodb_map(item["delivery_details"]),
            payment_details=PaymentDetails.from_dynamodb_map(item.get("payment_details", {})),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )


class OrderView(Order):
    """Order joined with its owner's display projection."""

    user: OwnerSummary | None = None

    @classmethod
    def from_order(cls, order: Order, owner: OwnerSummary | None) -> "OrderView":
        return cls(**order.model_dump(), user=owner)


class OrderItemRequest(ApiModel):
    """Line item as submitted by the client."""

    menu_item: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    special_instructions: str = ""


class PaymentRequest(ApiModel):
    """Client payment choice."""

    method: PaymentMethod = PaymentMethod.HOSPITAL_ACCOUNT


class OrderCreateRequest(ApiModel):
    """Payload for placing an order.

    ``items`` is optional at the schema level so that an empty or missing list
    reaches the service and is reported as an empty order.
    """

    items: list[OrderItemRequest] | None = None
    total_amount: float | None = Field(None, ge=0)
    delivery_details: DeliveryDetails
    payment_details: PaymentRequest | None = None


class StatusUpdateRequest(ApiModel):
    """Admin status change. Kept as a plain string so unknown values reach the engine."""

    status: str | None = None


class OrderMutationResponse(ApiModel):
    """Envelope returned after an order is created or changed."""

    message: str
    order: OrderView


class StatusCount(ApiModel):
    """Number of orders in a given status."""

    status: str = Field(..., alias="_id")
    count: int


class OrderStats(ApiModel):
    """Admin dashboard counters."""

    total_orders: int
    today_orders: int
    pending_orders: int
    processing_orders: int
    status_counts: list[StatusCount]
    today_revenue: float
    total_revenue: float
