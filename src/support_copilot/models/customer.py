"""Customer models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from support_copilot.models.conversation import Priority


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    RETURNED = "returned"


class CustomerProfile(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None


class Order(BaseModel):
    id: str
    customer_id: str
    status: OrderStatus
    tracking_number: Optional[str] = None
    amount: float = Field(ge=0)
    created_at: datetime


class CustomerContext(BaseModel):
    """Customer snapshot handed to the response generator and action recommender."""

    customer: CustomerProfile
    recent_orders: List[Order] = Field(default_factory=list)

    @property
    def latest_order(self) -> Optional[Order]:
        return self.recent_orders[0] if self.recent_orders else None


class ProactiveAlert(BaseModel):
    id: str
    type: str = Field(description="delivery_delay|payment_issue|stock_update|price_drop|review_request")
    priority: Priority
    title: str
    message: str
    suggested_action: str
    related_order_id: Optional[str] = None
