"""
Customer Context Service.

Builds the customer snapshot (profile plus recent orders) that grounds replies
and action eligibility, and derives proactive alerts from order state.
Snapshots are cached in-process and survive warm Lambda invocations.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from support_copilot.models import (
    CustomerContext,
    CustomerProfile,
    OrderStatus,
    Priority,
    ProactiveAlert,
)
from support_copilot.repositories.base import ConversationStore
from support_copilot.utils.cache_service import LRUCache
from support_copilot.utils.logging_config import get_logger

logger = get_logger(__name__)

PROCESSING_ALERT_DAYS = 2


class CustomerService:
    """Service for customer context retrieval."""

    def __init__(self, store: ConversationStore, cache: LRUCache = None, order_limit: int = 5):
        self.store = store
        self.cache = cache or LRUCache(max_size=100, ttl_seconds=300)
        self.order_limit = order_limit

    async def get_customer_context(
        self,
        customer_id: str,
        fallback_name: Optional[str] = None,
        fallback_email: Optional[str] = None,
    ) -> Optional[CustomerContext]:
        """Profile from the store, else from what the conversation already knows."""
        cache_key = f"customer:{customer_id}"
        cached = self.cache.get(cache_key)
        if cached:
            logger.info("Customer cache hit", extra={"customer_id": customer_id})
            return cached

        profile = await self.store.get_customer(customer_id)
        if profile is None:
            if not fallback_name:
                return None
            profile = CustomerProfile(id=customer_id, name=fallback_name, email=fallback_email)

        orders = await self.store.list_orders(customer_id, limit=self.order_limit)
        context = CustomerContext(customer=profile, recent_orders=orders)
        self.cache.set(cache_key, context)
        logger.info(
            "Customer context built",
            extra={"customer_id": customer_id, "orders": len(orders)},
        )
        return context

    @staticmethod
    def proactive_alerts(
        context: Optional[CustomerContext], now: Optional[datetime] = None
    ) -> List[ProactiveAlert]:
        """Flag orders the customer is likely to ask about next."""
        if context is None:
            return []
        now = now or datetime.now(timezone.utc)
        alerts: List[ProactiveAlert] = []

        for order in context.recent_orders:
            if order.status == OrderStatus.IN_TRANSIT:
                alerts.append(
                    ProactiveAlert(
                        id=f"alert-{order.id}",
                        type="delivery_delay",
                        priority=Priority.MEDIUM,
                        title="Delivery Update Available",
                        message=f"Order {order.id} is currently in transit. Would you like tracking details?",
                        suggested_action="Share tracking information proactively",
                        related_order_id=order.id,
                    )
                )
            elif order.status == OrderStatus.PROCESSING:
                days = (now - order.created_at).days
                if days > PROCESSING_ALERT_DAYS:
                    alerts.append(
                        ProactiveAlert(
                            id=f"alert-delay-{order.id}",
                            type="delivery_delay",
                            priority=Priority.HIGH,
                            title="Order Processing Longer Than Expected",
                            message=f"Order {order.id} has been processing for {days} days. "
                            "Consider proactive outreach.",
                            suggested_action="Offer expedited shipping or discount",
                            related_order_id=order.id,
                        )
                    )
        return alerts
