"""Escalation ticket desk: queue listing, assignment, resolution and stats."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from support_copilot.models import Priority, Ticket, TicketStats, TicketStatus
from support_copilot.repositories.base import ConversationStore
from support_copilot.utils.error_handling import ValidationError
from support_copilot.utils.locks import KeyedLock
from support_copilot.utils.logging_config import get_logger
from support_copilot.utils.validators import ensure_choice, ensure_present

logger = get_logger(__name__)


class TicketService:
    """Encapsulates ticket handling after escalation."""

    def __init__(self, store: ConversationStore, locks: Optional[KeyedLock] = None):
        self.store = store
        # Shared with the orchestrator so ticket changes and turns on one
        # conversation never interleave.
        self.locks = locks if locks is not None else KeyedLock()

    async def list_escalations(
        self,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Ticket]:
        """High priority first, then oldest first."""
        return await self.store.list_tickets(
            priority=Priority(ensure_choice(priority, "priority", Priority)) if priority else None,
            category=category or None,
            status=TicketStatus(ensure_choice(status, "status", TicketStatus)) if status else None,
        )

    async def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        return await self.store.get_ticket(ticket_id)

    async def assign_ticket(self, ticket_id: str, agent_name: Optional[str]) -> Optional[Ticket]:
        agent_name = ensure_present(agent_name, "agent_name")
        ticket = await self.store.get_ticket(ticket_id)
        if ticket is None:
            return None

        async with self.locks.hold(ticket.conversation_id):
            # Re-read under the lock; the conversation may have moved on meanwhile.
            ticket = await self.store.get_ticket(ticket_id)
            if ticket.status == TicketStatus.RESOLVED:
                raise ValidationError(f"Ticket {ticket_id} is already resolved")

            updated = await self.store.assign_ticket(ticket_id, agent_name)
            await self.store.record_analytics_event(
                "ticket_assigned",
                conversation_id=ticket.conversation_id,
                payload={"ticket_id": ticket_id, "agent": agent_name},
            )
        logger.info("Ticket assigned", extra={"ticket_id": ticket_id, "agent": agent_name})
        return updated

    async def resolve_ticket(self, ticket_id: str) -> Optional[Ticket]:
        """Resolve the ticket and its conversation together; repeating is a no-op."""
        ticket = await self.store.get_ticket(ticket_id)
        if ticket is None:
            return None

        async with self.locks.hold(ticket.conversation_id):
            ticket = await self.store.get_ticket(ticket_id)
            if ticket.status == TicketStatus.RESOLVED:
                return ticket

            updated = await self.store.update_ticket_status(ticket_id, TicketStatus.RESOLVED)
            await self.store.record_analytics_event(
                "ticket_resolved",
                conversation_id=ticket.conversation_id,
                payload={"ticket_id": ticket_id},
            )
        logger.info("Ticket resolved", extra={"ticket_id": ticket_id})
        return updated

    async def update_priority(self, ticket_id: str, priority: Optional[str]) -> Optional[Ticket]:
        value = ensure_choice(ensure_present(priority, "priority"), "priority", Priority)
        return await self.store.update_ticket_priority(ticket_id, Priority(value))

    async def get_stats(self, now: Optional[datetime] = None) -> TicketStats:
        """Status counts plus the average age in minutes of unresolved tickets."""
        now = now or datetime.now(timezone.utc)
        counts = await self.store.count_tickets_by_status()
        waiting = [
            t
            for t in await self.store.list_tickets()
            if t.status in (TicketStatus.OPEN, TicketStatus.IN_PROGRESS)
        ]
        avg_wait = (
            sum((now - t.created_at).total_seconds() for t in waiting) / len(waiting) / 60
            if waiting
            else 0.0
        )
        return TicketStats(
            open=counts.get(TicketStatus.OPEN.value, 0),
            in_progress=counts.get(TicketStatus.IN_PROGRESS.value, 0),
            resolved=counts.get(TicketStatus.RESOLVED.value, 0),
            avg_wait_minutes=round(avg_wait, 1),
        )
