"""
SqlConversationStore against in-memory SQLite.

Run with: pytest tests/unit/test_sql_store.py -v
"""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from conftest import make_store
from support_copilot.models import (
    ConversationStatus,
    MessageRole,
    Priority,
    TicketStatus,
)
from support_copilot.repositories.sql_store import SqlConversationStore, get_db_engine
from support_copilot.utils.error_handling import PersistenceError, ValidationError


async def _conversation(store, name="Ann"):
    return await store.create_conversation("cust-001", name, "ann@example.com")


class TestConversations:
    @pytest.mark.asyncio
    async def test_create_and_get(self, store):
        created = await _conversation(store)
        fetched = await store.get_conversation(created.id)
        assert fetched.status == ConversationStatus.OPEN
        assert fetched.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_unknown_id_returns_none(self, store):
        assert await store.get_conversation("missing") is None
        assert await store.get_ticket("TKT-0000") is None
        assert await store.update_ticket_status("TKT-0000", TicketStatus.RESOLVED) is None
        assert await store.assign_ticket("TKT-0000", "Alex") is None

    @pytest.mark.asyncio
    async def test_list_by_updated_at_desc(self, store):
        first = await _conversation(store, "First")
        second = await _conversation(store, "Second")
        await store.append_message(first.id, MessageRole.CUSTOMER, "bump")
        assert [c.id for c in await store.list_conversations()][:2] == [first.id, second.id]


class TestMessages:
    @pytest.mark.asyncio
    async def test_insertion_order(self, store):
        conversation = await _conversation(store)
        for i in range(5):
            await store.append_message(conversation.id, MessageRole.CUSTOMER, f"m{i}")
        messages = await store.list_messages(conversation.id)
        assert [m.content for m in messages] == ["m0", "m1", "m2", "m3", "m4"]

    @pytest.mark.asyncio
    async def test_ai_confidence_kept(self, store):
        conversation = await _conversation(store)
        await store.append_message(conversation.id, MessageRole.AI, "Hello", 0.72)
        (message,) = await store.list_messages(conversation.id)
        assert message.confidence_score == 0.72
        assert message.role == MessageRole.AI


class TestTickets:
    @pytest.mark.asyncio
    async def test_create_ticket_is_atomic(self, store):
        conversation = await _conversation(store)
        ticket = await store.create_ticket(
            conversation.id,
            customer="Ann",
            category="Returns",
            priority=Priority.HIGH,
            escalation_reason="Refund over limit",
            system_message="Conversation escalated: Refund over limit",
        )
        assert ticket.ticket_id.startswith("TKT-")
        assert ticket.status == TicketStatus.OPEN

        escalated = await store.get_conversation(conversation.id)
        assert escalated.status == ConversationStatus.ESCALATED
        assert escalated.category == "Returns"
        (note,) = await store.list_messages(conversation.id)
        assert note.role == MessageRole.SYSTEM
        assert note.content == "Conversation escalated: Refund over limit"

    @pytest.mark.asyncio
    async def test_ticket_for_unknown_conversation_rejected(self, store):
        with pytest.raises(ValidationError):
            await store.create_ticket("missing", "Ann", "General", Priority.LOW, "why")
        assert await store.list_tickets() == []

    @pytest.mark.asyncio
    async def test_ticket_id_collision_retries(self):
        ids = iter(["TKT-1111", "TKT-1111", "TKT-2222"])
        store = SqlConversationStore(get_db_engine("sqlite+pysqlite:///:memory:"), lambda: next(ids))
        store.create_schema()
        a = await _conversation(store)
        b = await _conversation(store)
        first = await store.create_ticket(a.id, "Ann", "General", Priority.LOW, "x")
        second = await store.create_ticket(b.id, "Ann", "General", Priority.LOW, "y")
        assert (first.ticket_id, second.ticket_id) == ("TKT-1111", "TKT-2222")

    @pytest.mark.asyncio
    async def test_resolving_ticket_resolves_conversation(self, store):
        conversation = await _conversation(store)
        ticket = await store.create_ticket(conversation.id, "Ann", "General", Priority.MEDIUM, "x")
        resolved = await store.update_ticket_status(ticket.ticket_id, TicketStatus.RESOLVED)
        assert resolved.status == TicketStatus.RESOLVED
        assert (await store.get_conversation(conversation.id)).status == ConversationStatus.RESOLVED
        assert await store.find_active_ticket(conversation.id) is None

    @pytest.mark.asyncio
    async def test_list_orders_priority_then_age(self, store):
        tickets = []
        for priority in (Priority.LOW, Priority.HIGH, Priority.MEDIUM, Priority.HIGH):
            conversation = await _conversation(store)
            tickets.append(await store.create_ticket(conversation.id, "Ann", "General", priority, "x"))
        listed = await store.list_tickets()
        assert [t.ticket_id for t in listed] == [
            tickets[1].ticket_id,
            tickets[3].ticket_id,
            tickets[2].ticket_id,
            tickets[0].ticket_id,
        ]
        assert len(await store.list_tickets(priority=Priority.HIGH)) == 2
        assert await store.list_tickets(category="Billing") == []

    @pytest.mark.asyncio
    async def test_assign_moves_to_in_progress(self, store):
        conversation = await _conversation(store)
        ticket = await store.create_ticket(conversation.id, "Ann", "General", Priority.LOW, "x")
        assigned = await store.assign_ticket(ticket.ticket_id, "Alex")
        assert assigned.assigned_agent == "Alex"
        assert assigned.status == TicketStatus.IN_PROGRESS
        assert await store.count_tickets_by_status() == {"in_progress": 1}


class TestReferenceData:
    @pytest.mark.asyncio
    async def test_seeded_customer_and_orders(self, store):
        customer = await store.get_customer("cust-001")
        assert customer.name == "Sarah Mitchell"
        orders = await store.list_orders("cust-001")
        assert [o.id for o in orders] == ["#12847", "#12653"]
        assert orders[0].created_at.tzinfo is not None

    def test_seed_is_idempotent(self, store):
        from support_copilot.repositories.seed_data import SEED_ARTICLES, SEED_CUSTOMERS, SEED_ORDERS

        store.load_seed_data(SEED_ARTICLES, SEED_CUSTOMERS, SEED_ORDERS)

    @pytest.mark.asyncio
    async def test_analytics_counts(self, store):
        await store.record_analytics_event("message_processed", "c1", {"a": 1})
        await store.record_analytics_event("message_processed")
        assert await store.count_events("message_processed") == 2
        assert await store.count_events("intent_signal") == 0


class TestFailures:
    @pytest.mark.asyncio
    async def test_sqlalchemy_errors_become_persistence_errors(self):
        store = make_store(seed=False)
        with patch.object(store, "_fetch_conversation", side_effect=OperationalError("SELECT", {}, Exception("down"))):
            with pytest.raises(PersistenceError):
                await store.get_conversation("any")
