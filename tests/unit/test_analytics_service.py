"""AnalyticsService dashboard figures."""

import pytest

from conftest import make_store
from support_copilot.models import ConversationStatus, Priority, TicketStatus
from support_copilot.services.analytics_service import AnalyticsService
from support_copilot.services.intent_service import INTENT_EVENT


@pytest.mark.asyncio
async def test_empty_store():
    stats = await AnalyticsService(make_store(seed=False)).get_stats()
    assert stats.total_conversations == 0
    assert stats.escalation_rate == 0.0
    assert stats.deflection_rate == 0.0
    assert stats.top_issues == []


@pytest.mark.asyncio
async def test_rates_and_top_issues(store):
    conversations = [await store.create_conversation("cust-001", "Sarah") for _ in range(4)]
    await store.create_ticket(conversations[0].id, "Sarah", "Returns", Priority.HIGH, "x")
    await store.create_ticket(conversations[1].id, "Sarah", "Returns", Priority.LOW, "y")
    await store.create_ticket(conversations[2].id, "Sarah", "Billing", Priority.LOW, "z")
    await store.record_analytics_event("message_processed", conversations[3].id)
    await store.record_analytics_event(INTENT_EVENT, conversations[3].id, {"intent_signals": []})

    stats = await AnalyticsService(store, top_issue_limit=1).get_stats()
    assert stats.total_conversations == 4
    assert stats.active_conversations == 1
    assert stats.escalated_conversations == 3
    assert stats.escalation_rate == 75.0
    assert stats.deflection_rate == 25.0
    assert stats.messages_processed == 1
    assert stats.intent_signals_captured == 1
    assert [(i.issue, i.count) for i in stats.top_issues] == [("Returns", 2)]


@pytest.mark.asyncio
async def test_escalation_reasons_as_whole_percents(store):
    reasons = ["Customer asked for a human", "Customer asked for a human", "Refund over limit"]
    for reason in reasons:
        conversation = await store.create_conversation("cust-001", "Sarah")
        await store.create_ticket(conversation.id, "Sarah", "General", Priority.MEDIUM, reason)

    breakdown = await AnalyticsService(store).escalation_reasons()
    assert [(item.name, item.value) for item in breakdown] == [
        ("Customer asked for a human", 67),
        ("Refund over limit", 33),
    ]


@pytest.mark.asyncio
async def test_escalation_reasons_capped(store):
    for i in range(7):
        conversation = await store.create_conversation("cust-001", "Sarah")
        await store.create_ticket(conversation.id, "Sarah", "General", Priority.LOW, f"reason {i}")

    assert len(await AnalyticsService(store).escalation_reasons()) == 5
    assert await AnalyticsService(make_store(seed=False)).escalation_reasons() == []


@pytest.mark.asyncio
async def test_resolution_split(store):
    conversations = [await store.create_conversation("cust-001", "Sarah") for _ in range(5)]
    for conversation in conversations[:3]:
        await store.update_conversation_status(conversation.id, ConversationStatus.RESOLVED)
    ticket = await store.create_ticket(conversations[3].id, "Sarah", "General", Priority.LOW, "x")
    await store.update_ticket_status(ticket.ticket_id, TicketStatus.RESOLVED)
    # conversations[4] stays open and is not counted

    split = await AnalyticsService(store).resolution_split()
    assert [(item.name, item.value) for item in split] == [("AI Resolved", 75), ("Human Resolved", 25)]


@pytest.mark.asyncio
async def test_resolution_split_without_resolved_conversations():
    split = await AnalyticsService(make_store(seed=False)).resolution_split()
    assert [item.value for item in split] == [0, 0]
