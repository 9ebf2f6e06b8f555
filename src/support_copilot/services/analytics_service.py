"""Dashboard statistics over conversations, tickets and analytics events."""

from __future__ import annotations

from collections import Counter
from typing import List

from support_copilot.models import AnalyticsStats, BreakdownItem, ConversationStatus, IssueCount
from support_copilot.repositories.base import ConversationStore
from support_copilot.services.intent_service import INTENT_EVENT

AI_RESOLVED = "AI Resolved"
HUMAN_RESOLVED = "Human Resolved"
UNKNOWN_REASON = "Unknown"


def whole_percent(part: int, total: int) -> int:
    return round(part / total * 100) if total else 0


class AnalyticsService:
    def __init__(self, store: ConversationStore, top_issue_limit: int = 5):
        self.store = store
        self.top_issue_limit = top_issue_limit

    async def get_stats(self) -> AnalyticsStats:
        by_status = await self.store.count_conversations_by_status()
        total = sum(by_status.values())
        tickets = await self.store.list_tickets()
        ticketed = len({t.conversation_id for t in tickets})

        def percent(part: int) -> float:
            return round(part / total * 100, 1) if total else 0.0

        issues = Counter(t.category for t in tickets).most_common(self.top_issue_limit)
        return AnalyticsStats(
            total_conversations=total,
            active_conversations=by_status.get(ConversationStatus.OPEN.value, 0),
            escalated_conversations=by_status.get(ConversationStatus.ESCALATED.value, 0),
            resolved_conversations=by_status.get(ConversationStatus.RESOLVED.value, 0),
            escalation_rate=percent(ticketed),
            deflection_rate=percent(total - ticketed) if total else 0.0,
            messages_processed=await self.store.count_events("message_processed"),
            intent_signals_captured=await self.store.count_events(INTENT_EVENT),
            top_issues=[IssueCount(issue=issue, count=count) for issue, count in issues],
        )

    async def escalation_reasons(self) -> List[BreakdownItem]:
        """Share of tickets per escalation reason, most common first."""
        tickets = await self.store.list_tickets()
        reasons = Counter(t.escalation_reason or UNKNOWN_REASON for t in tickets)
        return [
            BreakdownItem(name=reason, value=whole_percent(count, len(tickets)))
            for reason, count in reasons.most_common(self.top_issue_limit)
        ]

    async def resolution_split(self) -> List[BreakdownItem]:
        """
        Resolved conversations split by who closed them.

        A resolved conversation that never got a ticket was handled by the
        assistant alone; one with a ticket went through a human agent.
        """
        ticketed = {t.conversation_id for t in await self.store.list_tickets()}
        resolved = [
            c.id for c in await self.store.list_conversations() if c.status == ConversationStatus.RESOLVED
        ]
        human = sum(1 for conversation_id in resolved if conversation_id in ticketed)
        ai = len(resolved) - human
        return [
            BreakdownItem(name=AI_RESOLVED, value=whole_percent(ai, len(resolved))),
            BreakdownItem(name=HUMAN_RESOLVED, value=whole_percent(human, len(resolved))),
        ]
