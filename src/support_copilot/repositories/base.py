"""Record store contract consumed by the services."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from support_copilot.models import (
    Article,
    Conversation,
    ConversationStatus,
    CustomerProfile,
    Message,
    MessageRole,
    Order,
    Priority,
    Ticket,
    TicketStatus,
)


class ConversationStore(Protocol):
    """
    Everything the pipeline reads or writes.

    Lookups by unknown id return None. Any storage failure raises
    PersistenceError.
    """

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]: ...

    async def create_conversation(
        self,
        customer_id: str,
        customer_name: str,
        customer_email: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Conversation: ...

    async def list_conversations(self) -> List[Conversation]: ...

    async def update_conversation_status(
        self, conversation_id: str, status: ConversationStatus
    ) -> Optional[Conversation]: ...

    async def append_message(
        self,
        conversation_id: str,
        role: MessageRole,
        content: str,
        confidence_score: Optional[float] = None,
    ) -> Message: ...

    async def list_messages(self, conversation_id: str) -> List[Message]: ...

    async def create_ticket(
        self,
        conversation_id: str,
        customer: str,
        category: str,
        priority: Priority,
        escalation_reason: str,
        system_message: Optional[str] = None,
    ) -> Ticket: ...

    async def get_ticket(self, ticket_id: str) -> Optional[Ticket]: ...

    async def find_active_ticket(self, conversation_id: str) -> Optional[Ticket]: ...

    async def list_tickets(
        self,
        priority: Optional[Priority] = None,
        category: Optional[str] = None,
        status: Optional[TicketStatus] = None,
    ) -> List[Ticket]: ...

    async def update_ticket_status(self, ticket_id: str, status: TicketStatus) -> Optional[Ticket]: ...

    async def assign_ticket(self, ticket_id: str, agent_name: str) -> Optional[Ticket]: ...

    async def update_ticket_priority(self, ticket_id: str, priority: Priority) -> Optional[Ticket]: ...

    async def record_analytics_event(
        self,
        event_type: str,
        conversation_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None: ...

    async def list_events(
        self, event_type: str, conversation_id: Optional[str] = None
    ) -> List[Dict[str, Any]]: ...

    async def count_events(self, event_type: str) -> int: ...

    async def count_conversations_by_status(self) -> Dict[str, int]: ...

    async def count_tickets_by_status(self) -> Dict[str, int]: ...

    async def list_articles(self) -> List[Article]: ...

    async def add_article(self, category: str, title: str, content: str) -> Article: ...

    async def get_customer(self, customer_id: str) -> Optional[CustomerProfile]: ...

    async def list_orders(self, customer_id: str, limit: int = 5) -> List[Order]: ...
