"""
Conversation orchestration.

Runs the per-message pipeline (conversation lookup, persistence, sentiment,
reply and quick actions, escalation, ticketing, analytics) and owns the
conversation state machine::

    open -> escalated -> resolved
    open -> resolved

Work on one conversation id is serialized by a keyed lock, so a manual
escalation can never interleave with a message being processed.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import List, Optional

from support_copilot.models import (
    ChatRequest,
    ChatResponse,
    Conversation,
    ConversationDetail,
    ConversationStatus,
    EscalationTrigger,
    EscalationType,
    MessageRole,
    Priority,
    RequestConfig,
    Ticket,
    TicketStatus,
)
from support_copilot.repositories.base import ConversationStore
from support_copilot.services.action_service import ActionService
from support_copilot.services.customer_service import CustomerService
from support_copilot.services.escalation_service import categorize, decide, proactive_trigger
from support_copilot.services.intent_service import IntentJob, IntentSignalQueue
from support_copilot.services.knowledge_service import KnowledgeService
from support_copilot.services.response_service import ResponseService
from support_copilot.services.sentiment_service import SentimentService
from support_copilot.utils.error_handling import ValidationError
from support_copilot.utils.locks import KeyedLock
from support_copilot.utils.logging_config import get_logger

logger = get_logger(__name__)

MANUAL_ESCALATION_REASON = "Customer requested to speak with a human agent"
GUEST_NAME = "Guest"


def escalation_note(reason: str) -> str:
    return f"Conversation escalated: {reason}"


class ConversationOrchestrator:
    """Coordinates the analyzers and the record store for one message at a time per conversation."""

    def __init__(
        self,
        store: ConversationStore,
        sentiment: SentimentService,
        responder: ResponseService,
        actions: ActionService,
        customers: CustomerService,
        knowledge: KnowledgeService,
        intent_queue: Optional[IntentSignalQueue] = None,
        locks: Optional[KeyedLock] = None,
    ) -> None:
        self.store = store
        self.sentiment = sentiment
        self.responder = responder
        self.actions = actions
        self.customers = customers
        self.knowledge = knowledge
        self.intent_queue = intent_queue
        self.locks = locks if locks is not None else KeyedLock()

    async def process_message(self, request: ChatRequest, config: RequestConfig) -> ChatResponse:
        """Run the full pipeline for one inbound customer message."""
        start = time.perf_counter()
        async with self.locks.hold(request.conversation_id):
            conversation = await self._open_conversation(request)
            inbound = await self.store.append_message(conversation.id, MessageRole.CUSTOMER, request.message)
            history = [m for m in await self.store.list_messages(conversation.id) if m.id != inbound.id]

            context = await self.customers.get_customer_context(
                conversation.customer_id, conversation.customer_name, conversation.customer_email
            )
            sentiment = await self.sentiment.analyze(request.message, history, config.model_id)

            reply, actions = await asyncio.gather(
                self.responder.generate(request.message, history, config.model_id, context, sentiment),
                self.actions.recommend(request.message, history, config.model_id, context, sentiment),
            )

            trigger = decide(request.message, reply.content, reply.confidence_score, sentiment)
            if trigger is None:
                trigger = proactive_trigger(sentiment)

            outbound = await self.store.append_message(
                conversation.id, MessageRole.AI, reply.content, reply.confidence_score
            )

            ticket = None
            if trigger is not None and conversation.status == ConversationStatus.OPEN:
                ticket = await self._create_ticket(conversation, trigger, categorize(request.message))

            await self.store.record_analytics_event(
                "message_processed",
                conversation_id=conversation.id,
                payload={
                    "model_id": config.model_id,
                    "confidence_score": reply.confidence_score,
                    "sentiment": sentiment.level.value,
                    "escalated": trigger is not None,
                    "ticket_id": ticket.ticket_id if ticket else None,
                },
            )

        if self.intent_queue is not None:
            self.intent_queue.submit(
                IntentJob(
                    conversation_id=conversation.id,
                    message=request.message,
                    model_id=config.model_id,
                    history=history + [inbound],
                )
            )

        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "Message processed",
            extra={
                "conversation_id": conversation.id,
                "duration_ms": duration_ms,
                "should_escalate": trigger is not None,
                "actions": len(actions),
            },
        )

        return ChatResponse(
            conversation_id=conversation.id,
            message=outbound,
            suggested_responses=reply.suggested_responses,
            should_escalate=trigger is not None,
            escalation_reason=trigger.reason if trigger else None,
            customer_context=context,
            sentiment=sentiment,
            quick_actions=actions,
            resolution_suggestion=self.actions.suggest_resolution(actions, sentiment),
            proactive_alerts=self.customers.proactive_alerts(context),
            source_citations=self.knowledge.citations(reply.articles),
        )

    async def escalate(self, conversation_id: str, reason: Optional[str] = None) -> Optional[Ticket]:
        """Manual escalation; an escalated conversation returns its existing ticket."""
        async with self.locks.hold(conversation_id):
            conversation = await self.store.get_conversation(conversation_id)
            if conversation is None:
                return None
            if conversation.status == ConversationStatus.RESOLVED:
                raise ValidationError(f"Conversation {conversation_id} is already resolved")

            if conversation.status == ConversationStatus.ESCALATED:
                existing = await self.store.find_active_ticket(conversation_id)
                if existing is not None:
                    return existing

            trigger = EscalationTrigger(
                type=EscalationType.CUSTOMER_REQUEST,
                reason=reason or MANUAL_ESCALATION_REASON,
                priority=Priority.HIGH,
            )
            category = conversation.category or await self._category_from_messages(conversation_id)
            return await self._create_ticket(conversation, trigger, category)

    async def resolve(self, conversation_id: str) -> Optional[Conversation]:
        """Resolve the conversation (and its open ticket); resolving twice is a no-op."""
        async with self.locks.hold(conversation_id):
            conversation = await self.store.get_conversation(conversation_id)
            if conversation is None or conversation.status == ConversationStatus.RESOLVED:
                return conversation

            ticket = await self.store.find_active_ticket(conversation_id)
            if ticket is not None:
                await self.store.update_ticket_status(ticket.ticket_id, TicketStatus.RESOLVED)
            else:
                await self.store.update_conversation_status(conversation_id, ConversationStatus.RESOLVED)

            await self.store.record_analytics_event(
                "conversation_resolved",
                conversation_id=conversation_id,
                payload={"ticket_id": ticket.ticket_id if ticket else None},
            )
            logger.info("Conversation resolved", extra={"conversation_id": conversation_id})
            return await self.store.get_conversation(conversation_id)

    async def get_conversation(self, conversation_id: str) -> Optional[ConversationDetail]:
        conversation = await self.store.get_conversation(conversation_id)
        if conversation is None:
            return None
        return ConversationDetail(
            conversation=conversation,
            messages=await self.store.list_messages(conversation_id),
        )

    async def list_conversations(self) -> List[Conversation]:
        return await self.store.list_conversations()

    async def _open_conversation(self, request: ChatRequest) -> Conversation:
        """Existing open/escalated conversation, else a fresh one for the same customer."""
        existing = None
        if request.conversation_id:
            existing = await self.store.get_conversation(request.conversation_id)
            if existing is not None and existing.status != ConversationStatus.RESOLVED:
                return existing

        customer_id = request.customer_id or (existing.customer_id if existing else f"guest-{uuid.uuid4().hex[:8]}")
        customer_name = request.customer_name or (existing.customer_name if existing else GUEST_NAME)
        customer_email = request.customer_email or (existing.customer_email if existing else None)

        conversation = await self.store.create_conversation(customer_id, customer_name, customer_email)
        await self.store.record_analytics_event(
            "conversation_started",
            conversation_id=conversation.id,
            payload={
                "customer_id": customer_id,
                "previous_conversation_id": request.conversation_id,
            },
        )
        logger.info(
            "Conversation started",
            extra={"conversation_id": conversation.id, "customer_id": customer_id},
        )
        return conversation

    async def _create_ticket(
        self, conversation: Conversation, trigger: EscalationTrigger, category: str
    ) -> Ticket:
        ticket = await self.store.create_ticket(
            conversation.id,
            customer=conversation.customer_name,
            category=category,
            priority=trigger.priority,
            escalation_reason=trigger.reason,
            system_message=escalation_note(trigger.reason),
        )
        await self.store.record_analytics_event(
            "escalation_created",
            conversation_id=conversation.id,
            payload={
                "ticket_id": ticket.ticket_id,
                "escalation_type": trigger.type.value,
                "priority": trigger.priority.value,
            },
        )
        logger.info(
            "Escalation ticket created",
            extra={
                "conversation_id": conversation.id,
                "ticket_id": ticket.ticket_id,
                "priority": trigger.priority.value,
            },
        )
        return ticket

    async def _category_from_messages(self, conversation_id: str) -> str:
        customer_text = " ".join(
            m.content for m in await self.store.list_messages(conversation_id) if m.role == MessageRole.CUSTOMER
        )
        return categorize(customer_text)
