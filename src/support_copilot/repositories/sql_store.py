"""
Record store on SQLAlchemy Core.

Works against PostgreSQL in deployed environments and an in-memory SQLite
database for local runs and tests. Multi-row state changes (ticket creation,
ticket resolution) run inside one ``engine.begin()`` transaction so a ticket
never exists next to an ``open`` conversation.

The driver calls block, so every public method runs on a worker thread and
the event loop keeps serving other conversations during a round trip. SQLite
connections are shared by the static pool, so SQLite access is serialized.
"""

from __future__ import annotations

import asyncio
import functools
import secrets
import threading
import uuid
from contextlib import contextmanager, nullcontext
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Optional, TypeVar

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    case,
    create_engine,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import QueuePool, StaticPool

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
from support_copilot.utils.error_handling import PersistenceError, ValidationError
from support_copilot.utils.logging_config import get_logger

logger = get_logger(__name__)

metadata = MetaData()

conversations = Table(
    "conversations",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("customer_id", String(64), nullable=False, index=True),
    Column("customer_name", String(255), nullable=False),
    Column("customer_email", String(255)),
    Column("status", String(16), nullable=False, default="open"),
    Column("category", String(32)),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

messages = Table(
    "messages",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(64), unique=True, nullable=False),
    Column("conversation_id", String(64), ForeignKey("conversations.id"), nullable=False, index=True),
    Column("role", String(16), nullable=False),
    Column("content", Text, nullable=False),
    Column("confidence_score", Float),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

tickets = Table(
    "tickets",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("ticket_id", String(32), unique=True, nullable=False),
    Column("conversation_id", String(64), ForeignKey("conversations.id"), nullable=False, index=True),
    Column("customer", String(255), nullable=False),
    Column("category", String(32), nullable=False),
    Column("priority", String(16), nullable=False),
    Column("escalation_reason", Text, nullable=False),
    Column("assigned_agent", String(255)),
    Column("status", String(16), nullable=False, default="open"),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

articles = Table(
    "articles",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("category", String(64), nullable=False),
    Column("title", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

customers = Table(
    "customers",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255)),
    Column("phone", String(64)),
    Column("location", String(255)),
    Column("created_at", DateTime(timezone=True)),
)

orders = Table(
    "orders",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("customer_id", String(64), ForeignKey("customers.id"), nullable=False, index=True),
    Column("status", String(16), nullable=False),
    Column("tracking_number", String(64)),
    Column("amount", Float, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

analytics_events = Table(
    "analytics_events",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(64), unique=True, nullable=False),
    Column("event_type", String(64), nullable=False, index=True),
    Column("conversation_id", String(64), index=True),
    Column("payload", JSON),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


def get_db_engine(database_url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    if database_url.startswith("sqlite"):
        return create_engine(database_url)
    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=2,
        max_overflow=4,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo on the way back; every stored timestamp is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _default_ticket_id() -> str:
    return f"TKT-{1000 + secrets.randbelow(9000)}"


_PRIORITY_RANK = case(
    (tickets.c.priority == Priority.HIGH.value, 1),
    (tickets.c.priority == Priority.MEDIUM.value, 2),
    else_=3,
)

T = TypeVar("T")


def _offloaded(method: Callable[..., T]) -> Callable[..., Awaitable[T]]:
    """Expose a blocking store method as a coroutine that runs on a worker thread."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        return await asyncio.to_thread(self._serialized, method, *args, **kwargs)

    return wrapper


class SqlConversationStore:
    """SQLAlchemy Core implementation of the ConversationStore contract."""

    def __init__(
        self,
        engine: Engine,
        ticket_id_factory: Callable[[], str] = _default_ticket_id,
    ):
        self.engine = engine
        self._ticket_id_factory = ticket_id_factory
        self._db_lock = threading.Lock() if engine.dialect.name == "sqlite" else nullcontext()

    @classmethod
    def from_url(cls, database_url: str) -> "SqlConversationStore":
        store = cls(get_db_engine(database_url))
        store.create_schema()
        return store

    def _serialized(self, method: Callable[..., T], *args, **kwargs) -> T:
        with self._db_lock:
            return method(self, *args, **kwargs)

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    def load_seed_data(
        self,
        seed_articles: Iterable[dict],
        seed_customers: Iterable[dict],
        seed_orders: Iterable[dict],
    ) -> None:
        """Insert demo rows that are not present yet."""
        now = _utcnow()
        with self._guard("load_seed_data"), self.engine.begin() as conn:
            for row in seed_articles:
                if conn.execute(select(articles.c.id).where(articles.c.id == row["id"])).first() is None:
                    conn.execute(insert(articles).values(created_at=now, updated_at=now, **row))
            for row in seed_customers:
                if conn.execute(select(customers.c.id).where(customers.c.id == row["id"])).first() is None:
                    conn.execute(insert(customers).values(**row))
            for row in seed_orders:
                if conn.execute(select(orders.c.id).where(orders.c.id == row["id"])).first() is None:
                    conn.execute(insert(orders).values(**row))

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error("Store operation failed", extra={"operation": operation, "error": str(exc)})
            raise PersistenceError(f"Store operation '{operation}' failed") from exc

    # Conversations

    @_offloaded
    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        with self._guard("get_conversation"), self.engine.connect() as conn:
            return self._fetch_conversation(conn, conversation_id)

    @_offloaded
    def create_conversation(
        self,
        customer_id: str,
        customer_name: str,
        customer_email: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Conversation:
        now = _utcnow()
        conversation_id = str(uuid.uuid4())
        with self._guard("create_conversation"), self.engine.begin() as conn:
            conn.execute(
                insert(conversations).values(
                    id=conversation_id,
                    customer_id=customer_id,
                    customer_name=customer_name,
                    customer_email=customer_email,
                    status=ConversationStatus.OPEN.value,
                    category=category,
                    created_at=now,
                    updated_at=now,
                )
            )
            return self._fetch_conversation(conn, conversation_id)

    @_offloaded
    def list_conversations(self) -> List[Conversation]:
        query = select(conversations).order_by(conversations.c.updated_at.desc())
        with self._guard("list_conversations"), self.engine.connect() as conn:
            return [self._to_conversation(row) for row in conn.execute(query)]

    @_offloaded
    def update_conversation_status(
        self, conversation_id: str, status: ConversationStatus
    ) -> Optional[Conversation]:
        with self._guard("update_conversation_status"), self.engine.begin() as conn:
            self._set_conversation_status(conn, conversation_id, status)
            return self._fetch_conversation(conn, conversation_id)

    # Messages

    @_offloaded
    def append_message(
        self,
        conversation_id: str,
        role: MessageRole,
        content: str,
        confidence_score: Optional[float] = None,
    ) -> Message:
        with self._guard("append_message"), self.engine.begin() as conn:
            message = self._insert_message(conn, conversation_id, role, content, confidence_score)
            conn.execute(
                update(conversations)
                .where(conversations.c.id == conversation_id)
                .values(updated_at=message.created_at)
            )
            return message

    @_offloaded
    def list_messages(self, conversation_id: str) -> List[Message]:
        query = (
            select(messages)
            .where(messages.c.conversation_id == conversation_id)
            .order_by(messages.c.created_at.asc(), messages.c.seq.asc())
        )
        with self._guard("list_messages"), self.engine.connect() as conn:
            return [self._to_message(row) for row in conn.execute(query)]

    # Tickets

    @_offloaded
    def create_ticket(
        self,
        conversation_id: str,
        customer: str,
        category: str,
        priority: Priority,
        escalation_reason: str,
        system_message: Optional[str] = None,
    ) -> Ticket:
        """Insert the ticket, escalate the conversation and log the system note atomically."""
        now = _utcnow()
        with self._guard("create_ticket"), self.engine.begin() as conn:
            if self._fetch_conversation(conn, conversation_id) is None:
                raise ValidationError(f"Conversation {conversation_id} does not exist")

            ticket_id = self._unique_ticket_id(conn)
            row_id = str(uuid.uuid4())
            conn.execute(
                insert(tickets).values(
                    id=row_id,
                    ticket_id=ticket_id,
                    conversation_id=conversation_id,
                    customer=customer,
                    category=category,
                    priority=priority.value,
                    escalation_reason=escalation_reason,
                    status=TicketStatus.OPEN.value,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.execute(
                update(conversations)
                .where(conversations.c.id == conversation_id)
                .values(status=ConversationStatus.ESCALATED.value, category=category, updated_at=now)
            )
            if system_message:
                self._insert_message(conn, conversation_id, MessageRole.SYSTEM, system_message)
            return self._fetch_ticket(conn, ticket_id)

    @_offloaded
    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        with self._guard("get_ticket"), self.engine.connect() as conn:
            return self._fetch_ticket(conn, ticket_id)

    @_offloaded
    def find_active_ticket(self, conversation_id: str) -> Optional[Ticket]:
        query = (
            select(tickets)
            .where(tickets.c.conversation_id == conversation_id)
            .where(tickets.c.status != TicketStatus.RESOLVED.value)
            .order_by(tickets.c.created_at.desc())
        )
        with self._guard("find_active_ticket"), self.engine.connect() as conn:
            row = conn.execute(query).first()
            return self._to_ticket(row) if row else None

    @_offloaded
    def list_tickets(
        self,
        priority: Optional[Priority] = None,
        category: Optional[str] = None,
        status: Optional[TicketStatus] = None,
    ) -> List[Ticket]:
        query = select(tickets)
        if priority is not None:
            query = query.where(tickets.c.priority == priority.value)
        if category:
            query = query.where(tickets.c.category == category)
        if status is not None:
            query = query.where(tickets.c.status == status.value)
        query = query.order_by(_PRIORITY_RANK, tickets.c.created_at.asc())
        with self._guard("list_tickets"), self.engine.connect() as conn:
            return [self._to_ticket(row) for row in conn.execute(query)]

    @_offloaded
    def update_ticket_status(self, ticket_id: str, status: TicketStatus) -> Optional[Ticket]:
        """Resolving a ticket resolves its conversation in the same transaction."""
        now = _utcnow()
        with self._guard("update_ticket_status"), self.engine.begin() as conn:
            ticket = self._fetch_ticket(conn, ticket_id)
            if ticket is None:
                return None
            conn.execute(
                update(tickets)
                .where(tickets.c.ticket_id == ticket_id)
                .values(status=status.value, updated_at=now)
            )
            if status == TicketStatus.RESOLVED:
                self._set_conversation_status(conn, ticket.conversation_id, ConversationStatus.RESOLVED)
            return self._fetch_ticket(conn, ticket_id)

    @_offloaded
    def assign_ticket(self, ticket_id: str, agent_name: str) -> Optional[Ticket]:
        with self._guard("assign_ticket"), self.engine.begin() as conn:
            result = conn.execute(
                update(tickets)
                .where(tickets.c.ticket_id == ticket_id)
                .values(
                    assigned_agent=agent_name,
                    status=TicketStatus.IN_PROGRESS.value,
                    updated_at=_utcnow(),
                )
            )
            if result.rowcount == 0:
                return None
            return self._fetch_ticket(conn, ticket_id)

    @_offloaded
    def update_ticket_priority(self, ticket_id: str, priority: Priority) -> Optional[Ticket]:
        with self._guard("update_ticket_priority"), self.engine.begin() as conn:
            result = conn.execute(
                update(tickets)
                .where(tickets.c.ticket_id == ticket_id)
                .values(priority=priority.value, updated_at=_utcnow())
            )
            if result.rowcount == 0:
                return None
            return self._fetch_ticket(conn, ticket_id)

    # Analytics

    @_offloaded
    def record_analytics_event(
        self,
        event_type: str,
        conversation_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        with self._guard("record_analytics_event"), self.engine.begin() as conn:
            conn.execute(
                insert(analytics_events).values(
                    id=str(uuid.uuid4()),
                    event_type=event_type,
                    conversation_id=conversation_id,
                    payload=payload,
                    created_at=_utcnow(),
                )
            )

    @_offloaded
    def list_events(self, event_type: str, conversation_id: Optional[str] = None) -> List[dict]:
        query = select(analytics_events).where(analytics_events.c.event_type == event_type)
        if conversation_id is not None:
            query = query.where(analytics_events.c.conversation_id == conversation_id)
        query = query.order_by(analytics_events.c.seq.asc())
        with self._guard("list_events"), self.engine.connect() as conn:
            return [dict(row._mapping) for row in conn.execute(query)]

    @_offloaded
    def count_events(self, event_type: str) -> int:
        query = select(func.count()).select_from(analytics_events).where(
            analytics_events.c.event_type == event_type
        )
        with self._guard("count_events"), self.engine.connect() as conn:
            return int(conn.execute(query).scalar() or 0)

    @_offloaded
    def count_conversations_by_status(self) -> Dict[str, int]:
        query = select(conversations.c.status, func.count()).group_by(conversations.c.status)
        with self._guard("count_conversations_by_status"), self.engine.connect() as conn:
            return {status: int(count) for status, count in conn.execute(query)}

    @_offloaded
    def count_tickets_by_status(self) -> Dict[str, int]:
        query = select(tickets.c.status, func.count()).group_by(tickets.c.status)
        with self._guard("count_tickets_by_status"), self.engine.connect() as conn:
            return {status: int(count) for status, count in conn.execute(query)}

    # Knowledge base and customers

    @_offloaded
    def list_articles(self) -> List[Article]:
        query = select(articles).order_by(articles.c.category, articles.c.title)
        with self._guard("list_articles"), self.engine.connect() as conn:
            return [Article(**dict(row._mapping)) for row in conn.execute(query)]

    @_offloaded
    def add_article(self, category: str, title: str, content: str) -> Article:
        now = _utcnow()
        article_id = f"art-{uuid.uuid4().hex[:8]}"
        with self._guard("add_article"), self.engine.begin() as conn:
            conn.execute(
                insert(articles).values(
                    id=article_id,
                    category=category,
                    title=title,
                    content=content,
                    created_at=now,
                    updated_at=now,
                )
            )
        return Article(id=article_id, category=category, title=title, content=content, created_at=now, updated_at=now)

    @_offloaded
    def get_customer(self, customer_id: str) -> Optional[CustomerProfile]:
        with self._guard("get_customer"), self.engine.connect() as conn:
            row = conn.execute(select(customers).where(customers.c.id == customer_id)).first()
            if row is None:
                return None
            data = dict(row._mapping)
            data["created_at"] = _aware(data.get("created_at"))
            return CustomerProfile(**data)

    @_offloaded
    def list_orders(self, customer_id: str, limit: int = 5) -> List[Order]:
        query = (
            select(orders)
            .where(orders.c.customer_id == customer_id)
            .order_by(orders.c.created_at.desc())
            .limit(limit)
        )
        with self._guard("list_orders"), self.engine.connect() as conn:
            result = []
            for row in conn.execute(query):
                data = dict(row._mapping)
                data["created_at"] = _aware(data["created_at"])
                result.append(Order(**data))
            return result

    # Row helpers

    def _unique_ticket_id(self, conn: Connection) -> str:
        for _ in range(10):
            candidate = self._ticket_id_factory()
            if conn.execute(select(tickets.c.id).where(tickets.c.ticket_id == candidate)).first() is None:
                return candidate
        return f"TKT-{uuid.uuid4().hex[:8].upper()}"

    def _insert_message(
        self,
        conn: Connection,
        conversation_id: str,
        role: MessageRole,
        content: str,
        confidence_score: Optional[float] = None,
    ) -> Message:
        message = Message(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            role=role,
            content=content,
            confidence_score=confidence_score,
            created_at=_utcnow(),
        )
        conn.execute(
            insert(messages).values(
                id=message.id,
                conversation_id=conversation_id,
                role=role.value,
                content=content,
                confidence_score=confidence_score,
                created_at=message.created_at,
            )
        )
        return message

    def _set_conversation_status(
        self, conn: Connection, conversation_id: str, status: ConversationStatus
    ) -> None:
        conn.execute(
            update(conversations)
            .where(conversations.c.id == conversation_id)
            .values(status=status.value, updated_at=_utcnow())
        )

    def _fetch_conversation(self, conn: Connection, conversation_id: str) -> Optional[Conversation]:
        row = conn.execute(select(conversations).where(conversations.c.id == conversation_id)).first()
        return self._to_conversation(row) if row else None

    def _fetch_ticket(self, conn: Connection, ticket_id: str) -> Optional[Ticket]:
        row = conn.execute(select(tickets).where(tickets.c.ticket_id == ticket_id)).first()
        return self._to_ticket(row) if row else None

    @staticmethod
    def _to_conversation(row) -> Conversation:
        data = dict(row._mapping)
        data["created_at"] = _aware(data["created_at"])
        data["updated_at"] = _aware(data["updated_at"])
        return Conversation(**data)

    @staticmethod
    def _to_message(row) -> Message:
        data = dict(row._mapping)
        data.pop("seq", None)
        data["created_at"] = _aware(data["created_at"])
        return Message(**data)

    @staticmethod
    def _to_ticket(row) -> Ticket:
        data = dict(row._mapping)
        data["created_at"] = _aware(data["created_at"])
        data["updated_at"] = _aware(data["updated_at"])
        return Ticket(**data)
