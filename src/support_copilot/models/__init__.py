"""Pydantic models for the conversation pipeline and its API payloads."""

from support_copilot.models.analysis import (  # noqa: F401
    ActionCandidate,
    ActionType,
    EscalationRisk,
    EscalationTrigger,
    EscalationType,
    IntentExtraction,
    IntentSignal,
    QuickAction,
    ResolutionSuggestion,
    SentimentAnalysis,
    SentimentLevel,
    SentimentTrend,
)
from support_copilot.models.analytics import AnalyticsStats, BreakdownItem, IssueCount  # noqa: F401
from support_copilot.models.chat import (  # noqa: F401
    ChatRequest,
    ChatResponse,
    GeneratedReply,
    RequestConfig,
)
from support_copilot.models.conversation import (  # noqa: F401
    Conversation,
    ConversationDetail,
    ConversationStatus,
    Message,
    MessageRole,
    Priority,
    Ticket,
    TicketStats,
    TicketStatus,
)
from support_copilot.models.customer import (  # noqa: F401
    CustomerContext,
    CustomerProfile,
    Order,
    OrderStatus,
    ProactiveAlert,
)
from support_copilot.models.knowledge import Article, SourceCitation  # noqa: F401
