from .chat_responder import ChatResponder, LlmChatResponder, StaticChatResponder
from .conversation_store import InMemoryConversationStore
from .llm_client import (
    ModelClient,
    ModelResponse,
    OpenAICompatibleClient,
    OpenAICompatibleConfig,
    ToolCall,
)
from .resource_resolver import AttachmentResolver
from .tool_invocation import ToolInvocationEngine, ToolInvocationOutcome

__all__ = [
    "ActionOrchestrator",
    "ActionRequest",
    "ActionResult",
    "AttachmentResolver",
    "ChatResponder",
    "InMemoryConversationStore",
    "LlmChatResponder",
    "ModelClient",
    "ModelResponse",
    "OpenAICompatibleClient",
    "OpenAICompatibleConfig",
    "StaticChatResponder",
    "ToolCall",
    "ToolInvocationEngine",
    "ToolInvocationOutcome",
]


def __getattr__(name: str):
    if name in {"ActionOrchestrator", "ActionRequest", "ActionResult"}:
        from .orchestrator import ActionOrchestrator, ActionRequest, ActionResult

        return {
            "ActionOrchestrator": ActionOrchestrator,
            "ActionRequest": ActionRequest,
            "ActionResult": ActionResult,
        }[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
