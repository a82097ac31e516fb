from .base import (
    ConversationMessage,
    ConversationStore,
    DispatchResult,
    EmailParams,
    EventDispatcher,
    EventParams,
    ExtractedParameters,
    FileLookup,
    FileStore,
    MailDispatcher,
    ResolvedAttachment,
    StoredFile,
)
from .google_calendar import CalendarDispatcher
from .google_drive import DriveFileStore
from .google_gmail import GmailDispatcher
from .registry import CREATE_EVENT_TOOL, SEND_EMAIL_TOOL, ToolRegistry, ToolSpec

__all__ = [
    "CREATE_EVENT_TOOL",
    "CalendarDispatcher",
    "ConversationMessage",
    "ConversationStore",
    "DispatchResult",
    "DriveFileStore",
    "EmailParams",
    "EventDispatcher",
    "EventParams",
    "ExtractedParameters",
    "FileLookup",
    "FileStore",
    "GmailDispatcher",
    "MailDispatcher",
    "ResolvedAttachment",
    "SEND_EMAIL_TOOL",
    "StoredFile",
    "ToolRegistry",
    "ToolSpec",
]
