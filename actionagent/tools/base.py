from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class EmailParams:
    to: tuple[str, ...]
    subject: str
    body: str
    drive_attachments: tuple[str, ...] = ()


@dataclass(frozen=True)
class EventParams:
    summary: str
    start: datetime
    end: datetime
    location: str | None = None


ExtractedParameters = EmailParams | EventParams


@dataclass(frozen=True)
class ResolvedAttachment:
    reference_text: str
    resolved_id: str
    file_name: str = ""


@dataclass(frozen=True)
class DispatchResult:
    success: bool
    resource_id: str | None = None
    link: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class StoredFile:
    file_id: str
    name: str
    mime_type: str = ""


@dataclass(frozen=True)
class FileLookup:
    success: bool
    file_id: str | None = None
    file_name: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class ConversationMessage:
    role: str
    content: str
    metadata: dict[str, object] = field(default_factory=dict)


class MailDispatcher(ABC):
    @abstractmethod
    def send(
        self,
        access_token: str,
        params: EmailParams,
        attachments: list[ResolvedAttachment] | None = None,
    ) -> DispatchResult:
        raise NotImplementedError


class EventDispatcher(ABC):
    @abstractmethod
    def create(self, access_token: str, params: EventParams) -> DispatchResult:
        raise NotImplementedError


class FileStore(ABC):
    @abstractmethod
    def search(
        self,
        access_token: str,
        name: str,
        *,
        exact: bool,
        limit: int,
    ) -> list[StoredFile]:
        raise NotImplementedError


class ConversationStore(ABC):
    @abstractmethod
    def append(self, user_key: str, message: ConversationMessage) -> None:
        raise NotImplementedError

    @abstractmethod
    def append_many(self, user_key: str, messages: list[ConversationMessage]) -> None:
        """Append ``messages`` contiguously; no other write may interleave."""
        raise NotImplementedError

    @abstractmethod
    def get(self, user_key: str) -> list[ConversationMessage]:
        raise NotImplementedError
