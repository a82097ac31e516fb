class ActionAgentError(Exception):
    code = "action_agent_error"


class ValidationError(ActionAgentError, ValueError):
    code = "validation_error"


class MissingRecipient(ValidationError):
    code = "missing_recipient"


class MissingTitle(ValidationError):
    code = "missing_title"


class InvalidDateRange(ValidationError):
    code = "invalid_date_range"


class ModelError(ActionAgentError, RuntimeError):
    code = "model_error"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ModelTransientOverload(ModelError):
    code = "model_transient_overload"


class ModelHardFailure(ModelError):
    code = "model_hard_failure"


class AttachmentNotFound(ActionAgentError, LookupError):
    code = "attachment_not_found"


class DispatchFailure(ActionAgentError, RuntimeError):
    code = "dispatch_failure"
