from __future__ import annotations


class AgentError(Exception):
    """Base for every error the HTTP layer turns into a JSON ``{error}`` body."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigError(AgentError):
    status_code = 500


class Unauthenticated(AgentError):
    status_code = 401


class MalformedAuth(AgentError):
    status_code = 401


class Unauthorized(AgentError):
    status_code = 401


class RejectedInput(AgentError):
    status_code = 400


class ExecutionError(AgentError):
    status_code = 500


class DeployRejected(AgentError):
    status_code = 400


class AlreadyInProgress(DeployRejected):
    def __init__(self) -> None:
        super().__init__("Deploy already in progress")


class RateLimited(DeployRejected):
    def __init__(self, retry_after: int) -> None:
        super().__init__(
            "Deploy already triggered recently. "
            f"Please wait {retry_after}s before trying again."
        )
        self.retry_after = retry_after
