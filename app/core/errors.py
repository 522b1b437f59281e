"""Exceptions raised while dispatching actions.

Two channels exist. ``ExecutionError`` and its subclasses describe failures the
executor reports back as ``ActionResponse(successful=False, error=...)``.
``ActionTransportError`` is raised to the caller untouched.
"""


class ExecutionError(Exception):
    """A failure reported to the caller as a structured result."""


class ActionNotFoundError(ExecutionError):
    def __init__(self, action: str) -> None:
        super().__init__(f"Action '{action}' not found")
        self.action = action


class InvalidParamsError(ExecutionError):
    def __init__(self, action: str, problems: list[str]) -> None:
        super().__init__(f"Invalid parameters for {action}: " + "; ".join(problems))
        self.action = action
        self.problems = problems


class ConnectionNotFoundError(ExecutionError):
    def __init__(self, connected_account_id: str) -> None:
        super().__init__(f"Connected account '{connected_account_id}' not found")
        self.connected_account_id = connected_account_id


class NoActiveConnectionError(ExecutionError):
    def __init__(self, entity_id: str, app: str, detail: str | None = None) -> None:
        message = f"No active connection for app '{app}' and entity '{entity_id}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.entity_id = entity_id
        self.app = app


class ProviderError(ExecutionError):
    """The target application rejected the call."""

    def __init__(self, app: str, message: str, status_code: int | None = None) -> None:
        prefix = f"{app} returned {status_code}" if status_code else f"{app} error"
        super().__init__(f"{prefix}: {message}")
        self.app = app
        self.status_code = status_code


class ActionTransportError(Exception):
    """Network-level failure talking to a provider. Always raised, never reported."""

    def __init__(self, action: str, message: str) -> None:
        super().__init__(f"Transport failure executing {action}: {message}")
        self.action = action
