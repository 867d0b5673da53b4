"""Custom exceptions for Bot Workspace."""


class UnknownToolError(LookupError):
    """Raised when a tool id is not present in the catalog."""

    def __init__(self, tool_id: str) -> None:
        self.tool_id = tool_id
        super().__init__(f"Tool not found: {tool_id!r}")


class ValidationError(ValueError):
    """Raised when a submission does not satisfy the active schema.

    Raised before any network call is made.
    """

    def __init__(self, tool_id: str, problems: dict[str, str]) -> None:
        self.tool_id = tool_id
        self.problems = dict(problems)
        details = "; ".join(f"{name}: {reason}" for name, reason in self.problems.items())
        super().__init__(f"Invalid input for {tool_id}: {details}")


class InvocationError(Exception):
    """Raised when a backend call failed (transport, timeout or non-2xx)."""

    def __init__(self, tool_id: str, reason: str, status_code: int | None = None) -> None:
        self.tool_id = tool_id
        self.reason = reason
        self.status_code = status_code
        super().__init__(reason)


class ClipboardError(Exception):
    """Raised when the system clipboard could not be written."""
