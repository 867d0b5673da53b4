"""Bot Workspace - research bot catalog, invocation and response rendering."""

__version__ = "0.1.0"

from bot_workspace.exceptions import (
    ClipboardError,
    InvocationError,
    UnknownToolError,
    ValidationError,
)

__all__ = [
    "__version__",
    "ClipboardError",
    "InvocationError",
    "UnknownToolError",
    "ValidationError",
]
