"""Data models for Bot Workspace - the contracts."""

from bot_workspace.models.invocation import (
    Attachment,
    FieldValue,
    InvocationPhase,
    InvocationRequest,
    InvocationResult,
    InvocationState,
)
from bot_workspace.models.tool import (
    Choice,
    FieldDependency,
    FieldKind,
    FieldSpec,
    ToolDescriptor,
)

__all__ = [
    "Attachment",
    "Choice",
    "FieldDependency",
    "FieldKind",
    "FieldSpec",
    "FieldValue",
    "InvocationPhase",
    "InvocationRequest",
    "InvocationResult",
    "InvocationState",
    "ToolDescriptor",
]
