"""Research bot catalog."""

from bot_workspace.catalog.bots import ATTACHMENT_FIELD, BOTS, default_catalog
from bot_workspace.catalog.registry import ToolCatalog

__all__ = [
    "ATTACHMENT_FIELD",
    "BOTS",
    "ToolCatalog",
    "default_catalog",
]
