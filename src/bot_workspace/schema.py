"""Request schema resolution for research bots.

Turns a tool's declarative field list plus the values collected so far into the
ordered list of fields currently required, and validates a submission against
that list before anything is sent to the backend.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from bot_workspace.catalog.bots import default_catalog
from bot_workspace.catalog.registry import ToolCatalog
from bot_workspace.exceptions import ValidationError
from bot_workspace.models.invocation import Attachment, FieldValue, InvocationRequest
from bot_workspace.models.tool import FieldKind, FieldSpec, ToolDescriptor

logger = logging.getLogger(__name__)

ATTACHMENT_PROBLEM_KEY = "attachment"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    return number if math.isfinite(number) else None


class SchemaResolver:
    """Resolves the active schema of a tool against current input values.

    Pure and read-only: identical inputs always produce an identical,
    identically ordered result.
    """

    def __init__(self, catalog: ToolCatalog | None = None) -> None:
        self._catalog = catalog if catalog is not None else default_catalog()

    @property
    def catalog(self) -> ToolCatalog:
        return self._catalog

    def active_fields(
        self,
        tool_id: str,
        current_values: Mapping[str, Any] | None = None,
    ) -> list[FieldSpec]:
        """Return the fields currently required for tool_id, in declared order.

        A conditional field is included when its controlling field's value
        matches. An unset or cleared controlling field resolves to its default.

        Raises:
            UnknownToolError: If tool_id is not in the catalog
        """
        tool = self._catalog.get(tool_id)
        values = current_values or {}
        return [spec for spec in tool.fields if self._is_active(tool, spec, values)]

    def initial_values(self, tool_id: str) -> dict[str, FieldValue]:
        """Default values for the fields active on a fresh form."""
        return {
            spec.name: spec.default
            for spec in self.active_fields(tool_id)
            if spec.default is not None
        }

    def problems(
        self,
        tool_id: str,
        values: Mapping[str, Any],
        attachment: Attachment | None = None,
    ) -> dict[str, str]:
        """Return {field name: reason} for everything blocking submission."""
        _, problems = self._collect(tool_id, values, attachment)
        return problems

    def build_request(
        self,
        tool_id: str,
        values: Mapping[str, Any],
        attachment: Attachment | None = None,
    ) -> InvocationRequest:
        """Validate values against the active schema and build the request.

        Missing active values fall back to field defaults; optional fields with
        no value are sent as empty strings; values of inactive fields are
        dropped.

        Raises:
            UnknownToolError: If tool_id is not in the catalog
            ValidationError: If any active field is missing or malformed
        """
        collected, problems = self._collect(tool_id, values, attachment)
        if problems:
            logger.debug(f"Rejected submission for {tool_id}: {problems}")
            raise ValidationError(tool_id, problems)
        field_values, accepts_file = collected
        return InvocationRequest(
            tool_id=tool_id,
            field_values=field_values,
            attachment=attachment if accepts_file else None,
        )

    def _collect(
        self,
        tool_id: str,
        values: Mapping[str, Any],
        attachment: Attachment | None,
    ) -> tuple[tuple[dict[str, FieldValue], bool], dict[str, str]]:
        active = self.active_fields(tool_id, values)
        field_values: dict[str, FieldValue] = {}
        problems: dict[str, str] = {}
        accepts_file = False

        for spec in active:
            if spec.kind == FieldKind.FILE:
                accepts_file = True
                if spec.required and attachment is None:
                    problems[spec.name] = "a file is required"
                continue

            value = values.get(spec.name)
            if _is_blank(value):
                value = spec.default
            if _is_blank(value):
                if spec.required:
                    problems[spec.name] = "is required"
                else:
                    field_values[spec.name] = ""
                continue

            if spec.kind == FieldKind.NUMBER:
                if _parse_number(value) is None:
                    problems[spec.name] = f"must be a number, got {value!r}"
                    continue
                if isinstance(value, str):
                    value = value.strip()
            elif spec.kind == FieldKind.CHOICE:
                if str(value) not in spec.choice_values:
                    allowed = ", ".join(spec.choice_values)
                    problems[spec.name] = f"must be one of {allowed}"
                    continue
                value = str(value)
            elif not isinstance(value, str):
                value = str(value)

            field_values[spec.name] = value

        if attachment is not None and not accepts_file:
            problems[ATTACHMENT_PROBLEM_KEY] = "this tool does not accept a file"

        return (field_values, accepts_file), problems

    @staticmethod
    def _is_active(
        tool: ToolDescriptor,
        spec: FieldSpec,
        values: Mapping[str, Any],
    ) -> bool:
        dep = spec.depends_on
        if dep is None:
            return True
        current = values.get(dep.field)
        if _is_blank(current):
            current = tool.controller(dep.field).default
        return str(current) == dep.value
