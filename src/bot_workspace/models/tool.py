"""Tool descriptor and field specification models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class FieldKind(str, Enum):
    """Input kinds a tool may ask for."""

    TEXT = "text"
    LONG_TEXT = "long-text"
    NUMBER = "number"
    CHOICE = "enumerated-choice"
    FILE = "file"


@dataclass(frozen=True)
class Choice:
    """One allowed value of an enumerated-choice field."""

    value: str
    label: str


@dataclass(frozen=True)
class FieldDependency:
    """Makes a field active only while another field holds a given value."""

    field: str
    value: str


@dataclass(frozen=True)
class FieldSpec:
    """One input a tool requires before it can be invoked.

    Attributes:
        name: Key used in the outgoing request.
        kind: What sort of input this is.
        label: Display label.
        required: Whether a non-blank value must be supplied.
        choices: Allowed values, only for CHOICE fields. The default is the
            first choice unless given explicitly.
        default: Initial value, if any.
        depends_on: Controlling field and value for conditional fields.
        placeholder: Display hint.
    """

    name: str
    kind: FieldKind
    label: str = ""
    required: bool = False
    choices: tuple[Choice, ...] = ()
    default: str | int | float | None = None
    depends_on: FieldDependency | None = None
    placeholder: str = ""

    def __post_init__(self) -> None:
        if self.kind == FieldKind.CHOICE:
            if not self.choices:
                raise ValueError(f"Choice field '{self.name}' needs at least one choice")
            if self.default is None:
                object.__setattr__(self, "default", self.choices[0].value)
            elif self.default not in self.choice_values:
                raise ValueError(
                    f"Default {self.default!r} of '{self.name}' is not one of its choices"
                )
        elif self.choices:
            raise ValueError(f"Only choice fields may declare choices ('{self.name}')")

    @property
    def choice_values(self) -> tuple[str, ...]:
        return tuple(c.value for c in self.choices)


@dataclass(frozen=True)
class ToolDescriptor:
    """Immutable metadata and input schema for one research bot.

    `name`, `category`, `version`, `description` and `features` are display
    metadata only. `fields` is the full declared schema in display order,
    including conditional fields.
    """

    id: str
    name: str
    category: str
    version: str
    description: str = ""
    features: tuple[str, ...] = ()
    accepts_attachment: bool = False
    fields: tuple[FieldSpec, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.fields:
            raise ValueError(f"Tool '{self.id}' declares no fields")

        seen: dict[str, list[FieldSpec]] = {}
        for spec in self.fields:
            if spec.kind == FieldKind.FILE and not self.accepts_attachment:
                raise ValueError(
                    f"Tool '{self.id}' does not accept attachments but declares file field '{spec.name}'"
                )
            if spec.depends_on is not None:
                self._check_dependency(spec, seen)
            seen.setdefault(spec.name, []).append(spec)

        for name, specs in seen.items():
            if len(specs) > 1 and not _mutually_exclusive(specs):
                raise ValueError(f"Tool '{self.id}' declares field '{name}' more than once")

        if all(spec.depends_on is not None for spec in self.fields):
            raise ValueError(f"Tool '{self.id}' has no unconditional fields")

    def _check_dependency(self, spec: FieldSpec, earlier: dict[str, list[FieldSpec]]) -> None:
        dep = spec.depends_on
        controllers = earlier.get(dep.field, [])
        if len(controllers) != 1:
            raise ValueError(
                f"Field '{spec.name}' of '{self.id}' depends on unknown or later field '{dep.field}'"
            )
        controller = controllers[0]
        if controller.kind != FieldKind.CHOICE or controller.depends_on is not None:
            raise ValueError(
                f"Field '{spec.name}' of '{self.id}' must depend on an unconditional choice field"
            )
        if dep.value not in controller.choice_values:
            raise ValueError(
                f"Field '{spec.name}' of '{self.id}' depends on {dep.field}={dep.value!r}, "
                f"which is not an allowed value"
            )

    def controller(self, name: str) -> FieldSpec | None:
        """Return the unconditional field with this name, if any."""
        for spec in self.fields:
            if spec.name == name and spec.depends_on is None:
                return spec
        return None

    @property
    def field_names(self) -> list[str]:
        """Distinct declared field names, in declaration order."""
        return list(dict.fromkeys(spec.name for spec in self.fields))


def _mutually_exclusive(specs: list[FieldSpec]) -> bool:
    """True if the specs can never be active at the same time."""
    deps = [spec.depends_on for spec in specs]
    if any(dep is None for dep in deps):
        return False
    if len({dep.field for dep in deps}) != 1:
        return False
    return len({dep.value for dep in deps}) == len(deps)
