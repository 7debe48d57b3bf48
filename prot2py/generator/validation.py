"""Schema validation errors and shared checks."""

import keyword
from collections.abc import Iterable


class ValidationError(RuntimeError):
    """Raised when a schema fails to compile."""


class WidthOverflow(ValidationError):
    """Bit container is wider than the largest supported container."""


class WidthMismatch(ValidationError):
    """A width does not land on a supported size."""


class DuplicateFieldName(ValidationError):
    """A name is repeated within one container or structure."""


class DuplicateEnumValue(ValidationError):
    """An integer value is repeated within one enumerated domain."""


class DuplicateEnumSymbol(ValidationError):
    """A symbol is repeated within one enumerated domain."""


class EnumValueOutOfRange(ValidationError):
    """An enumerated value does not fit in its slot."""


class InvalidName(ValidationError):
    """A name cannot be turned into a Python identifier."""


class UnresolvedVariant(ValidationError):
    """A variant group cannot be bound to its selector."""


class DuplicateDeclaration(ValidationError):
    """Two declarations of one output file share a Python name."""


# Attribute names taken by generated methods, codec arguments and runtime helpers
RESERVED_ATTRS = frozenset(
    [
        "pack",
        "unpack",
        "pack_into",
        "to_raw",
        "from_raw",
        "size",
        "data",
        "offset",
        "context",
        "self",
        "cls",
        "read_bytes",
        "check_range",
        "check_length",
        "check_variant",
        "context_value",
        "select_variant",
    ]
)


def check_identifier(name: str, unit: str) -> str:
    """Return ``name`` if it is usable as a Python identifier."""
    if not name.isidentifier() or keyword.iskeyword(name):
        raise InvalidName(f"{unit}: '{name}' is not a valid identifier")
    return name


def check_attribute(name: str, unit: str) -> str:
    """Return ``name`` if it is usable as a generated attribute."""
    check_identifier(name, unit)
    if name in RESERVED_ATTRS:
        raise InvalidName(f"{unit}: '{name}' is reserved by the generated code")
    return name


def check_unique(names: Iterable[str], unit: str) -> None:
    """Raise DuplicateFieldName on the first repeated name."""
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise DuplicateFieldName(f"{unit}: field '{name}' declared more than once")
        seen.add(name)
