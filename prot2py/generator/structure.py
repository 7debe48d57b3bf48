"""Byte-structure compiler: lays out fixed fields, bitfields and variant fields."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin

from .alternatives import Selector, SelectorSource, VariantBinding, resolve_group
from .bitfield import CompiledBitField, EnumMember, compile_bitfield, compile_members
from .types import (
    AlternativeField,
    Alternatives,
    BitContainer,
    EmbeddedBitfield,
    Enumerated,
    FixedInt,
    RawBytes,
    Structure,
)
from .util import to_camel_case, to_snake_case
from .validation import (
    UnresolvedVariant,
    ValidationError,
    WidthMismatch,
    check_attribute,
    check_identifier,
    check_unique,
)

logger = logging.getLogger(__name__)

INT_WIDTHS = (1, 2, 4, 8)


class FieldKind(StrEnum):
    UINT = auto()
    BYTES = auto()
    BITFIELD = auto()
    ALTERNATIVE = auto()


@dataclass(frozen=True)
class CompiledField(DataClassJsonMixin):
    """A structure field with its Python name and static size.

    ``size`` is None for alternative fields, whose size depends on the variant.
    """

    kind: FieldKind
    name: str
    attr: str
    size: int | None
    type_name: str | None = None
    binding: VariantBinding | None = None

    @property
    def static_size(self) -> int:
        if self.size is None:
            raise ValueError(f"{self.name} has no static size")
        return self.size


@dataclass(frozen=True)
class CompiledContext(DataClassJsonMixin):
    """A caller supplied selector value."""

    name: str
    attr: str
    width: int
    description: str
    members: tuple[EnumMember, ...] = ()


@dataclass(frozen=True)
class CompiledStructure(DataClassJsonMixin):
    """Layout of a structure, ready for emission."""

    name: str
    class_name: str
    description: str
    fields: tuple[CompiledField, ...]
    context: tuple[CompiledContext, ...]

    @property
    def fixed_size(self) -> int:
        """Bytes taken by the fields whose size does not depend on a variant."""
        return sum(f.size for f in self.fields if f.size is not None)

    @property
    def is_fixed(self) -> bool:
        return all(f.size is not None for f in self.fields)

    @property
    def bindings(self) -> list[VariantBinding]:
        return [f.binding for f in self.fields if f.binding is not None]


def _embedded(
    unit: str, item: EmbeddedBitfield, bitfields: Mapping[str, CompiledBitField]
) -> CompiledBitField:
    if isinstance(item.container, BitContainer):
        compiled = compile_bitfield(item.container)
    else:
        found = bitfields.get(to_camel_case(item.container))
        if found is None:
            raise ValidationError(f"{unit}.{item.name}: unknown bitfield '{item.container}'")
        compiled = found
    if item.width != compiled.size:
        raise WidthMismatch(
            f"{unit}.{item.name}: {compiled.class_name} is {compiled.size} bytes, "
            f"declared as {item.width}"
        )
    return compiled


def _resolve_selector(
    unit: str,
    item: AlternativeField,
    preceding: dict[str, tuple[CompiledField, CompiledBitField | None]],
    context: dict[str, CompiledContext],
    later: set[str],
) -> Selector:
    parts = item.selector.split(".")
    head = to_snake_case(parts[0])
    where = f"{unit}.{item.name}: selector '{item.selector}'"

    if head in preceding:
        compiled, layout = preceding[head]
        if compiled.kind == FieldKind.UINT and len(parts) == 1:
            return Selector(
                item.selector, SelectorSource.FIELD, compiled.attr, None, compiled.static_size * 8
            )
        if layout is not None and len(parts) == 2:
            slot = layout.slot(parts[1])
            if slot is None:
                raise UnresolvedVariant(f"{where}: {layout.class_name} has no slot '{parts[1]}'")
            return Selector(
                item.selector,
                SelectorSource.SLOT,
                compiled.attr,
                slot.attr,
                slot.width,
                slot.members,
            )
        raise UnresolvedVariant(f"{where}: a {compiled.kind} field cannot select a variant")

    if head in context and len(parts) == 1:
        param = context[head]
        return Selector(
            item.selector, SelectorSource.CONTEXT, param.attr, None, param.width, param.members
        )

    if head in later:
        raise UnresolvedVariant(f"{where}: the selector must precede the field it selects")
    raise UnresolvedVariant(f"{where}: no such field or context value")


def compile_structure(
    structure: Structure,
    alternatives: Alternatives | None = None,
    bitfields: Mapping[str, CompiledBitField] | None = None,
) -> CompiledStructure:
    """Lay out a structure and bind its alternative fields.

    Args:
        structure: The structure to compile.
        alternatives: Variant groups rendered with this structure; every
            alternative field must use one of them.
        bitfields: Known bitfield layouts by class name, for bitfields
            referenced by name.

    Raises:
        DuplicateFieldName: Two fields or context values share a name.
        WidthMismatch: An integer or byte field has an unsupported width.
        UnresolvedVariant: An alternative field cannot be bound.
    """
    alternatives = alternatives or Alternatives()
    bitfields = bitfields or {}
    unit = structure.name
    class_name = check_identifier(to_camel_case(structure.name), unit)

    check_unique(
        [to_snake_case(f.name) for f in structure.fields]
        + [to_snake_case(c.name) for c in structure.context],
        unit,
    )

    context: dict[str, CompiledContext] = {}
    for param in structure.context:
        attr = check_attribute(to_snake_case(param.name), unit)
        if param.width <= 0:
            raise WidthMismatch(f"{unit}.{param.name}: width must be positive")
        members = ()
        if isinstance(param.domain, Enumerated):
            members = compile_members(f"{unit}.{param.name}", param.width, param.domain)
        context[attr] = CompiledContext(param.name, attr, param.width, param.description, members)

    preceding: dict[str, tuple[CompiledField, CompiledBitField | None]] = {}
    later = {to_snake_case(f.name) for f in structure.fields}
    fields = []
    for item in structure.fields:
        attr = check_attribute(to_snake_case(item.name), unit)
        later.discard(attr)
        layout: CompiledBitField | None = None

        if isinstance(item, FixedInt):
            if item.width not in INT_WIDTHS:
                raise WidthMismatch(f"{unit}.{item.name}: integers are 1, 2, 4 or 8 bytes")
            compiled = CompiledField(FieldKind.UINT, item.name, attr, item.width)
        elif isinstance(item, RawBytes):
            if item.width <= 0:
                raise WidthMismatch(f"{unit}.{item.name}: byte arrays need a positive width")
            compiled = CompiledField(FieldKind.BYTES, item.name, attr, item.width)
        elif isinstance(item, EmbeddedBitfield):
            layout = _embedded(unit, item, bitfields)
            compiled = CompiledField(
                FieldKind.BITFIELD, item.name, attr, layout.size, layout.class_name
            )
        else:
            group = alternatives.get(item.group.name)
            if group != item.group:
                raise UnresolvedVariant(
                    f"{unit}.{item.name}: group '{item.group.name}' is not part of "
                    "the alternatives rendered with this structure"
                )
            selector = _resolve_selector(unit, item, preceding, context, later)
            binding = resolve_group(item.group, selector, unit)
            compiled = CompiledField(
                FieldKind.ALTERNATIVE, item.name, attr, None, binding.group_class, binding
            )

        preceding[attr] = (compiled, layout)
        fields.append(compiled)

    logger.debug("compiled structure %s: %d fields", class_name, len(fields))

    return CompiledStructure(
        name=structure.name,
        class_name=class_name,
        description=structure.description,
        fields=tuple(fields),
        context=tuple(context.values()),
    )
