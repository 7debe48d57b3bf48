"""Bit-layout compiler: packs named and reserved slots into one container."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from dataclasses_json import DataClassJsonMixin

from ..proto.serialization import SerializationError, UndeclaredDiscriminant
from .types import BitContainer, Enumerated, Named, Reserved
from .util import to_camel_case, to_snake_case
from .validation import (
    DuplicateEnumSymbol,
    DuplicateEnumValue,
    EnumValueOutOfRange,
    WidthMismatch,
    WidthOverflow,
    check_attribute,
    check_identifier,
    check_unique,
)

logger = logging.getLogger(__name__)

SUPPORTED_WIDTHS = (8, 16, 32, 64)


@dataclass(frozen=True)
class EnumMember(DataClassJsonMixin):
    """A validated enum symbol."""

    name: str
    value: int
    description: str | None = None


@dataclass(frozen=True)
class CompiledSlot(DataClassJsonMixin):
    """A named slot with its assigned bit position."""

    name: str
    attr: str
    description: str
    offset: int
    width: int
    enum_class: str | None = None
    members: tuple[EnumMember, ...] = ()

    @property
    def mask(self) -> int:
        return (1 << self.width) - 1

    @property
    def is_enumerated(self) -> bool:
        return self.enum_class is not None

    @property
    def domain_size(self) -> int:
        if self.is_enumerated:
            return len(self.members)
        return 1 << self.width

    def extract(self, raw: int) -> int:
        return (raw >> self.offset) & self.mask

    def symbol(self, value: int) -> EnumMember:
        for member in self.members:
            if member.value == value:
                return member
        raise UndeclaredDiscriminant(f"{value} is not a declared {self.enum_class} value")


@dataclass(frozen=True)
class ReservedRange(DataClassJsonMixin):
    offset: int
    width: int


@dataclass(frozen=True)
class CompiledBitField(DataClassJsonMixin):
    """Layout of a bit container, ready for emission."""

    name: str
    class_name: str
    description: str
    width: int
    slots: tuple[CompiledSlot, ...]
    reserved: tuple[ReservedRange, ...]

    @property
    def size(self) -> int:
        return self.width // 8

    @property
    def reserved_mask(self) -> int:
        mask = 0
        for rng in self.reserved:
            mask |= ((1 << rng.width) - 1) << rng.offset
        return mask

    def slot(self, name: str) -> CompiledSlot | None:
        """Find a slot by schema name or attribute name."""
        attr = to_snake_case(name)
        for slot in self.slots:
            if slot.attr == attr:
                return slot
        return None

    def decode(self, raw: int) -> dict[str, int | str]:
        """Split a container integer into slot values keyed by attribute.

        Enumerated slots decode to their symbol name.
        """
        values: dict[str, int | str] = {}
        for slot in self.slots:
            value = slot.extract(raw)
            values[slot.attr] = slot.symbol(value).name if slot.is_enumerated else value
        return values

    def encode(self, values: Mapping[str, int | str]) -> int:
        """Combine slot values (symbols or integers) into a container integer.

        Reserved bits are always zero.
        """
        raw = 0
        for slot in self.slots:
            value = values[slot.attr]
            if isinstance(value, str):
                value = next((m.value for m in slot.members if m.name == value), None)
                if value is None:
                    raise UndeclaredDiscriminant(f"{values[slot.attr]} is not a {slot.enum_class}")
            elif slot.is_enumerated:
                value = slot.symbol(value).value
            if not 0 <= value <= slot.mask:
                raise SerializationError(
                    f"{slot.attr} value {value} does not fit in {slot.width} bits"
                )
            raw |= value << slot.offset
        return raw


def compile_members(unit: str, width: int, domain: Enumerated) -> tuple[EnumMember, ...]:
    """Validate an enumerated domain of a ``width``-bit value."""
    symbols: set[str] = set()
    values: set[int] = set()
    members = []
    for value in domain.values:
        check_identifier(value.name, unit)
        if value.name in symbols:
            raise DuplicateEnumSymbol(f"{unit}: symbol '{value.name}' declared more than once")
        if value.value in values:
            raise DuplicateEnumValue(f"{unit}: value {value.value} declared more than once")
        if not 0 <= value.value < (1 << width):
            raise EnumValueOutOfRange(
                f"{unit}: {value.name} = {value.value} does not fit in {width} bits"
            )
        symbols.add(value.name)
        values.add(value.value)
        members.append(EnumMember(value.name, value.value, value.description))
    return tuple(members)


def compile_bitfield(container: BitContainer) -> CompiledBitField:
    """Assign bit offsets and validate a bit container.

    Raises:
        WidthOverflow: The slots need more than 64 bits.
        WidthMismatch: The total is not 8, 16, 32 or 64 bits, or a slot is empty.
        DuplicateFieldName: Two named slots share a name.
        DuplicateEnumValue, DuplicateEnumSymbol, EnumValueOutOfRange: Bad domain.
    """
    unit = container.name
    class_name = check_identifier(to_camel_case(container.name), unit)

    for slot in container.slots:
        if slot.width <= 0:
            raise WidthMismatch(f"{unit}: slot width must be positive, got {slot.width}")

    total = container.width
    if total > SUPPORTED_WIDTHS[-1]:
        raise WidthOverflow(f"{unit}: {total} bits exceed the {SUPPORTED_WIDTHS[-1]}-bit maximum")
    if total not in SUPPORTED_WIDTHS:
        raise WidthMismatch(f"{unit}: {total} bits is not one of {SUPPORTED_WIDTHS}")

    named = [slot for slot in container.slots if isinstance(slot, Named)]
    check_unique((to_snake_case(slot.name) for slot in named), unit)

    slots = []
    reserved = []
    offset = 0
    for slot in container.slots:
        if isinstance(slot, Reserved):
            reserved.append(ReservedRange(offset, slot.width))
        else:
            attr = check_attribute(to_snake_case(slot.name), unit)
            if isinstance(slot.domain, Enumerated):
                enum_class = check_identifier(to_camel_case(slot.name), unit)
                members = compile_members(f"{unit}.{slot.name}", slot.width, slot.domain)
            else:
                enum_class = None
                members = ()
            slots.append(
                CompiledSlot(
                    name=slot.name,
                    attr=attr,
                    description=slot.description,
                    offset=offset,
                    width=slot.width,
                    enum_class=enum_class,
                    members=members,
                )
            )
        offset += slot.width

    logger.debug("compiled bitfield %s: %d bits, %d named slots", class_name, total, len(slots))

    return CompiledBitField(
        name=container.name,
        class_name=class_name,
        description=container.description,
        width=total,
        slots=tuple(slots),
        reserved=tuple(reserved),
    )
