"""Schema definitions for bit containers, structures and variant groups.

Every schema value is an immutable dataclass. Builder methods return a new
value, so a schema can be assembled with chained calls:

    flags = (
        BitContainer("Flags", "Example flags.")
        .add_bit_field("kind", "Frame kind.", 2, lambda v: v.add_enum_value("A", 0))
        .add_reserved(6)
    )
"""

from collections.abc import Callable
from dataclasses import dataclass, field, replace

from dataclasses_json import DataClassJsonMixin

from .validation import ValidationError


@dataclass(frozen=True)
class EnumValue(DataClassJsonMixin):
    """A single symbol of an enumerated domain."""

    name: str
    value: int
    description: str | None = None


@dataclass(frozen=True)
class Numeric(DataClassJsonMixin):
    """Domain of a raw unsigned integer, passed through unvalidated."""


@dataclass(frozen=True)
class Enumerated(DataClassJsonMixin):
    """Closed symbolic domain, in declaration order."""

    values: tuple[EnumValue, ...] = ()


Domain = Numeric | Enumerated


class DomainBuilder:
    """Accumulates the domain of one slot.

    Handed to the callback of ``BitContainer.add_bit_field`` and
    ``Structure.add_context``; the callback returns it after adding values.
    """

    def __init__(self) -> None:
        self._values: list[EnumValue] = []
        self._numeric = False

    def add_enum_value(self, name: str, value: int) -> "DomainBuilder":
        self._values.append(EnumValue(name, value))
        return self

    def add_enum_value_desc(self, name: str, description: str, value: int) -> "DomainBuilder":
        self._values.append(EnumValue(name, value, description))
        return self

    def numeric(self) -> "DomainBuilder":
        self._numeric = True
        return self

    def build(self, owner: str) -> Domain:
        if self._numeric and self._values:
            raise ValidationError(f"{owner}: a numeric domain cannot declare enum values")
        if not self._values:
            return Numeric()
        return Enumerated(tuple(self._values))


DomainCallback = Callable[[DomainBuilder], DomainBuilder]


def build_domain(build: DomainCallback | None, owner: str) -> Domain:
    """Run a domain callback against a fresh builder."""
    builder = DomainBuilder()
    if build is not None:
        builder = build(builder)
    return builder.build(owner)


@dataclass(frozen=True)
class Reserved(DataClassJsonMixin):
    """Padding bits, always encoded as zero and never surfaced."""

    width: int


@dataclass(frozen=True)
class Named(DataClassJsonMixin):
    """A named sub-field of a bit container."""

    name: str
    description: str
    width: int
    domain: Domain = field(default_factory=Numeric)


BitSlot = Reserved | Named


@dataclass(frozen=True)
class BitContainer(DataClassJsonMixin):
    """Fixed-width integer holding several sub-byte fields, LSB first."""

    name: str
    description: str = ""
    slots: tuple[BitSlot, ...] = ()

    def add_bit_field(
        self,
        name: str,
        description: str,
        width: int,
        build: DomainCallback | None = None,
    ) -> "BitContainer":
        domain = build_domain(build, f"{self.name}.{name}")
        return replace(self, slots=self.slots + (Named(name, description, width, domain),))

    def add_reserved(self, width: int) -> "BitContainer":
        return replace(self, slots=self.slots + (Reserved(width),))

    @property
    def width(self) -> int:
        return sum(slot.width for slot in self.slots)


@dataclass(frozen=True)
class FixedInt(DataClassJsonMixin):
    """Little-endian unsigned integer of 1, 2, 4 or 8 bytes."""

    name: str
    width: int


@dataclass(frozen=True)
class RawBytes(DataClassJsonMixin):
    """Fixed-length byte array."""

    name: str
    width: int


@dataclass(frozen=True)
class EmbeddedBitfield(DataClassJsonMixin):
    """A bit container embedded in a structure.

    ``container`` is the container itself or the name of one declared in, or
    imported into, the same output file.
    """

    name: str
    container: BitContainer | str
    width: int

    @property
    def container_name(self) -> str:
        if isinstance(self.container, BitContainer):
            return self.container.name
        return self.container


@dataclass(frozen=True)
class AlternativeField(DataClassJsonMixin):
    """A field whose shape is chosen by an earlier field or a context value.

    ``selector`` names a preceding ``FixedInt``, a slot of a preceding embedded
    bitfield as ``field.slot``, or a context parameter of the structure.
    """

    name: str
    group: "AlternativeOptions"
    selector: str


StructField = FixedInt | RawBytes | EmbeddedBitfield | AlternativeField


@dataclass(frozen=True)
class ContextParam(DataClassJsonMixin):
    """A selector value supplied by the caller instead of read from the wire."""

    name: str
    width: int
    domain: Domain = field(default_factory=Numeric)
    description: str = ""


@dataclass(frozen=True)
class Structure(DataClassJsonMixin):
    """Byte-granular structure. With no fields it is the empty (absent) shape."""

    name: str
    description: str = ""
    fields: tuple[StructField, ...] = ()
    context: tuple[ContextParam, ...] = ()

    @classmethod
    def simple(cls, name: str, field_name: str, width: int) -> "Structure":
        """A structure holding a single raw byte array."""
        return cls(name).add_bytes_field(field_name, width)

    def _add(self, item: StructField) -> "Structure":
        return replace(self, fields=self.fields + (item,))

    def add_int_field(self, name: str, width: int) -> "Structure":
        return self._add(FixedInt(name, width))

    def add_u8_field(self, name: str) -> "Structure":
        return self.add_int_field(name, 1)

    def add_u16_field(self, name: str) -> "Structure":
        return self.add_int_field(name, 2)

    def add_u32_field(self, name: str) -> "Structure":
        return self.add_int_field(name, 4)

    def add_u64_field(self, name: str) -> "Structure":
        return self.add_int_field(name, 8)

    def add_bytes_field(self, name: str, width: int) -> "Structure":
        return self._add(RawBytes(name, width))

    def add_bitfield(self, name: str, container: BitContainer | str, width: int) -> "Structure":
        return self._add(EmbeddedBitfield(name, container, width))

    def add_alt_field(
        self, name: str, group: "AlternativeOptions", selector: str
    ) -> "Structure":
        return self._add(AlternativeField(name, group, selector))

    def add_context(
        self,
        name: str,
        width: int,
        build: DomainCallback | None = None,
        description: str = "",
    ) -> "Structure":
        domain = build_domain(build, f"{self.name}.{name}")
        param = ContextParam(name, width, domain, description)
        return replace(self, context=self.context + (param,))

    @property
    def is_fixed(self) -> bool:
        return not any(isinstance(f, AlternativeField) for f in self.fields)


@dataclass(frozen=True)
class AlternativeOptions(DataClassJsonMixin):
    """Named variant group: a fallback shape plus the inserted variants."""

    name: str
    fallback: Structure
    options: tuple[Structure, ...] = ()

    def insert_type(self, structure: Structure) -> "AlternativeOptions":
        return replace(self, options=self.options + (structure,))

    @property
    def variants(self) -> tuple[Structure, ...]:
        return (self.fallback, *self.options)


@dataclass(frozen=True)
class Alternatives(DataClassJsonMixin):
    """Variant groups rendered together for one owning structure."""

    groups: tuple[AlternativeOptions, ...] = ()

    def insert(self, group: AlternativeOptions) -> "Alternatives":
        if group in self.groups:
            return self
        return replace(self, groups=self.groups + (group,))

    def get(self, name: str) -> AlternativeOptions | None:
        for group in self.groups:
            if group.name == name:
                return group
        return None


SchemaItem = BitContainer | Structure | AlternativeOptions


@dataclass(frozen=True)
class Schema(DataClassJsonMixin):
    """Declarations of one schema file, in declaration order."""

    items: tuple[SchemaItem, ...] = ()

    @property
    def bitfields(self) -> list[BitContainer]:
        return [item for item in self.items if isinstance(item, BitContainer)]

    @property
    def structures(self) -> list[Structure]:
        return [item for item in self.items if isinstance(item, Structure)]

    @property
    def groups(self) -> list[AlternativeOptions]:
        return [item for item in self.items if isinstance(item, AlternativeOptions)]

    @property
    def alternatives(self) -> Alternatives:
        alternatives = Alternatives()
        for group in self.groups:
            alternatives = alternatives.insert(group)
        return alternatives
