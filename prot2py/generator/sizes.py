"""Size calculation for structures with fixed and variant-dependent fields."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum, auto

from .bitfield import compile_bitfield
from .types import (
    AlternativeField,
    EmbeddedBitfield,
    FixedInt,
    RawBytes,
    Schema,
    Structure,
    StructField,
)
from .util import to_snake_case


class SizeKind(StrEnum):
    """Classification of size characteristics."""

    FIXED = auto()  # Min == Max, no alternative fields
    VARIANT = auto()  # Depends on the variants selected at runtime


@dataclass(frozen=True)
class SizeInfo:
    """Size information for a field or structure."""

    min_size: int
    max_size: int
    kind: SizeKind

    @property
    def is_fixed(self) -> bool:
        return self.kind == SizeKind.FIXED


@dataclass(frozen=True)
class StructSizeInfo:
    """Complete size information for a structure."""

    name: str
    size: SizeInfo
    # Alternative field name -> variant name -> variant size
    variants: dict[str, dict[str, SizeInfo]]


@dataclass(frozen=True)
class SchemaSizeInfo:
    """Size information for a whole schema."""

    bitfields: dict[str, int]  # Bytes per bit container
    structs: dict[str, StructSizeInfo]


class SizeCalculator:
    """Calculate encoded sizes of structures."""

    def __init__(self) -> None:
        self._cache: dict[Structure, SizeInfo] = {}

    def calc_field_size(self, field: StructField) -> SizeInfo:
        """Calculate size for a structure field."""
        if isinstance(field, FixedInt | RawBytes | EmbeddedBitfield):
            return SizeInfo(field.width, field.width, SizeKind.FIXED)

        sizes = [self.calc_struct_size(variant) for variant in field.group.variants]
        return SizeInfo(
            min(s.min_size for s in sizes),
            max(s.max_size for s in sizes),
            SizeKind.VARIANT,
        )

    def calc_struct_size(self, structure: Structure) -> SizeInfo:
        """Calculate size for a structure (with caching)."""
        if structure in self._cache:
            return self._cache[structure]

        total_min = 0
        total_max = 0
        overall_kind = SizeKind.FIXED

        for field in structure.fields:
            size = self.calc_field_size(field)
            total_min += size.min_size
            total_max += size.max_size
            if size.kind == SizeKind.VARIANT:
                overall_kind = SizeKind.VARIANT

        struct_size = SizeInfo(total_min, total_max, overall_kind)
        self._cache[structure] = struct_size

        return struct_size

    def calc_struct_info(self, structure: Structure) -> StructSizeInfo:
        variants = {
            field.name: {v.name: self.calc_struct_size(v) for v in field.group.variants}
            for field in structure.fields
            if isinstance(field, AlternativeField)
        }
        return StructSizeInfo(structure.name, self.calc_struct_size(structure), variants)

    def size_for(self, structure: Structure, selection: Mapping[str, str | int]) -> int:
        """Exact size of a structure once its variants are chosen.

        Args:
            structure: The structure to size.
            selection: Alternative field name to variant name or variant index
                (0 is the fallback). Selected variants must have a fixed size.

        Raises:
            KeyError: An alternative field is missing from ``selection``.
            ValueError: A selected variant is unknown or has variants of its own.
        """
        total = 0
        for field in structure.fields:
            if not isinstance(field, AlternativeField):
                total += field.width
                continue

            choice = selection[field.name]
            variants = field.group.variants
            if isinstance(choice, int):
                if not 0 <= choice < len(variants):
                    raise ValueError(f"{field.name} has no variant {choice}")
                variant = variants[choice]
            else:
                matches = [v for v in variants if to_snake_case(v.name) == to_snake_case(choice)]
                if not matches:
                    raise ValueError(f"{field.name} has no variant '{choice}'")
                variant = matches[0]

            size = self.calc_struct_size(variant)
            if not size.is_fixed:
                raise ValueError(f"variant '{variant.name}' of {field.name} is not fixed size")
            total += size.min_size
        return total


def calculate_sizes(schema: Schema) -> SchemaSizeInfo:
    """Calculate size information for a schema."""
    calc = SizeCalculator()
    bitfields = {b.name: compile_bitfield(b).size for b in schema.bitfields}
    structs = {s.name: calc.calc_struct_info(s) for s in schema.structures}
    return SchemaSizeInfo(bitfields=bitfields, structs=structs)
