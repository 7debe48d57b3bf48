"""Schema definition parser using Lark."""

import os
from dataclasses import dataclass, replace
from typing import Any

from lark import Lark, Token
from lark.visitors import Transformer

from .types import (
    AlternativeOptions,
    BitContainer,
    ContextParam,
    Enumerated,
    EnumValue,
    Named,
    Numeric,
    Reserved,
    Schema,
    SchemaItem,
    Structure,
)
from .validation import DuplicateDeclaration, ValidationError

_g_parser: Lark | None = None


@dataclass
class _UInt:
    width: int


@dataclass
class _Bytes:
    width: int


@dataclass
class _Reference:
    name: str
    selector: str | None


@dataclass
class _Field:
    name: str
    type: _UInt | _Bytes | _Reference


@dataclass
class _Struct:
    name: str
    description: str | None
    members: list[_Field | ContextParam]


@dataclass
class _Group:
    name: str
    variants: list[str]


class TreeTransformer(Transformer):
    """Transform parse tree into schema values."""

    def start(self, args: list[Any]) -> list[Any]:
        return list(args)

    def description(self, args: list[Any]) -> str:
        return str(args[0])[1:-1].replace('\\"', '"')

    def number(self, args: list[Any]) -> int:
        token: Token = args[0]
        if token.type == "INT":
            return int(token)
        return int(token, 0)

    def enum_value(self, args: list[Any]) -> EnumValue:
        return EnumValue(name=str(args[0]), value=args[1], description=args[2])

    def numeric(self, args: list[Any]) -> Numeric:
        return Numeric()

    def enumerated(self, args: list[Any]) -> Enumerated | Numeric:
        if not args:
            return Numeric()
        return Enumerated(tuple(args))

    def reserved(self, args: list[Any]) -> Reserved:
        return Reserved(width=int(args[0]))

    def named_slot(self, args: list[Any]) -> Named:
        return Named(
            name=str(args[0]),
            description=args[2] or "",
            width=int(args[1]),
            domain=args[3] or Numeric(),
        )

    def bitfield(self, args: list[Any]) -> BitContainer:
        return BitContainer(name=str(args[0]), description=args[1] or "", slots=tuple(args[2:]))

    def context(self, args: list[Any]) -> ContextParam:
        return ContextParam(
            name=str(args[0]),
            width=int(args[1]),
            domain=args[3] or Numeric(),
            description=args[2] or "",
        )

    def u8(self, args: list[Any]) -> _UInt:
        return _UInt(1)

    def u16(self, args: list[Any]) -> _UInt:
        return _UInt(2)

    def u32(self, args: list[Any]) -> _UInt:
        return _UInt(4)

    def u64(self, args: list[Any]) -> _UInt:
        return _UInt(8)

    def raw_bytes(self, args: list[Any]) -> _Bytes:
        return _Bytes(int(args[0]))

    def selector(self, args: list[Any]) -> str:
        return ".".join(str(a) for a in args)

    def reference(self, args: list[Any]) -> _Reference:
        return _Reference(name=str(args[0]), selector=args[1])

    def field(self, args: list[Any]) -> _Field:
        return _Field(name=str(args[0]), type=args[1])

    def struct(self, args: list[Any]) -> _Struct:
        return _Struct(name=str(args[0]), description=args[1], members=list(args[2:]))

    def alternatives(self, args: list[Any]) -> _Group:
        return _Group(name=str(args[0]), variants=[str(a) for a in args[1:]])


class _Resolver:
    """Turns parsed declarations into schema values, resolving names in order."""

    def __init__(self) -> None:
        self.bitfields: dict[str, BitContainer] = {}
        self.structures: dict[str, Structure] = {}
        self.groups: dict[str, AlternativeOptions] = {}
        self.items: list[SchemaItem] = []

    def _declare(self, name: str) -> None:
        if name in self.bitfields or name in self.structures or name in self.groups:
            raise DuplicateDeclaration(f"'{name}' is declared more than once")

    def bitfield(self, item: BitContainer) -> None:
        self._declare(item.name)
        self.bitfields[item.name] = item
        self.items.append(item)

    def group(self, item: _Group) -> None:
        self._declare(item.name)
        variants = []
        for name in item.variants:
            if name not in self.structures:
                raise ValidationError(f"{item.name}: unknown structure '{name}'")
            variants.append(self.structures[name])
        group = AlternativeOptions(item.name, variants[0], tuple(variants[1:]))
        self.groups[item.name] = group
        self.items.append(group)

    def struct(self, item: _Struct) -> None:
        self._declare(item.name)
        structure = Structure(item.name, item.description or "")
        context = []
        for member in item.members:
            if isinstance(member, ContextParam):
                context.append(member)
            else:
                structure = self._field(structure, member)
        structure = replace(structure, context=tuple(context))
        self.structures[item.name] = structure
        self.items.append(structure)

    def _field(self, structure: Structure, field: _Field) -> Structure:
        kind = field.type
        if isinstance(kind, _UInt):
            return structure.add_int_field(field.name, kind.width)
        if isinstance(kind, _Bytes):
            return structure.add_bytes_field(field.name, kind.width)

        where = f"{structure.name}.{field.name}"
        if kind.name in self.bitfields:
            if kind.selector is not None:
                raise ValidationError(f"{where}: bitfield '{kind.name}' does not take a selector")
            container = self.bitfields[kind.name]
            return structure.add_bitfield(field.name, container, container.width // 8)
        if kind.name in self.groups:
            if kind.selector is None:
                raise ValidationError(f"{where}: variant group '{kind.name}' needs a selector")
            return structure.add_alt_field(field.name, self.groups[kind.name], kind.selector)
        raise ValidationError(f"{where}: unknown type '{kind.name}'")


def parse(text: str) -> Schema:
    """Parse a schema definition file."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/schema.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar, parser="lalr")

    tree = _g_parser.parse(text)
    items = TreeTransformer().transform(tree)

    resolver = _Resolver()
    for item in items:
        if isinstance(item, BitContainer):
            resolver.bitfield(item)
        elif isinstance(item, _Group):
            resolver.group(item)
        else:
            resolver.struct(item)

    return Schema(tuple(resolver.items))
