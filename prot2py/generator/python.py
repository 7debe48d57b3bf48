"""Python code emitter for compiled bitfields, structures and variant groups."""

from dataclasses import dataclass
from importlib import resources

from jinja2 import Environment, PackageLoader

from .alternatives import Selector, SelectorSource, check_alternatives
from .bitfield import CompiledBitField, CompiledSlot
from .structure import CompiledField, CompiledStructure, FieldKind
from .types import Alternatives
from .util import docstring, one_line, to_camel_case

RUNTIME_FILES = [
    "__init__.py",
    "serialization.py",
]

env = Environment(
    loader=PackageLoader("prot2py.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=False,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)
env.filters["docstring"] = docstring
env.filters["one_line"] = one_line

header_template = env.get_template("header.py.j2")
enum_template = env.get_template("enum.py.j2")
bitfield_template = env.get_template("bitfield.py.j2")
structure_template = env.get_template("structure.py.j2")
alternatives_template = env.get_template("alternatives.py.j2")

# struct format characters for little-endian unsigned integers, by byte width
FORMAT_CHARS = {
    1: "B",
    2: "H",
    4: "I",
    8: "Q",
}


@dataclass(frozen=True)
class Declaration:
    """One top-level Python statement block and the name it binds."""

    name: str
    code: str


def _encode_slot(slot: CompiledSlot) -> str:
    """Expression placing one slot's value at its offset."""
    if slot.is_enumerated:
        value = f"{slot.enum_class}.decode(self.{slot.attr})"
    else:
        value = f'check_range(self.{slot.attr}, {slot.width}, "{slot.attr}")'
    if slot.offset:
        return f"{value} << {slot.offset}"
    return value


def _decode_slot(slot: CompiledSlot) -> str:
    """Expression extracting one slot's value from ``raw``."""
    shifted = f"(raw >> {slot.offset})" if slot.offset else "raw"
    value = f"{shifted} & {slot.mask:#x}"
    if slot.is_enumerated:
        return f"{slot.enum_class}.decode({value})"
    return value


def render_bitfield(bitfield: CompiledBitField) -> list[Declaration]:
    """Render the enums and the container class of a bitfield."""
    declarations = [
        Declaration(slot.enum_class, enum_template.render(slot=slot))
        for slot in bitfield.slots
        if slot.enum_class is not None
    ]
    declarations.append(
        Declaration(
            bitfield.class_name,
            bitfield_template.render(
                bitfield=bitfield,
                encode_slot=_encode_slot,
                decode_slot=_decode_slot,
            ),
        )
    )
    return declarations


def _can_batch(field: CompiledField) -> bool:
    """Check if a field can share one struct format with its neighbours."""
    return field.kind in (FieldKind.UINT, FieldKind.BYTES)


def _batch_fields(fields: tuple[CompiledField, ...]) -> list[tuple[str, list[CompiledField]]]:
    """Group fields into batches for pack/unpack.

    Returns list of (batch_type, fields) where batch_type is "primitive" or "single".
    """
    batches: list[tuple[str, list[CompiledField]]] = []
    current: list[CompiledField] = []

    for field in fields:
        if _can_batch(field):
            current.append(field)
        else:
            if current:
                batches.append(("primitive", current))
                current = []
            batches.append(("single", [field]))

    if current:
        batches.append(("primitive", current))

    return batches


def _format(fields: list[CompiledField]) -> str:
    chars = []
    for field in fields:
        if field.kind == FieldKind.UINT:
            chars.append(FORMAT_CHARS[field.static_size])
        else:
            chars.append(f"{field.static_size}s")
    return "<" + "".join(chars)


def _selector_expr(selector: Selector, *, packing: bool) -> str:
    """Expression yielding the selector value of an alternative field."""
    owner = "self." if packing else ""
    if selector.source == SelectorSource.FIELD:
        return f"{owner}{selector.field}"
    if selector.source == SelectorSource.SLOT:
        return f"{owner}{selector.field}.{selector.slot}"
    if packing:
        return f'context_value(context, "{selector.field}")'
    return f'context_value(context, "{selector.field}", required=True)'


def _gen_pack_batch(fields: list[CompiledField]) -> list[str]:
    """Generate pack code for a batch of integers and byte arrays."""
    args = []
    for field in fields:
        if field.kind == FieldKind.UINT:
            args.append(f'check_range(self.{field.attr}, {field.static_size * 8}, "{field.attr}")')
        else:
            args.append(f'check_length(self.{field.attr}, {field.static_size}, "{field.attr}")')
    return [f'_buf.extend(_struct.pack("{_format(fields)}", {", ".join(args)}))']


def _gen_unpack_batch(structure: CompiledStructure, fields: list[CompiledField]) -> list[str]:
    """Generate unpack code for a batch of integers and byte arrays."""
    size = sum(f.static_size for f in fields)
    names = ", ".join(f.attr for f in fields)
    # Add trailing comma for single values so tuple unpacking works: val, = (1,)
    if len(fields) == 1:
        names += ","
    what = f"{structure.class_name}.{fields[0].attr}"
    if len(fields) > 1:
        what += f"..{fields[-1].attr}"
    return [
        f'{names} = _struct.unpack("{_format(fields)}", read_bytes(data, _o, {size}, "{what}"))',
        f"_o += {size}",
    ]


def _gen_pack_field(field: CompiledField) -> list[str]:
    if field.binding is None:
        return [f"_buf.extend(self.{field.attr}.pack())"]
    selector = _selector_expr(field.binding.selector, packing=True)
    return [
        f'check_variant(self._{field.attr}_options, {selector}, self.{field.attr}, "{field.attr}")',
        f"_buf.extend(self.{field.attr}.pack(context))",
    ]


def _gen_unpack_field(field: CompiledField) -> list[str]:
    if field.binding is None:
        return [f"{field.attr}, _n = {field.type_name}.unpack(data, _o)", "_o += _n"]
    selector = _selector_expr(field.binding.selector, packing=False)
    return [
        f'_variant = select_variant(cls._{field.attr}_options, {selector}, "{field.attr}")',
        f"{field.attr}, _n = _variant.unpack(data, _o, context)",
        "_o += _n",
    ]


def _annotation(field: CompiledField) -> str:
    if field.kind == FieldKind.UINT:
        return "int"
    if field.kind == FieldKind.BYTES:
        return "bytes"
    if field.type_name is None:
        raise ValueError(f"{field.name} has no type")
    return field.type_name


def _size_expr(structure: CompiledStructure) -> str:
    terms = [str(structure.fixed_size)]
    terms.extend(f"self.{f.attr}.size()" for f in structure.fields if f.size is None)
    return " + ".join(terms)


def render_structure(structure: CompiledStructure) -> list[Declaration]:
    """Render a structure class with its pack, unpack and size methods."""
    pack_lines: list[str] = []
    unpack_lines: list[str] = []
    for kind, fields in _batch_fields(structure.fields):
        if kind == "primitive":
            pack_lines.extend(_gen_pack_batch(fields))
            unpack_lines.extend(_gen_unpack_batch(structure, fields))
        else:
            pack_lines.extend(_gen_pack_field(fields[0]))
            unpack_lines.extend(_gen_unpack_field(fields[0]))

    code = structure_template.render(
        structure=structure,
        annotation=_annotation,
        pack_lines=pack_lines,
        unpack_lines=unpack_lines,
        size_expr=_size_expr(structure),
    )
    return [Declaration(structure.class_name, code)]


def render_alternatives(alternatives: Alternatives) -> list[Declaration]:
    """Render the union type of every group in a batch."""
    check_alternatives(alternatives)
    return [
        Declaration(
            to_camel_case(group.name),
            alternatives_template.render(
                name=group.name,
                class_name=to_camel_case(group.name),
                variants=[to_camel_case(v.name) for v in group.variants],
            ),
        )
        for group in alternatives.groups
    ]


def render_header(
    runtime_import: str, imports: dict[str, list[str]], title: str | None = None
) -> str:
    """Render the module docstring and imports of a generated file."""
    return header_template.render(
        runtime_import=runtime_import,
        imports=imports,
        title=title or "Protocol codecs.",
    )


def runtime() -> dict[str, str]:
    """Return the Python runtime files as a dict of filename -> content."""
    result: dict[str, str] = {}
    for filename in RUNTIME_FILES:
        content = resources.files("prot2py.proto").joinpath(filename).read_text()
        result[filename] = content
    return result
