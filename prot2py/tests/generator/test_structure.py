"""Tests for the byte-structure compiler and generated structure classes."""

import pytest

from prot2py.generator import GenFile
from prot2py.generator.structure import FieldKind, compile_structure
from prot2py.generator.types import AlternativeOptions, Alternatives, BitContainer, Structure
from prot2py.generator.validation import (
    DuplicateFieldName,
    InvalidName,
    UnresolvedVariant,
    ValidationError,
    WidthMismatch,
)
from prot2py.proto import SerializationError, TruncatedInput
from prot2py.proto import UnresolvedVariant as UnresolvedVariantAtRuntime

addr_none = Structure("addr_none")
addr_short = Structure.simple("addr_short", "addr", 2)
addr_extended = Structure.simple("addr_extended", "addr", 8)

address = AlternativeOptions("address", addr_none).insert_type(addr_short)
wide_address = address.insert_type(addr_extended)


def by_code():
    """A group with one variant for every value of a u8."""
    group = wide_address
    for value in range(3, 256):
        group = group.insert_type(Structure(f"code_{value}"))
    return group


def mode():
    return (
        BitContainer("Mode")
        .add_bit_field(
            "addr_mode",
            "Address mode.",
            2,
            lambda v: v.add_enum_value("none", 0)
            .add_enum_value("short", 2)
            .add_enum_value("extended", 3),
        )
        .add_reserved(6)
    )


def add_variants(genfile, group):
    for variant in group.variants:
        genfile.add_struct(variant)
    alternatives = Alternatives().insert(group)
    genfile.add_alternatives(alternatives)
    return alternatives


def describe_compile():
    def lays_out_fixed_fields(expect):
        structure = (
            Structure("plain")
            .add_u8_field("a")
            .add_u16_field("b")
            .add_u32_field("c")
            .add_u64_field("d")
            .add_bytes_field("e", 3)
        )
        compiled = compile_structure(structure)

        expect(compiled.class_name) == "Plain"
        expect([f.size for f in compiled.fields]) == [1, 2, 4, 8, 3]
        expect(compiled.fixed_size) == 18
        expect(compiled.is_fixed) == True

    def accepts_the_empty_structure(expect):
        compiled = compile_structure(addr_none)

        expect(compiled.fields) == ()
        expect(compiled.fixed_size) == 0

    def embeds_bitfields(expect):
        structure = Structure("framed").add_bitfield("mode", mode(), 1).add_u8_field("seq")
        compiled = compile_structure(structure)

        expect(compiled.fields[0].kind) == FieldKind.BITFIELD
        expect(compiled.fields[0].type_name) == "Mode"
        expect(compiled.fixed_size) == 2

    def rejects_duplicate_field_names(expect):
        with pytest.raises(DuplicateFieldName):
            compile_structure(Structure("dup").add_u8_field("a").add_u16_field("a"))
        with pytest.raises(DuplicateFieldName):
            compile_structure(Structure("dup").add_u8_field("a").add_context("a", 1))

    def rejects_unsupported_widths(expect):
        with pytest.raises(WidthMismatch):
            compile_structure(Structure("odd").add_int_field("a", 3))
        with pytest.raises(WidthMismatch):
            compile_structure(Structure("odd").add_bytes_field("a", 0))
        with pytest.raises(WidthMismatch):
            compile_structure(Structure("odd").add_bitfield("mode", mode(), 2))

    def rejects_reserved_attribute_names(expect):
        with pytest.raises(InvalidName):
            compile_structure(Structure("bad").add_u8_field("size"))

    def rejects_unknown_bitfield_names(expect):
        with pytest.raises(ValidationError):
            compile_structure(Structure("bad").add_bitfield("mode", "missing", 1))


def describe_selectors():
    def binds_an_integer_field(expect):
        group = by_code()
        structure = Structure("s").add_u8_field("kind").add_alt_field("addr", group, "kind")
        compiled = compile_structure(structure, Alternatives().insert(group))

        binding = compiled.fields[1].binding
        expect(binding.selector.source.value) == "field"
        expect([(c.value, c.class_name) for c in binding.cases[:4]]) == [
            (0, "AddrNone"),
            (1, "AddrShort"),
            (2, "AddrExtended"),
            (3, "Code3"),
        ]
        expect(len(binding.cases)) == 256
        expect(compiled.fields[1].size) == None
        expect(compiled.is_fixed) == False

    def rejects_integer_fields_that_are_not_covered(expect):
        structure = Structure("s").add_u8_field("kind").add_alt_field("addr", address, "kind")
        with pytest.raises(UnresolvedVariant):
            compile_structure(structure, Alternatives().insert(address))

    def binds_a_bitfield_slot_in_declaration_order(expect):
        structure = (
            Structure("s")
            .add_bitfield("mode", mode(), 1)
            .add_alt_field("addr", wide_address, "mode.addr_mode")
        )
        compiled = compile_structure(structure, Alternatives().insert(wide_address))

        binding = compiled.fields[1].binding
        expect([(c.value, c.symbol, c.class_name) for c in binding.cases]) == [
            (0, "none", "AddrNone"),
            (2, "short", "AddrShort"),
            (3, "extended", "AddrExtended"),
        ]

    def binds_a_context_value(expect):
        structure = (
            Structure("s")
            .add_context(
                "mode", 1, lambda v: v.add_enum_value("absent", 0).add_enum_value("present", 1)
            )
            .add_alt_field("addr", address, "mode")
        )
        compiled = compile_structure(structure, Alternatives().insert(address))

        expect(compiled.context[0].attr) == "mode"
        expect(compiled.fields[0].binding.selector.source.value) == "context"

    def rejects_forward_selectors(expect):
        structure = Structure("s").add_alt_field("addr", address, "kind").add_u8_field("kind")
        with pytest.raises(UnresolvedVariant, match="precede"):
            compile_structure(structure, Alternatives().insert(address))

    def rejects_unknown_selectors(expect):
        structure = Structure("s").add_u8_field("kind").add_alt_field("addr", address, "other")
        with pytest.raises(UnresolvedVariant):
            compile_structure(structure, Alternatives().insert(address))

    def rejects_selectors_of_the_wrong_kind(expect):
        structure = (
            Structure("s").add_bytes_field("raw", 1).add_alt_field("addr", address, "raw")
        )
        with pytest.raises(UnresolvedVariant):
            compile_structure(structure, Alternatives().insert(address))

    def rejects_unknown_slots(expect):
        structure = (
            Structure("s").add_bitfield("mode", mode(), 1).add_alt_field("addr", address, "mode.x")
        )
        with pytest.raises(UnresolvedVariant):
            compile_structure(structure, Alternatives().insert(address))

    def rejects_groups_missing_from_the_batch(expect):
        structure = Structure("s").add_u8_field("kind").add_alt_field("addr", address, "kind")
        with pytest.raises(UnresolvedVariant):
            compile_structure(structure, Alternatives())

    def rejects_groups_that_do_not_cover_the_domain(expect):
        structure = (
            Structure("s")
            .add_bitfield("mode", mode(), 1)
            .add_alt_field("addr", address, "mode.addr_mode")
        )
        with pytest.raises(UnresolvedVariant):
            compile_structure(structure, Alternatives().insert(address))


def describe_generated_structure():
    def packs_fixed_fields_little_endian(gen_code, expect):
        genfile = GenFile()
        genfile.add_struct(
            Structure("plain").add_u8_field("a").add_u16_field("b").add_bytes_field("c", 2)
        )
        Plain = gen_code(genfile)["Plain"]

        value = Plain(a=1, b=0x0302, c=b"\x04\x05")
        expect(value.pack()) == b"\x01\x02\x03\x04\x05"
        expect(value.size()) == 5
        expect(Plain.unpack(b"\xff\x01\x02\x03\x04\x05", 1)) == (value, 5)

    def batches_consecutive_fixed_fields(expect):
        genfile = GenFile()
        genfile.add_struct(
            Structure("plain").add_u8_field("a").add_u16_field("b").add_bytes_field("c", 2)
        )

        expect('_struct.pack("<BH2s"' in genfile.render()) == True

    def checks_ranges_when_packing(gen_code, expect):
        genfile = GenFile()
        genfile.add_struct(Structure("plain").add_u8_field("a").add_bytes_field("c", 2))
        Plain = gen_code(genfile)["Plain"]

        with pytest.raises(SerializationError):
            Plain(a=256, c=b"\x00\x00").pack()
        with pytest.raises(SerializationError):
            Plain(a=1, c=b"\x00").pack()

    def raises_on_truncated_input(gen_code, expect):
        genfile = GenFile()
        genfile.add_struct(Structure("plain").add_u8_field("a").add_u32_field("b"))
        Plain = gen_code(genfile)["Plain"]

        with pytest.raises(TruncatedInput):
            Plain.unpack(b"\x01\x02\x03")

    def embeds_bitfields(gen_code, expect):
        genfile = GenFile()
        genfile.add_bitfield(mode())
        genfile.add_struct(Structure("framed").add_bitfield("mode", "Mode", 1).add_u8_field("seq"))
        gen = gen_code(genfile)
        Framed, Mode, AddrMode = gen["Framed"], gen["Mode"], gen["AddrMode"]

        value = Framed(mode=Mode(addr_mode=AddrMode.short), seq=9)
        expect(value.pack()) == b"\x02\x09"
        expect(Framed.unpack(b"\x02\x09")) == (value, 2)


def describe_context_selector():
    @pytest.fixture
    def gen(gen_code):
        genfile = GenFile()
        alternatives = add_variants(genfile, address)
        genfile.add_struct_with_alts(
            Structure("hdr")
            .add_u8_field("seq")
            .add_context(
                "mode", 1, lambda v: v.add_enum_value("absent", 0).add_enum_value("present", 1)
            )
            .add_alt_field("addr", address, "mode"),
            alternatives,
        )
        return gen_code(genfile)

    def encodes_the_absent_variant_as_nothing(gen, expect):
        Hdr, AddrNone = gen["Hdr"], gen["AddrNone"]

        value = Hdr(seq=7, addr=AddrNone())
        expect(value.pack({"mode": 0})) == b"\x07"
        expect(value.size()) == 1
        expect(Hdr.unpack(b"\x07", context={"mode": 0})) == (value, 1)

    def encodes_the_present_variant(gen, expect):
        Hdr, AddrShort = gen["Hdr"], gen["AddrShort"]

        value = Hdr(seq=7, addr=AddrShort(addr=b"\xaa\xbb"))
        expect(value.pack({"mode": 1})) == b"\x07\xaa\xbb"
        expect(value.size()) == 3
        expect(Hdr.unpack(b"\x07\xaa\xbb", context={"mode": 1})) == (value, 3)

    def raises_on_a_truncated_variant(gen, expect):
        Hdr = gen["Hdr"]

        with pytest.raises(TruncatedInput):
            Hdr.unpack(b"\x07\xaa", context={"mode": 1})

    def requires_the_context_value_to_decode(gen, expect):
        Hdr = gen["Hdr"]

        with pytest.raises(UnresolvedVariantAtRuntime):
            Hdr.unpack(b"\x07")

    def packs_without_a_context_value(gen, expect):
        Hdr, AddrShort = gen["Hdr"], gen["AddrShort"]

        expect(Hdr(seq=7, addr=AddrShort(addr=b"\xaa\xbb")).pack()) == b"\x07\xaa\xbb"

    def rejects_a_variant_the_context_does_not_select(gen, expect):
        Hdr, AddrShort = gen["Hdr"], gen["AddrShort"]

        with pytest.raises(UnresolvedVariantAtRuntime):
            Hdr(seq=7, addr=AddrShort(addr=b"\xaa\xbb")).pack({"mode": 0})


def describe_field_selector():
    @pytest.fixture
    def gen(gen_code):
        genfile = GenFile()
        group = by_code()
        alternatives = add_variants(genfile, group)
        genfile.add_struct_with_alts(
            Structure("hdr").add_u8_field("kind").add_alt_field("addr", group, "kind"),
            alternatives,
        )
        return gen_code(genfile)

    def sizes_each_variant(gen, expect):
        Hdr, AddrNone, AddrShort, AddrExtended = (
            gen["Hdr"],
            gen["AddrNone"],
            gen["AddrShort"],
            gen["AddrExtended"],
        )

        expect(Hdr(kind=0, addr=AddrNone()).size()) == 1
        expect(Hdr(kind=1, addr=AddrShort(addr=b"\x00" * 2)).size()) == 3
        expect(Hdr(kind=2, addr=AddrExtended(addr=b"\x00" * 8)).size()) == 9

    def decodes_the_selected_variant(gen, expect):
        Hdr, AddrExtended = gen["Hdr"], gen["AddrExtended"]

        data = bytes([2]) + bytes(range(8)) + b"\xff"
        value, consumed = Hdr.unpack(data)
        expect(value) == Hdr(kind=2, addr=AddrExtended(addr=bytes(range(8))))
        expect(consumed) == 9

    def decodes_every_selector_value(gen, expect):
        Hdr, Code200 = gen["Hdr"], gen["Code200"]

        expect(Hdr.unpack(b"\xc8")) == (Hdr(kind=200, addr=Code200()), 1)
        expect(Hdr(kind=255, addr=gen["Code255"]()).pack()) == b"\xff"

    def rejects_a_held_variant_that_disagrees_with_its_selector(gen, expect):
        Hdr, AddrNone = gen["Hdr"], gen["AddrNone"]

        with pytest.raises(UnresolvedVariantAtRuntime):
            Hdr(kind=1, addr=AddrNone()).pack()


def describe_slot_selector():
    def decodes_by_symbolic_slot(gen_code, expect):
        genfile = GenFile()
        genfile.add_bitfield(mode())
        alternatives = add_variants(genfile, wide_address)
        genfile.add_struct_with_alts(
            Structure("hdr")
            .add_bitfield("mode", "Mode", 1)
            .add_alt_field("addr", wide_address, "mode.addr_mode"),
            alternatives,
        )
        gen = gen_code(genfile)
        Hdr, Mode, AddrMode, AddrShort = gen["Hdr"], gen["Mode"], gen["AddrMode"], gen["AddrShort"]

        value = Hdr(mode=Mode(addr_mode=AddrMode.short), addr=AddrShort(addr=b"\x34\x12"))
        expect(value.pack()) == b"\x02\x34\x12"
        expect(Hdr.unpack(b"\x02\x34\x12")) == (value, 3)

    def decodes_fields_named_like_builtins(gen_code, expect):
        genfile = GenFile()
        genfile.add_bitfield(mode())
        alternatives = add_variants(genfile, wide_address)
        genfile.add_struct_with_alts(
            Structure("hdr")
            .add_bitfield("mode", "Mode", 1)
            .add_u8_field("int")
            .add_alt_field("addr", wide_address, "mode.addr_mode"),
            alternatives,
        )
        gen = gen_code(genfile)
        Hdr, Mode, AddrMode, AddrShort = gen["Hdr"], gen["Mode"], gen["AddrMode"], gen["AddrShort"]

        value, consumed = Hdr.unpack(b"\x02\x05\xaa\xbb")
        expect(value) == Hdr(
            mode=Mode(addr_mode=AddrMode.short), int=5, addr=AddrShort(addr=b"\xaa\xbb")
        )
        expect(consumed) == 4
        expect(value.pack()) == b"\x02\x05\xaa\xbb"
