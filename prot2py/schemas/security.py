"""IEEE 802.15.4 auxiliary security header."""

from ..generator.file import GenFile
from ..generator.types import (
    AlternativeOptions,
    Alternatives,
    BitContainer,
    DomainBuilder,
    Structure,
)
from .unit import Unit, bitfield_unit

SECURITY_LEVELS = (
    ("NONE", "Security level 0, no protection.", 0b000),
    ("MIC_32", "Security level 1, a 4 byte MIC for data authenticity.", 0b001),
    ("MIC_64", "Security level 2, an 8 byte MIC for data authenticity.", 0b010),
    ("MIC_128", "Security level 3, a 16 byte MIC for data authenticity.", 0b011),
    ("ENC_MIC_32", "Security level 5, encryption and a 4 byte MIC.", 0b101),
    ("ENC_MIC_64", "Security level 6, encryption and an 8 byte MIC.", 0b110),
    ("ENC_MIC_128", "Security level 7, encryption and a 16 byte MIC.", 0b111),
)

KEY_IDENTIFIER_MODES = (
    ("implicit", "Key is determined implicitly.", 0b00),
    ("key_index", "Key is determined from the key index field.", 0b01),
    ("key_source_4", "Key is determined from a 4 octet key source and the key index.", 0b10),
    ("key_source_8", "Key is determined from an 8 octet key source and the key index.", 0b11),
)


def security_control() -> BitContainer:
    def levels(v: DomainBuilder) -> DomainBuilder:
        for name, description, value in SECURITY_LEVELS:
            v = v.add_enum_value_desc(name, description, value)
        return v

    def key_modes(v: DomainBuilder) -> DomainBuilder:
        for name, description, value in KEY_IDENTIFIER_MODES:
            v = v.add_enum_value_desc(name, description, value)
        return v

    return (
        BitContainer(
            "Security_control",
            "This field provides information about what protection is applied to the frame.",
        )
        .add_bit_field("Security_level", "The frame protection that is provided.", 3, levels)
        .add_bit_field(
            "Key_identifier_mode",
            "Whether the key protecting the frame is derived implicitly or explicitly.",
            2,
            key_modes,
        )
        .add_bit_field(
            "Frame_counter_suppression",
            "Specifies if the frame counter is suppressed from the frame.",
            1,
            lambda v: v.add_enum_value_desc(
                "present", "The frame counter is included in the frame.", 0
            ).add_enum_value_desc("suppressed", "The frame counter is suppressed.", 1),
        )
        .add_bit_field(
            "ASN_in_nonce",
            "Specifies if the absolute slot number (ASN) is used to generate the nonce.",
            1,
            lambda v: v.add_enum_value_desc(
                "frame_counter_nonce", "The frame counter is used to generate the nonce.", 0
            ).add_enum_value_desc("asn_nonce", "The ASN is used to generate the nonce.", 1),
        )
        .add_reserved(1)
    )


frame_counter_present = Structure.simple("frame_counter_present", "frame_counter", 4)
frame_counter_none = Structure("frame_counter_none", "The frame counter is suppressed.")

frame_counter = AlternativeOptions("frame_counter_type", frame_counter_present).insert_type(
    frame_counter_none
)

key_id_none = Structure("key_id_none", "The key is determined implicitly.")
key_id_only = Structure.simple("key_id_only", "key_index", 1)
key_id_short = Structure("key_id_short").add_u32_field("key_source").add_u8_field("key_index")
key_id_long = Structure("key_id_long").add_u64_field("key_source").add_u8_field("key_index")

key_identifier = (
    AlternativeOptions("key_identifier", key_id_none)
    .insert_type(key_id_only)
    .insert_type(key_id_short)
    .insert_type(key_id_long)
)

alternatives = Alternatives().insert(frame_counter).insert(key_identifier)

auxiliary_security_header = (
    Structure("Auxiliary_security_header", "Auxiliary security header.")
    .add_bitfield("security_control", "security_control", 1)
    .add_alt_field("frame_counter", frame_counter, "security_control.frame_counter_suppression")
    .add_alt_field("key_id", key_identifier, "security_control.key_identifier_mode")
)


def render_auxiliary_security_header(genfile: GenFile, package: str) -> None:
    genfile.add_import(f"{package}.security_control", security_control())

    for variant in (frame_counter_present, frame_counter_none):
        genfile.add_struct(variant)
    for variant in key_identifier.variants:
        genfile.add_struct(variant)

    genfile.add_alternatives(alternatives)
    genfile.add_struct_with_alts(auxiliary_security_header, alternatives)


UNITS = [
    bitfield_unit("security_control", "Security control field.", security_control),
    Unit(
        "auxiliary_security_header",
        "IEEE 802.15.4 auxiliary security header.",
        render_auxiliary_security_header,
    ),
]
