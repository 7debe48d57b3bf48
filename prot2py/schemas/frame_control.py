"""IEEE 802.15.4 frame control field."""

from ..generator.types import BitContainer, DomainBuilder
from .unit import bitfield_unit

ADDRESSING_MODES = (
    ("not_present", "PAN identifier and address are not present.", 0b00),
    ("address_16bit", "Address field contains a 16-bit short address.", 0b10),
    ("address_64bit_extended", "Address field contains a 64-bit extended address.", 0b11),
)


def _addr_mode(v: DomainBuilder) -> DomainBuilder:
    for name, description, value in ADDRESSING_MODES:
        v = v.add_enum_value_desc(name, description, value)
    return v


def frame_control() -> BitContainer:
    return (
        BitContainer(
            "Frame_control",
            "This field contains information about the frame type, addressing and control flags.",
        )
        .add_bit_field(
            "Frame_type",
            "The type of the frame.",
            3,
            lambda v: v.add_enum_value("beacon", 0b000)
            .add_enum_value("data", 0b001)
            .add_enum_value("acknowledgement", 0b010)
            .add_enum_value("mac_command", 0b011),
        )
        .add_bit_field(
            "Security_enabled",
            "Specifies if the frame is protected using the key stored in the PIB.",
            1,
            lambda v: v.add_enum_value("unencrypted", 0).add_enum_value("encrypted", 1),
        )
        .add_bit_field(
            "Frame_pending",
            "Specifies if the sender has additional data to send to the recipient.",
            1,
            lambda v: v.add_enum_value("no_frame_pending", 0).add_enum_value("frame_pending", 1),
        )
        .add_bit_field(
            "Ack_request",
            "Specifies whether an acknowledgement is required from the recipient device.",
            1,
            lambda v: v.add_enum_value("ack_not_requested", 0).add_enum_value("ack_requested", 1),
        )
        .add_bit_field(
            "Intra_PAN",
            "Specifies whether the MAC frame is to be sent within the same PAN.",
            1,
            lambda v: v.add_enum_value_desc(
                "pan_present", "The source PAN identifier is present.", 0
            ).add_enum_value_desc(
                "intra_pan", "The source PAN identifier is omitted.", 1
            ),
        )
        .add_reserved(3)
        .add_bit_field(
            "Dest_addr_mode", "Specifies the type of the destination address.", 2, _addr_mode
        )
        .add_reserved(2)
        .add_bit_field(
            "Source_addr_mode", "Specifies the type of the source address.", 2, _addr_mode
        )
    )


UNITS = [bitfield_unit("frame_control", "IEEE 802.15.4 frame control field.", frame_control)]
