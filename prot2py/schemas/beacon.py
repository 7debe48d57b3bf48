"""IEEE 802.15.4 beacon payload fields."""

from ..generator.file import GenFile
from ..generator.types import AlternativeOptions, Alternatives, BitContainer, Structure
from .unit import Unit, bitfield_unit


def superframe() -> BitContainer:
    return (
        BitContainer("Superframe", "Superframe specification field.")
        .add_bit_field(
            "Beacon_order",
            "This field contains information about the transmission interval of the beacon.",
            4,
            lambda v: v.numeric(),
        )
        .add_bit_field(
            "Superframe_order",
            "This field contains information about the transmission duration of the beacon.",
            4,
            lambda v: v.numeric(),
        )
        .add_bit_field(
            "Final_CAP_slot",
            "This field specifies the final superframe slot utilized by the CAP.",
            4,
            lambda v: v.numeric(),
        )
        .add_bit_field(
            "Batt_life_ext",
            "Set if frames are required to start before the battery life extended periods.",
            1,
            lambda v: v.add_enum_value_desc(
                "ble_not_set", "Battery life extension is not required.", 0
            ).add_enum_value_desc(
                "ble_set",
                "Battery life extension is required and frames must be sent within "
                "macBattLifeExtPeriods backoff periods after the IFS following the beacon.",
                1,
            ),
        )
        .add_reserved(1)
        .add_bit_field(
            "PAN_coordinator",
            "Specifies if the sender is a PAN coordinator.",
            1,
            lambda v: v.add_enum_value_desc(
                "not_pan_coordinator", "The transmitting device is not a PAN coordinator.", 0
            ).add_enum_value_desc(
                "pan_coordinator", "The transmitting device is a PAN coordinator.", 1
            ),
        )
        .add_bit_field(
            "Association_permit",
            "Specifies if devices are permitted to join the PAN.",
            1,
            lambda v: v.add_enum_value_desc(
                "not_permitted", "Devices are not permitted to associate with the PAN.", 0
            ).add_enum_value_desc(
                "permitted", "Devices are permitted to associate with the PAN.", 1
            ),
        )
    )


def gts_specification() -> BitContainer:
    return (
        BitContainer("GTS_specification", "Guaranteed timeslot specification field.")
        .add_bit_field(
            "Descriptor_count",
            "The number of guaranteed timeslot descriptors included.",
            3,
            lambda v: v.numeric(),
        )
        .add_reserved(4)
        .add_bit_field(
            "Permit",
            "Specifies if the coordinator is accepting guaranteed timeslot requests.",
            1,
            lambda v: v.add_enum_value_desc(
                "not_permitted", "The coordinator is not accepting GTS requests.", 0
            ).add_enum_value_desc("permitted", "The coordinator is accepting GTS requests.", 1),
        )
    )


def gts_directions() -> BitContainer:
    return (
        BitContainer("GTS_directions", "Guaranteed timeslot directions field.")
        .add_bit_field(
            "Directions_mask",
            "Mask identifying the directions of the GTSs in the superframe.",
            7,
        )
        .add_reserved(1)
    )


def gts_descriptor_config() -> BitContainer:
    return (
        BitContainer(
            "GTS_descriptor_config",
            "The starting slot and length of a guaranteed time slot, "
            "without the device short address.",
        )
        .add_bit_field(
            "Starting_slot",
            "The starting slot of the guaranteed time slot.",
            4,
            lambda v: v.numeric(),
        )
        .add_bit_field(
            "Length",
            "The number of contiguous superframe slots the guaranteed time slot is active for.",
            4,
            lambda v: v.numeric(),
        )
    )


def pending_address_specification() -> BitContainer:
    return (
        BitContainer("Pending_address_specification", "Pending address specification field.")
        .add_bit_field(
            "Number_short_addresses",
            "Number of short addresses pending.",
            3,
            lambda v: v.numeric(),
        )
        .add_reserved(1)
        .add_bit_field(
            "Number_extended_addresses",
            "Number of extended addresses pending.",
            3,
            lambda v: v.numeric(),
        )
        .add_reserved(1)
    )


gts_descriptor = (
    Structure("gts_descriptor", "A guaranteed time slot descriptor.")
    .add_u16_field("short_address")
    .add_bitfield("config", "gts_descriptor_config", 1)
)

gts_none = Structure("gts_none", "No GTS directions or descriptors.")


def gts_list(count: int) -> Structure:
    """GTS directions followed by ``count`` descriptors, flattened into one structure."""
    structure = Structure(
        f"gts_list_{count}", f"GTS directions with {count} descriptor(s)."
    ).add_bitfield("directions", "gts_directions", 1)
    for index in range(1, count + 1):
        structure = structure.add_u16_field(f"short_address_{index}").add_bitfield(
            f"config_{index}", "gts_descriptor_config", 1
        )
    return structure


def _gts_fields() -> AlternativeOptions:
    options = AlternativeOptions("gts_fields", gts_none)
    for count in range(1, 8):
        options = options.insert_type(gts_list(count))
    return options


# Variant k holds k descriptors, one for every value of the 3-bit descriptor count
gts_fields = _gts_fields()

gts_info = (
    Structure("gts_info", "Guaranteed timeslot information of a beacon.")
    .add_bitfield("gts_specification", "gts_specification", 1)
    .add_alt_field("gts", gts_fields, "gts_specification.descriptor_count")
)


def render_gts_descriptor(genfile: GenFile, package: str) -> None:
    genfile.add_import(f"{package}.beacon.gts_descriptor_config", gts_descriptor_config())
    genfile.add_struct(gts_descriptor)


def render_gts_info(genfile: GenFile, package: str) -> None:
    genfile.add_import(f"{package}.beacon.gts_specification", gts_specification())
    genfile.add_import(f"{package}.beacon.gts_directions", gts_directions())
    genfile.add_import(f"{package}.beacon.gts_descriptor_config", gts_descriptor_config())

    for variant in gts_fields.variants:
        genfile.add_struct(variant)

    alternatives = Alternatives().insert(gts_fields)
    genfile.add_alternatives(alternatives)
    genfile.add_struct_with_alts(gts_info, alternatives)


UNITS = [
    bitfield_unit("beacon.superframe", "Superframe specification field.", superframe),
    bitfield_unit(
        "beacon.gts_specification",
        "Guaranteed timeslot specification field.",
        gts_specification,
    ),
    bitfield_unit(
        "beacon.gts_directions", "Guaranteed timeslot directions field.", gts_directions
    ),
    bitfield_unit(
        "beacon.gts_descriptor_config",
        "Guaranteed timeslot descriptor layout.",
        gts_descriptor_config,
    ),
    Unit("beacon.gts_descriptor", "Guaranteed timeslot descriptor.", render_gts_descriptor),
    Unit("beacon.gts_info", "Guaranteed timeslot information.", render_gts_info),
    bitfield_unit(
        "beacon.pending_address_specification",
        "Pending address specification field.",
        pending_address_specification,
    ),
]
