"""IEEE 802.15.4 MAC command identifiers and payloads."""

from ..generator.file import GenFile
from ..generator.types import BitContainer, DomainBuilder, Structure
from .unit import Unit, bitfield_unit

# Identifier, description, value. Unlisted values are reserved.
COMMAND_IDS = (
    ("assoc_request", "Association request command.", 0x01),
    ("assoc_response", "Association response command.", 0x02),
    ("disassoc_notify", "Disassociation notification command.", 0x03),
    ("data_request", "Data request command.", 0x04),
    ("pan_id_conflict", "PAN ID conflict notification command.", 0x05),
    ("orphan_notify", "Orphan notification command.", 0x06),
    ("beacon_request", "Beacon request command.", 0x07),
    ("coordinator_realign", "Coordinator realignment command.", 0x08),
    ("gts_request", "GTS request command.", 0x09),
    ("trle_mgmt_request", "TRLE management request command.", 0x0A),
    ("trle_mgmt_response", "TRLE management response command.", 0x0B),
    ("dsme_association_request", "DSME association request command.", 0x13),
    ("dsme_association_response", "DSME association response command.", 0x14),
    ("dsme_gts_request", "DSME GTS request command.", 0x15),
    ("dsme_gts_response", "DSME GTS response command.", 0x16),
    ("dsme_gts_notify", "DSME GTS notify command.", 0x17),
    ("dsme_info_request", "DSME information request command.", 0x18),
    ("dsme_info_response", "DSME information response command.", 0x19),
    ("dsme_beacon_alloc_notify", "DSME beacon allocation notification command.", 0x1A),
    ("dsme_beacon_collision_notify", "DSME beacon collision notification command.", 0x1B),
    ("dsme_link_report", "DSME link report command.", 0x1C),
    ("rit_data_request", "RIT data request command.", 0x20),
    ("dbs_request", "DBS request command.", 0x21),
    ("dbs_response", "DBS response command.", 0x22),
    ("rit_data_response", "RIT data response command.", 0x23),
    ("vendor_specific", "Vendor specific command.", 0x24),
    ("srm_request", "SRM request command.", 0x25),
    ("srm_response", "SRM response command.", 0x26),
    ("srm_report", "SRM report command.", 0x27),
    ("srm_info", "SRM information command.", 0x28),
)


def _command_ids(v: DomainBuilder) -> DomainBuilder:
    for name, description, value in COMMAND_IDS:
        v = v.add_enum_value_desc(name, description, value)
    return v


def command_id() -> BitContainer:
    return BitContainer("MAC command", "The MAC command identifier.").add_bit_field(
        "id", "The MAC command identifier.", 8, _command_ids
    )


def assoc_request_capability() -> BitContainer:
    return (
        BitContainer("Assoc_request_capability", "Association request capabilities.")
        .add_reserved(1)
        .add_bit_field(
            "device_type",
            "Set to one if the device is an FFD, otherwise it is an RFD.",
            1,
            lambda v: v.add_enum_value("rfd_device", 0).add_enum_value("ffd_device", 1),
        )
        .add_bit_field(
            "power_source",
            "Set to one if the device is mains powered, otherwise it is battery powered.",
            1,
            lambda v: v.add_enum_value_desc(
                "battery_powered", "The device is powered by a battery pack.", 0
            ).add_enum_value_desc(
                "mains_powered", "The device is connected to alternating current mains.", 1
            ),
        )
        .add_bit_field(
            "receiver_on_when_idle",
            "The device does not disable its receiver to conserve power during idle periods.",
            1,
            lambda v: v.add_enum_value_desc(
                "disables_on_idle",
                "The device disables its receiver to conserve power during idle periods.",
                0,
            ).add_enum_value_desc(
                "receives_on_idle",
                "The device does not disable its receiver during idle periods.",
                1,
            ),
        )
        .add_bit_field(
            "association_type",
            "Set to one if the device requests fast association.",
            1,
            lambda v: v.add_enum_value("slow_association", 0).add_enum_value(
                "fast_association", 1
            ),
        )
        .add_reserved(1)
        .add_bit_field(
            "security_capability",
            "Set if the device can send and receive cryptographically protected MAC frames.",
            1,
            lambda v: v.add_enum_value_desc(
                "unsecure", "The device cannot process protected MAC frames.", 0
            ).add_enum_value_desc("secure", "The device can process protected MAC frames.", 1),
        )
        .add_bit_field(
            "allocate_address",
            "Set if the coordinator should allocate a short address during association.",
            1,
            lambda v: v.add_enum_value_desc(
                "no_request", "The device does not request a short address.", 0
            ).add_enum_value_desc(
                "request_address", "The device wishes the coordinator to allocate one.", 1
            ),
        )
    )


def assoc_status() -> BitContainer:
    return BitContainer("Assoc_status", "Association status.").add_bit_field(
        "association_status",
        "The association status after a request.",
        8,
        lambda v: v.add_enum_value_desc("assoc_success", "Association successful.", 0x00)
        .add_enum_value_desc("pan_at_capacity", "The PAN is at capacity.", 0x01)
        .add_enum_value_desc("pan_access_denied", "PAN access denied.", 0x02)
        .add_enum_value_desc("hopping_duplication", "Hopping sequence offset duplication.", 0x03)
        .add_enum_value_desc("fast_assoc_success", "Fast association successful.", 0x80),
    )


assoc_request = Structure("assoc_request", "Association request command payload.").add_bitfield(
    "capability", "assoc_request_capability", 1
)

assoc_response = (
    Structure("assoc_response", "Association response command payload.")
    .add_u16_field("short_address")
    .add_bitfield("status", "assoc_status", 1)
)


def render_commands(genfile: GenFile, package: str) -> None:
    genfile.add_import(
        f"{package}.mac_command.assoc_request_capability", assoc_request_capability()
    )
    genfile.add_import(f"{package}.mac_command.assoc_status", assoc_status())

    genfile.add_struct(assoc_request)
    genfile.add_struct(assoc_response)


UNITS = [
    bitfield_unit("mac_command.command_id", "MAC command identifier.", command_id),
    bitfield_unit(
        "mac_command.assoc_request_capability",
        "Association request capabilities.",
        assoc_request_capability,
    ),
    bitfield_unit("mac_command.assoc_status", "Association status.", assoc_status),
    Unit("mac_command.commands", "MAC command payloads.", render_commands),
]
