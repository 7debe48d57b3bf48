"""IEEE 802.15.4 MAC header with variable addressing fields.

The destination PAN identifier is present whenever a destination address is,
so both travel in one variant chosen by the destination addressing mode. The
source PAN identifier is omitted when the frame is sent within one PAN.
"""

from ..generator.file import GenFile
from ..generator.types import AlternativeOptions, Alternatives, Structure
from .frame_control import frame_control
from .unit import Unit

addr_none = Structure("addr_none", "No address.")
addr_short = Structure.simple("addr_short", "address", 2)
addr_extended = Structure.simple("addr_extended", "address", 8)

address = (
    AlternativeOptions("address", addr_none).insert_type(addr_short).insert_type(addr_extended)
)

dest_none = Structure("dest_none", "No destination PAN identifier or address.")
dest_short = Structure("dest_short").add_bytes_field("pan", 2).add_bytes_field("address", 2)
dest_extended = Structure("dest_extended").add_bytes_field("pan", 2).add_bytes_field("address", 8)

destination = (
    AlternativeOptions("destination", dest_none).insert_type(dest_short).insert_type(dest_extended)
)

pan_none = Structure("pan_none", "No PAN identifier.")
pan_short = Structure.simple("pan_short", "pan", 2)

source_pan = AlternativeOptions("source_panid", pan_short).insert_type(pan_none)

alternatives = Alternatives().insert(destination).insert(source_pan).insert(address)

mhr = (
    Structure("mhr", "MAC header.")
    .add_bitfield("frame_control", "frame_control", 2)
    .add_u8_field("sequence_number")
    .add_alt_field("destination", destination, "frame_control.dest_addr_mode")
    .add_alt_field("source_pan", source_pan, "frame_control.intra_pan")
    .add_alt_field("source_address", address, "frame_control.source_addr_mode")
)


def render(genfile: GenFile, package: str) -> None:
    genfile.add_import(f"{package}.frame_control", frame_control())

    for variant in (addr_none, addr_short, addr_extended):
        genfile.add_struct(variant)
    for variant in (dest_none, dest_short, dest_extended):
        genfile.add_struct(variant)
    for variant in (pan_none, pan_short):
        genfile.add_struct(variant)

    genfile.add_alternatives(alternatives)
    genfile.add_struct_with_alts(mhr, alternatives)


UNITS = [Unit("mac_frame", "IEEE 802.15.4 MAC header.", render)]
