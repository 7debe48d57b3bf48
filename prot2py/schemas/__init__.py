"""Built-in IEEE 802.15.4 MAC layer schemas.

``render_all`` writes every unit as a module of one generated package:

    ieee802154/
        frame_control.py
        mac_frame.py
        security_control.py
        auxiliary_security_header.py
        beacon/...
        mac_command/...
"""

import logging
import os
from pathlib import Path

from ..generator.file import DEFAULT_RUNTIME_IMPORT, SinkWriteFailure, output
from ..generator.validation import ValidationError
from . import beacon, frame_control, mac_command, mac_frame, security
from .unit import Unit, UnitError

logger = logging.getLogger(__name__)

UNITS: list[Unit] = [
    *frame_control.UNITS,
    *mac_frame.UNITS,
    *beacon.UNITS,
    *mac_command.UNITS,
    *security.UNITS,
]

PACKAGE_DOC = '"""IEEE 802.15.4 codecs generated by prot2py."""\n'


def _write_packages(outdir: Path, units: list[Unit]) -> list[UnitError]:
    errors = []
    packages = {()} | {unit.path[:-1] for unit in units}
    for package in sorted(packages):
        init = outdir.joinpath(*package, "__init__.py")
        try:
            init.parent.mkdir(parents=True, exist_ok=True)
            init.write_text(PACKAGE_DOC, encoding="utf-8")
        except OSError as err:
            errors.append(UnitError(".".join(package) or "__init__", err))
    return errors


def render_all(
    outdir: str | os.PathLike[str],
    package: str = "ieee802154",
    runtime_import: str = DEFAULT_RUNTIME_IMPORT,
    units: list[Unit] | None = None,
) -> list[UnitError]:
    """Generate every unit into ``outdir``, the directory of ``package``.

    A failing unit writes nothing and does not stop the others.

    Returns:
        The errors of all failed units, empty on success.
    """
    outdir = Path(outdir)
    units = UNITS if units is None else units
    errors = _write_packages(outdir, units)
    failed = 0

    for unit in units:
        try:
            with output(outdir.joinpath(*unit.path), runtime_import, unit.title) as genfile:
                unit.build(genfile, package)
        except (ValidationError, SinkWriteFailure) as err:
            logger.error("%s failed: %s", unit.module, err)
            errors.append(UnitError(unit.module, err))
            failed += 1

    logger.info("rendered %d of %d units", len(units) - failed, len(units))
    return errors
