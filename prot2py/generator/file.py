"""Emission sink: collects generated declarations and writes them as one file."""

import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .bitfield import CompiledBitField, compile_bitfield
from .python import (
    Declaration,
    render_alternatives,
    render_bitfield,
    render_header,
    render_structure,
)
from .structure import FieldKind, compile_structure
from .types import AlternativeOptions, Alternatives, BitContainer, Schema, Structure
from .util import to_camel_case
from .validation import DuplicateDeclaration, UnresolvedVariant, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_RUNTIME_IMPORT = "prot2py.proto"


class SinkWriteFailure(RuntimeError):
    """Raised when generated code cannot be written to its destination."""


class GenFile:
    """Ordered buffer of declarations for one generated Python module.

    Each ``add_*`` call compiles one unit completely before anything is
    recorded, so a failing unit leaves the buffer untouched.

    Example:
        genfile = GenFile()
        genfile.add_bitfield(frame_control)
        genfile.add_struct(addr_none)
        genfile.write_file("out/mac_frame.py")
    """

    def __init__(self, runtime_import: str = DEFAULT_RUNTIME_IMPORT, title: str | None = None):
        self.runtime_import = runtime_import
        self.title = title
        self._declarations: list[Declaration] = []
        self._names: set[str] = set()
        self._imports: dict[str, list[str]] = {}
        self._bitfields: dict[str, CompiledBitField] = {}

    @property
    def declarations(self) -> list[Declaration]:
        return list(self._declarations)

    @property
    def bitfields(self) -> dict[str, CompiledBitField]:
        """Bitfield layouts declared in or imported into this file, by class name."""
        return dict(self._bitfields)

    def _claim(self, names: list[str]) -> None:
        seen = set(self._names)
        for name in names:
            if name in seen:
                raise DuplicateDeclaration(f"'{name}' is declared more than once in this file")
            seen.add(name)

    def _extend(self, declarations: list[Declaration]) -> None:
        self._claim([d.name for d in declarations])
        self._declarations.extend(declarations)
        self._names.update(d.name for d in declarations)

    def add_import(self, module: str, *items: BitContainer | str) -> None:
        """Import names from another generated module.

        Bit containers are compiled so that structures in this file can embed
        them by name and select variants on their slots.
        """
        names: list[str] = []
        layouts: list[CompiledBitField] = []
        for item in items:
            if isinstance(item, BitContainer):
                layout = compile_bitfield(item)
                layouts.append(layout)
                names.append(layout.class_name)
            else:
                names.append(item)
        self._claim(names)
        self._names.update(names)
        self._imports.setdefault(module, []).extend(names)
        for layout in layouts:
            self._bitfields[layout.class_name] = layout

    def add_bitfield(self, bitfield: BitContainer) -> CompiledBitField:
        layout = compile_bitfield(bitfield)
        self._extend(render_bitfield(layout))
        self._bitfields[layout.class_name] = layout
        logger.debug("added bitfield %s", layout.class_name)
        return layout

    def add_struct(self, structure: Structure) -> None:
        self.add_struct_with_alts(structure, Alternatives())

    def add_struct_with_alts(self, structure: Structure, alternatives: Alternatives) -> None:
        compiled = compile_structure(structure, alternatives, self._bitfields)
        for field in compiled.fields:
            if field.kind == FieldKind.BITFIELD and field.type_name not in self._names:
                raise ValidationError(
                    f"{structure.name}.{field.name}: bitfield {field.type_name} must be added "
                    "or imported before the structure using it"
                )
        for binding in compiled.bindings:
            if binding.group_class not in self._names:
                raise UnresolvedVariant(
                    f"{structure.name}: variant group '{binding.group}' must be added "
                    "before the structure using it"
                )
        self._extend(render_structure(compiled))
        logger.debug("added structure %s", compiled.class_name)

    def add_alternatives(self, alternatives: Alternatives) -> None:
        for group in alternatives.groups:
            self._check_variants(group)
        self._extend(render_alternatives(alternatives))

    def _check_variants(self, group: AlternativeOptions) -> None:
        for variant in group.variants:
            if to_camel_case(variant.name) not in self._names:
                raise UnresolvedVariant(
                    f"{group.name}: variant '{variant.name}' must be added before its group"
                )

    def render(self) -> str:
        """Return the complete module source."""
        parts = [render_header(self.runtime_import, self._imports, self.title)]
        parts.extend(d.code for d in self._declarations)
        return "\n\n\n".join(parts) + "\n"

    def write_file(self, path: str | os.PathLike[str]) -> None:
        """Write the module to ``path``.

        The file is replaced atomically, so a failed write never leaves
        partial output behind.

        Raises:
            SinkWriteFailure: The file could not be written.
        """
        target = Path(path)
        data = self.render()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(data)
                os.chmod(tmp_name, 0o644)
                os.replace(tmp_name, target)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as err:
            raise SinkWriteFailure(f"Could not write {target}: {err}") from err
        logger.info("wrote %d declarations to %s", len(self._declarations), target)


@contextmanager
def output(
    path: str | os.PathLike[str],
    runtime_import: str = DEFAULT_RUNTIME_IMPORT,
    title: str | None = None,
) -> Iterator[GenFile]:
    """Collect declarations for ``path`` and write them when the block exits.

    Nothing is written if the block raises.

    Example:
        with output("out/frame_control.py") as genfile:
            genfile.add_bitfield(frame_control)
    """
    genfile = GenFile(runtime_import, title)
    yield genfile
    genfile.write_file(path)


def render_schema(
    schema: Schema, runtime_import: str = DEFAULT_RUNTIME_IMPORT, title: str | None = None
) -> GenFile:
    """Add every declaration of a parsed schema to a new GenFile, in order."""
    genfile = GenFile(runtime_import, title)
    alternatives = schema.alternatives
    for item in schema.items:
        if isinstance(item, BitContainer):
            genfile.add_bitfield(item)
        elif isinstance(item, AlternativeOptions):
            genfile.add_alternatives(Alternatives((item,)))
        else:
            genfile.add_struct_with_alts(item, alternatives)
    return genfile
