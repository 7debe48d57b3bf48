"""Description of one generated module of the built-in schemas."""

from collections.abc import Callable
from dataclasses import dataclass

from ..generator.file import GenFile
from ..generator.types import BitContainer


@dataclass(frozen=True)
class Unit:
    """One output module.

    ``module`` is dotted and relative to the generated package. ``build`` fills
    the module's GenFile; it receives the package name for cross-module imports.
    """

    module: str
    title: str
    build: Callable[[GenFile, str], None]

    @property
    def path(self) -> tuple[str, ...]:
        parts = self.module.split(".")
        return (*parts[:-1], f"{parts[-1]}.py")


@dataclass(frozen=True)
class UnitError:
    """A unit that failed to compile or write."""

    module: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.module}: {self.error}"


def bitfield_unit(module: str, title: str, build: Callable[[], BitContainer]) -> Unit:
    """A unit holding a single bitfield."""

    def render(genfile: GenFile, package: str) -> None:
        genfile.add_bitfield(build())

    return Unit(module, title, render)
