"""prot2py - Bit-accurate protocol codec generator for link-layer frames."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("prot2py")
except PackageNotFoundError:
    __version__ = "(local)"
