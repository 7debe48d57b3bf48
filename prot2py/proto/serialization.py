"""Serialization and deserialization support for generated prot2py codecs."""

from collections.abc import Mapping
from enum import IntEnum
from typing import Any, ClassVar, Self


class SerializationError(RuntimeError):
    """Raised when serialization or deserialization fails."""


class TruncatedInput(SerializationError):
    """Raised when fewer bytes remain than a field needs."""


class UndeclaredDiscriminant(SerializationError):
    """Raised when an integer has no symbol in an enumerated domain."""


class UnresolvedVariant(SerializationError):
    """Raised when a selector value does not resolve to a variant."""


def read_bytes(data: bytes | memoryview, offset: int, size: int, what: str) -> bytes:
    """Read exactly ``size`` bytes from ``data`` at ``offset``.

    Args:
        data: The buffer to read from.
        offset: Starting offset in data.
        size: Number of bytes required.
        what: Field description used in the error message.

    Returns:
        The bytes read.
    """
    available = len(data) - offset
    if available < size:
        raise TruncatedInput(f"{what} needs {size} bytes, {max(available, 0)} available")
    return bytes(data[offset : offset + size])


def check_range(value: int, width: int, name: str) -> int:
    """Return ``value`` if it fits in ``width`` unsigned bits."""
    if not 0 <= value < (1 << width):
        raise SerializationError(f"{name} value {value} does not fit in {width} bits")
    return value


def check_length(value: bytes, size: int, name: str) -> bytes:
    """Return ``value`` if it is exactly ``size`` bytes long."""
    if len(value) != size:
        raise SerializationError(f"{name} must be {size} bytes, got {len(value)}")
    return bytes(value)


def context_value(
    context: Mapping[str, Any] | None, name: str, *, required: bool = False
) -> int | None:
    """Look up an externally supplied selector value.

    Returns None when the value is absent and not required.
    """
    if context is None or name not in context:
        if required:
            raise UnresolvedVariant(f"no value supplied for context selector {name}")
        return None
    return int(context[name])


def select_variant(
    options: Mapping[int, type["Struct"]], value: int | None, field: str
) -> type["Struct"]:
    """Pick the variant type bound to a selector value."""
    if value is None:
        raise UnresolvedVariant(f"no selector value for {field}")
    variant = options.get(value)
    if variant is None:
        raise UnresolvedVariant(f"selector value {value} has no variant for {field}")
    return variant


def check_variant(
    options: Mapping[int, type["Struct"]], value: int | None, held: "Struct", field: str
) -> None:
    """Check that a held variant is the one its selector binds to.

    Nothing is checked when the selector value is unknown.
    """
    if value is None:
        return
    expected = select_variant(options, value, field)
    if type(held) is not expected:
        raise UnresolvedVariant(
            f"{field} holds {type(held).__name__} but selector value {value} "
            f"selects {expected.__name__}"
        )


class BitEnum(IntEnum):
    """Base class for the symbolic domain of an enumerated bitfield slot.

    Example:
        class Flag(BitEnum):
            off = 0
            on = 1
    """

    @classmethod
    def decode(cls, value: int) -> Self:
        """Map an integer to its declared symbol."""
        try:
            return cls(value)
        except ValueError:
            raise UndeclaredDiscriminant(
                f"{value} is not a declared {cls.__name__} value"
            ) from None


class BitField:
    """Base class for generated bit containers.

    Subclasses are @dataclass decorated with one attribute per named slot and
    implement ``to_raw``/``from_raw``. Multi-byte containers are little-endian.
    """

    _width: ClassVar[int]
    _size: ClassVar[int]

    def to_raw(self) -> int:
        """Return the container integer. Generated code overrides this."""
        raise NotImplementedError("to_raw() must be implemented by generated code")

    @classmethod
    def from_raw(cls, raw: int) -> Self:
        """Build an instance from the container integer. Generated code overrides this."""
        raise NotImplementedError("from_raw() must be implemented by generated code")

    def pack(self) -> bytes:
        """Pack this bitfield to bytes."""
        return self.to_raw().to_bytes(self._size, "little")

    def pack_into(self, buffer: bytearray | memoryview, offset: int = 0) -> int:
        """Overwrite ``buffer`` at ``offset`` with this bitfield.

        Returns:
            Number of bytes written.
        """
        buffer[offset : offset + self._size] = self.pack()
        return self._size

    @classmethod
    def unpack(cls, data: bytes | memoryview, offset: int = 0) -> tuple[Self, int]:
        """Unpack a bitfield from bytes.

        Args:
            data: The bytes to unpack from.
            offset: Starting offset in data.

        Returns:
            Tuple of (instance, bytes_consumed).
        """
        raw = read_bytes(data, offset, cls._size, cls.__name__)
        return cls.from_raw(int.from_bytes(raw, "little")), cls._size

    def size(self) -> int:
        return self._size


class Struct:
    """Base class for generated structure types.

    Subclasses are @dataclass decorated. Fields whose shape depends on a
    selector hold one of the variant structures of their group; the selector
    comes from an earlier field or from the caller supplied ``context``.

    Example:
        @dataclass
        class Header(Struct):
            seq: int
            addr: Address  # AddrNone | AddrShort
    """

    def pack(self, context: Mapping[str, Any] | None = None) -> bytes:
        """Pack this struct to bytes. Generated code overrides this."""
        raise NotImplementedError("pack() must be implemented by generated code")

    @classmethod
    def unpack(
        cls,
        data: bytes | memoryview,
        offset: int = 0,
        context: Mapping[str, Any] | None = None,
    ) -> tuple[Self, int]:
        """Unpack a struct from bytes.

        Args:
            data: The bytes to unpack from.
            offset: Starting offset in data.
            context: Values of selectors that are not part of this struct.

        Returns:
            Tuple of (instance, bytes_consumed).
        """
        raise NotImplementedError("unpack() must be implemented by generated code")

    def size(self) -> int:
        """Encoded size of this value in bytes."""
        return len(self.pack())
