"""Naming and text helpers for code generation."""

import keyword
import re

_SEPARATORS = re.compile(r"[\s_\-]+")


def to_camel_case(name: str) -> str:
    """Convert a schema name to a class name (``Frame_control`` -> ``FrameControl``)."""
    return "".join(part[:1].upper() + part[1:].lower() for part in _SEPARATORS.split(name) if part)


def to_snake_case(name: str) -> str:
    """Convert a schema name to an attribute name (``Intra_PAN`` -> ``intra_pan``)."""
    snake = "_".join(part.lower() for part in _SEPARATORS.split(name) if part)
    if keyword.iskeyword(snake):
        return snake + "_"
    return snake


def one_line(text: str | None) -> str:
    """Collapse whitespace so text fits in a single comment line."""
    if not text:
        return ""
    return " ".join(text.split())


def docstring(text: str | None) -> str:
    """Escape text for use inside a triple-quoted docstring."""
    text = one_line(text)
    text = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if text.endswith('"'):
        text += " "
    return text
