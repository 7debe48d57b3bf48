"""Variant resolution: binds variant groups to the domain of a selector.

Binding is positional. The fallback variant binds to the selector's zero
value; the k-th inserted variant binds to the k-th remaining enumerated value
in declaration order, or to value k when the selector is numeric. Either way
the group must cover every value of the selector.
"""

import logging
from dataclasses import dataclass
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin

from .bitfield import EnumMember
from .types import AlternativeOptions, Alternatives
from .util import to_camel_case
from .validation import UnresolvedVariant, check_identifier

logger = logging.getLogger(__name__)


class SelectorSource(StrEnum):
    """Where a selector value comes from."""

    FIELD = auto()  # A preceding integer field
    SLOT = auto()  # A slot of a preceding embedded bitfield
    CONTEXT = auto()  # A value supplied by the caller


@dataclass(frozen=True)
class Selector(DataClassJsonMixin):
    """Resolved selector of an alternative field."""

    path: str
    source: SelectorSource
    field: str
    slot: str | None
    width: int
    members: tuple[EnumMember, ...] = ()

    @property
    def is_enumerated(self) -> bool:
        return bool(self.members)


@dataclass(frozen=True)
class VariantCase(DataClassJsonMixin):
    """One selector value and the variant class it selects."""

    value: int
    symbol: str | None
    class_name: str


@dataclass(frozen=True)
class VariantBinding(DataClassJsonMixin):
    """Dispatch table of one alternative field."""

    group: str
    group_class: str
    selector: Selector
    cases: tuple[VariantCase, ...]


def check_group(group: AlternativeOptions) -> list[str]:
    """Validate a group on its own and return its variant class names.

    Raises:
        UnresolvedVariant: Two variants of the group are the same structure.
    """
    check_identifier(to_camel_case(group.name), group.name)
    names: list[str] = []
    for variant in group.variants:
        class_name = check_identifier(to_camel_case(variant.name), group.name)
        if class_name in names:
            raise UnresolvedVariant(
                f"{group.name}: variant '{variant.name}' appears more than once"
            )
        names.append(class_name)
    return names


def check_alternatives(alternatives: Alternatives) -> None:
    """Validate every group of a batch. Groups are otherwise independent."""
    seen: set[str] = set()
    for group in alternatives.groups:
        class_name = to_camel_case(group.name)
        if class_name in seen:
            raise UnresolvedVariant(f"variant group '{group.name}' declared more than once")
        seen.add(class_name)
        check_group(group)


def resolve_group(group: AlternativeOptions, selector: Selector, owner: str) -> VariantBinding:
    """Bind a group to a selector domain.

    Raises:
        UnresolvedVariant: The group does not cover the selector's domain, or an
            enumerated domain has no zero value.
    """
    names = check_group(group)
    unit = f"{owner}: group '{group.name}' selected by '{selector.path}'"

    if selector.is_enumerated:
        if len(selector.members) != len(names):
            raise UnresolvedVariant(
                f"{unit} has {len(names)} variants for {len(selector.members)} selector values"
            )
        zero = [m for m in selector.members if m.value == 0]
        if not zero:
            raise UnresolvedVariant(f"{unit} has no zero value to bind the fallback to")
        rest = [m for m in selector.members if m.value != 0]
        cases = [VariantCase(0, zero[0].name, names[0])]
        cases.extend(
            VariantCase(member.value, member.name, name)
            for member, name in zip(rest, names[1:], strict=True)
        )
    else:
        if len(names) != 1 << selector.width:
            raise UnresolvedVariant(
                f"{unit} has {len(names)} variants for the {1 << selector.width} values "
                f"of a {selector.width}-bit numeric selector"
            )
        cases = [VariantCase(value, None, name) for value, name in enumerate(names)]

    logger.debug("bound %s to %s with %d cases", group.name, selector.path, len(cases))

    return VariantBinding(
        group=group.name,
        group_class=to_camel_case(group.name),
        selector=selector,
        cases=tuple(cases),
    )
