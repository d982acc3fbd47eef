import decimal
import enum
import typing

import attr

from document_mapper.errors import PathError


class Kind(enum.Enum):
    UNSET = "unset"
    SCALAR = "scalar"
    OBJECT = "object"
    LIST = "list"
    MAP = "map"

    def __str__(self) -> str:
        return self.value


ANY_KIND: typing.FrozenSet[Kind] = frozenset(Kind)

SCALAR_TYPES = (str, bytes, int, float, bool, decimal.Decimal)


def kind_of(value: typing.Any) -> Kind:
    if value is None:
        return Kind.UNSET
    if isinstance(value, (list, tuple)):
        return Kind.LIST
    if isinstance(value, dict):
        return Kind.MAP
    if isinstance(value, SCALAR_TYPES):
        return Kind.SCALAR
    return Kind.OBJECT


def matches(allowed: typing.AbstractSet[Kind], value: typing.Any) -> bool:
    return kind_of(value) in allowed


def is_number(value: typing.Any) -> bool:
    return isinstance(value, (int, float, decimal.Decimal)) and not isinstance(value, bool)


@attr.s(auto_attribs=True, frozen=True)
class Resolved:
    present: bool
    value: typing.Any = None

    @property
    def kind(self) -> Kind:
        return kind_of(self.value) if self.present else Kind.UNSET


NOT_PRESENT = Resolved(present=False)


def split_path(path: str) -> typing.List[str]:
    segments = str(path).split(".")
    if not all(segments):
        raise PathError(path, path, "empty path segment")
    return segments


def resolve_path(
    root: typing.Any, path: str, fields: typing.Optional[typing.AbstractSet[str]] = None
) -> Resolved:
    """Walks `root` along a dotted `path`.

    The first segment names an attribute of `root`, which must be one of `fields`
    when given. Later segments index into lists (non-negative integers) or maps.
    Running off the end of a list, a missing map key or an unset value along the way
    all mean "not present". Descending into anything else raises `PathError`.
    """
    head, *rest = split_path(path)
    if fields is not None and head not in fields:
        raise PathError(path, head, "not a declared field")

    current = getattr(root, head, None)
    for segment in rest:
        if current is None:
            return NOT_PRESENT
        current_kind = kind_of(current)
        if current_kind is Kind.LIST:
            if not (segment.isascii() and segment.isdigit()):
                raise PathError(path, segment, "list index must be a non-negative integer")
            index = int(segment)
            if index >= len(current):
                return NOT_PRESENT
            current = current[index]
        elif current_kind is Kind.MAP:
            if segment not in current:
                return NOT_PRESENT
            current = current[segment]
        else:
            raise PathError(path, segment, f"cannot descend into {current_kind}")

    if current is None:
        return NOT_PRESENT
    return Resolved(present=True, value=current)
