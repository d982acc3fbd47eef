import datetime
import decimal
import typing

import attr
import pytest
from bson import ObjectId

from document_mapper.errors import PathError
from document_mapper.kinds import NOT_PRESENT, Kind, Resolved, is_number, kind_of, matches, resolve_path
from document_mapper.types import EpochDateTime


@pytest.mark.parametrize(
    "value, expected_kind",
    [
        (None, Kind.UNSET),
        ("text", Kind.SCALAR),
        (b"raw", Kind.SCALAR),
        (3, Kind.SCALAR),
        (2.5, Kind.SCALAR),
        (True, Kind.SCALAR),
        (decimal.Decimal("1.5"), Kind.SCALAR),
        ([1, 2], Kind.LIST),
        ((1, 2), Kind.LIST),
        ({"a": 1}, Kind.MAP),
        (EpochDateTime(0), Kind.OBJECT),
        (datetime.datetime(2020, 1, 1), Kind.OBJECT),
        (ObjectId(), Kind.OBJECT),
    ],
)
def test_kind_of(value: typing.Any, expected_kind: Kind) -> None:
    assert kind_of(value) is expected_kind


def test_matches() -> None:
    assert matches(frozenset({Kind.UNSET, Kind.LIST}), None)
    assert matches(frozenset({Kind.UNSET, Kind.LIST}), [])
    assert not matches(frozenset({Kind.UNSET, Kind.LIST}), {})


@pytest.mark.parametrize(
    "value, expected", [(1, True), (1.5, True), (decimal.Decimal(1), True), (True, False), ("1", False)]
)
def test_is_number(value: typing.Any, expected: bool) -> None:
    assert is_number(value) is expected


@attr.s(auto_attribs=True)
class Sample:
    name: str = "Larry"
    tags: typing.List[typing.Any] = attr.Factory(lambda: ["a", {"deep": [1, 2]}])
    parents: typing.Dict[str, typing.Any] = attr.Factory(lambda: {"father": {"name": "Bob"}, "mother": None})
    missing: typing.Any = None


FIELDS = frozenset({"name", "tags", "parents", "missing"})


@pytest.mark.parametrize(
    "path, expected",
    [
        ("name", Resolved(True, "Larry")),
        ("tags.0", Resolved(True, "a")),
        ("tags.1.deep.1", Resolved(True, 2)),
        ("tags.7", NOT_PRESENT),
        ("parents.father.name", Resolved(True, "Bob")),
        ("parents.uncle", NOT_PRESENT),
        ("parents.mother", NOT_PRESENT),
        ("parents.mother.name", NOT_PRESENT),
        ("missing", NOT_PRESENT),
        ("missing.anything.at.all", NOT_PRESENT),
    ],
)
def test_resolves_paths(path: str, expected: Resolved) -> None:
    assert resolve_path(Sample(), path, FIELDS) == expected


def test_resolved_kind() -> None:
    assert resolve_path(Sample(), "tags", FIELDS).kind is Kind.LIST
    assert NOT_PRESENT.kind is Kind.UNSET


@pytest.mark.parametrize(
    "path, segment",
    [
        ("unknown", "unknown"),
        ("name.first", "first"),
        ("tags.first", "first"),
        ("tags.-1", "-1"),
        ("tags.\N{SUPERSCRIPT TWO}", "\N{SUPERSCRIPT TWO}"),
        ("tags.0.letter", "letter"),
        ("tags..0", "tags..0"),
    ],
)
def test_rejects_unresolvable_paths(path: str, segment: str) -> None:
    with pytest.raises(PathError) as error:
        resolve_path(Sample(), path, FIELDS)

    assert error.value.path == path
    assert error.value.segment == segment


def test_any_attribute_without_declared_fields() -> None:
    assert resolve_path(Sample(), "name") == Resolved(True, "Larry")
