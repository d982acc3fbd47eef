import decimal
import typing

import attr
import pytest
from bson import ObjectId

from document_mapper import schema
from document_mapper.kinds import Kind
from document_mapper.schema import DocumentNode, DocumentSchema, FieldNode, Identity, Node, Visitor
from document_mapper.tests.models import Gadget, Person
from document_mapper.types import EpochDateTime


class Scribe(Visitor):
    def __init__(self) -> None:
        self.visits_log: typing.List[typing.Tuple[str, str]] = []

    def visit_field(self, node: "Node") -> None:
        self.visits_log.append(("visit", node.name))

    def leave_field(self, node: "Node") -> None:
        self.visits_log.append(("leave", node.name))

    visit_document = visit_field
    leave_document = leave_field


def test_builds_person() -> None:
    result = schema.build(Person)

    assert result.root.name == "person"
    assert result.root.type is Person
    assert [(node.name, node.type, node.kind, node.nullable) for node in result.fields] == [
        ("id", ObjectId, Kind.OBJECT, False),
        ("name", str, Kind.SCALAR, False),
        ("birthday", EpochDateTime, Kind.OBJECT, True),
        ("likes", int, Kind.SCALAR, False),
        ("tags", typing.List[str], Kind.LIST, False),
        ("parents", typing.Dict[str, typing.Any], Kind.MAP, False),
        ("nickname", str, Kind.SCALAR, True),
        ("extra", typing.Any, None, False),
    ]


def test_identity_and_defaults() -> None:
    result = schema.build(Person)

    assert result.identity.name == "id"
    assert result.identity.storage_name == "_id"
    assert result.field("name").storage_name == "name"
    assert not result.field("name").has_default
    assert result.field("likes").has_default
    assert result.field("tags").has_default
    assert result.field("nowhere") is None
    assert result.field_names == frozenset({"id", "name", "birthday", "likes", "tags", "parents", "nickname", "extra"})


def test_root_name_is_underscored() -> None:
    assert schema.build(Gadget).root.name == "gadget"


@attr.s(auto_attribs=True)
class Plain:
    name: str


@attr.s(auto_attribs=True)
class TwoFaced:
    first: Identity[int]
    second: Identity[int]


@pytest.mark.parametrize("document_cls", [Plain, TwoFaced])
def test_requires_exactly_one_identity(document_cls: typing.Type) -> None:
    with pytest.raises(TypeError):
        schema.build(document_cls)


@pytest.fixture()
def tree() -> DocumentSchema:
    return DocumentSchema(
        root=DocumentNode(
            name="gadget",
            type=Gadget,
            children=[
                FieldNode(name="id", type=ObjectId, is_identity=True),
                FieldNode(name="label", type=str),
                FieldNode(name="serial", type=str),
            ],
        )
    )


def test_iterates_dfs(tree: DocumentSchema) -> None:
    assert [node.name for node in tree] == ["gadget", "id", "label", "serial"]


def test_visits_and_leaves_every_node(tree: DocumentSchema) -> None:
    scribe = Scribe()

    scribe.traverse_from(tree.root)

    assert scribe.visits_log == [
        ("visit", "gadget"),
        ("visit", "id"),
        ("leave", "id"),
        ("visit", "label"),
        ("leave", "label"),
        ("visit", "serial"),
        ("leave", "serial"),
        ("leave", "gadget"),
    ]


@pytest.mark.parametrize(
    "field_type, expected_kind",
    [
        (str, Kind.SCALAR),
        (bool, Kind.SCALAR),
        (decimal.Decimal, Kind.SCALAR),
        (list, Kind.LIST),
        (typing.Tuple[int, int], Kind.LIST),
        (dict, Kind.MAP),
        (typing.Dict[str, int], Kind.MAP),
        (EpochDateTime, Kind.OBJECT),
        (typing.Any, None),
        (typing.Union[int, str], None),
    ],
)
def test_infers_kinds(field_type: typing.Any, expected_kind: typing.Optional[Kind]) -> None:
    assert schema.infer_kind(field_type) is expected_kind
