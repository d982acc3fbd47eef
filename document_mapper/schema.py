import abc
import typing
from collections import deque

import attr
import inflection

from document_mapper.kinds import SCALAR_TYPES, Kind


T = typing.TypeVar("T")


class Identity(typing.Generic[T]):
    @classmethod
    def is_identity(cls, field_type: typing.Any) -> bool:
        return getattr(field_type, "__origin__", None) is cls


def _is_generic(field_type: typing.Any) -> bool:
    return hasattr(field_type, "__origin__")


def _get_wrapped_type(wrapped_type: typing.Any) -> typing.Any:
    return wrapped_type.__args__[0]


def _is_field_nullable(field_type: typing.Any) -> bool:
    return (
        getattr(field_type, "__origin__", None) is typing.Union
        and len(field_type.__args__) == 2
        and type(None) in field_type.__args__
    )


def _unwrap_nullable(field_type: typing.Any) -> typing.Any:
    return next(arg for arg in field_type.__args__ if arg is not type(None))


def infer_kind(field_type: typing.Any) -> typing.Optional[Kind]:
    """Maps a field annotation onto the kind its values must have; None means any kind."""
    if field_type is None or field_type is typing.Any:
        return None
    if _is_generic(field_type):
        origin = field_type.__origin__
        if origin in (list, tuple):
            return Kind.LIST
        if origin is dict:
            return Kind.MAP
        return None
    if not isinstance(field_type, type):
        return None
    if issubclass(field_type, (list, tuple)):
        return Kind.LIST
    if issubclass(field_type, dict):
        return Kind.MAP
    if issubclass(field_type, SCALAR_TYPES):
        return Kind.SCALAR
    return Kind.OBJECT


class Visitor:
    def traverse_from(self, node: "Node") -> None:
        node.accept(self)
        for child in node.children:
            self.traverse_from(child)
        node.farewell(self)

    def visit_field(self, field: "FieldNode") -> None:
        pass

    def leave_field(self, field: "FieldNode") -> None:
        pass

    def visit_document(self, document: "DocumentNode") -> None:
        pass

    def leave_document(self, document: "DocumentNode") -> None:
        pass


class NodeMeta(type):
    def __new__(mcs, name: str, bases: tuple, namespace: dict) -> typing.Type:
        cls = super().__new__(mcs, name, bases, namespace)
        return attr.s(auto_attribs=True)(cls)


class Node(metaclass=NodeMeta):
    name: str
    type: typing.Any
    nullable: bool = False
    children: typing.List["Node"] = attr.Factory(list)

    @abc.abstractmethod
    def accept(self, visitor: Visitor) -> None:
        pass

    @abc.abstractmethod
    def farewell(self, visitor: Visitor) -> None:
        pass


class FieldNode(Node):
    is_identity: bool = False
    kind: typing.Optional[Kind] = None
    has_default: bool = False

    @property
    def storage_name(self) -> str:
        return "_id" if self.is_identity else self.name

    def accept(self, visitor: Visitor) -> None:
        visitor.visit_field(self)

    def farewell(self, visitor: Visitor) -> None:
        visitor.leave_field(self)


class DocumentNode(Node):
    def accept(self, visitor: Visitor) -> None:
        visitor.visit_document(self)

    def farewell(self, visitor: Visitor) -> None:
        visitor.leave_document(self)


@attr.s(auto_attribs=True)
class DocumentSchema:
    root: DocumentNode

    def __iter__(self) -> typing.Generator[Node, None, None]:
        def iterate_dfs() -> typing.Generator[Node, None, None]:
            nodes_left: typing.Deque[Node] = deque([self.root])

            while nodes_left:
                current = nodes_left.pop()
                yield current
                nodes_left.extend(current.children[::-1])

        return iterate_dfs()

    @property
    def fields(self) -> typing.List[FieldNode]:
        return [node for node in self.root.children if isinstance(node, FieldNode)]

    @property
    def field_names(self) -> typing.FrozenSet[str]:
        return frozenset(node.name for node in self.fields)

    @property
    def identity(self) -> FieldNode:
        return next(node for node in self.fields if node.is_identity)

    def field(self, name: str) -> typing.Optional[FieldNode]:
        return next((node for node in self.fields if node.name == name), None)


def build(document_cls: typing.Type) -> DocumentSchema:
    children: typing.List[Node] = []

    for field in attr.fields(document_cls):
        field_type = field.type
        is_identity = False
        nullable = False

        if Identity.is_identity(field_type):
            field_type = _get_wrapped_type(field_type)
            is_identity = True
        elif _is_field_nullable(field_type):
            field_type = _unwrap_nullable(field_type)
            nullable = True

        children.append(
            FieldNode(
                name=field.name,
                type=field_type,
                nullable=nullable,
                children=[],
                is_identity=is_identity,
                kind=infer_kind(field_type),
                has_default=field.default is not attr.NOTHING,
            )
        )

    identities = [node for node in children if node.is_identity]
    if len(identities) != 1:
        raise TypeError(f"{document_cls.__name__} must declare exactly one Identity field")

    return DocumentSchema(
        DocumentNode(name=inflection.underscore(document_cls.__name__), type=document_cls, children=children)
    )
