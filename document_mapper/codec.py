import typing

import attr

from document_mapper.errors import InflationError
from document_mapper.kinds import Kind, kind_of
from document_mapper.registry import registry
from document_mapper.schema import DocumentNode, DocumentSchema, FieldNode, Visitor
from document_mapper.types import from_storage, to_storage


class PackingVisitor(Visitor):
    def __init__(self, document: typing.Any) -> None:
        self._document = document
        self._result: typing.Dict[str, typing.Any] = {}

    @property
    def result(self) -> typing.Dict[str, typing.Any]:
        return self._result

    def visit_field(self, field: FieldNode) -> None:
        value = getattr(self._document, field.name)
        # unset fields are left out of the stored document
        if value is not None or field.is_identity:
            self._result[field.storage_name] = to_storage(value)


class UnpackingVisitor(Visitor):
    def __init__(self, data: typing.Mapping[str, typing.Any]) -> None:
        self._data = data
        self._kwargs: typing.Dict[str, typing.Any] = {}
        self._result: typing.Any = None

    @property
    def identity(self) -> typing.Any:
        return self._data.get("_id")

    @property
    def result(self) -> typing.Any:
        return self._result

    def visit_field(self, field: FieldNode) -> None:
        if field.storage_name not in self._data:
            if not field.has_default:
                # cleared or projected away; None stands for "unset"
                self._kwargs[field.name] = None
            return

        try:
            value = from_storage(self._data[field.storage_name], field)
        except (TypeError, ValueError) as exc:
            raise InflationError(self.identity, f"field '{field.name}': {exc}") from exc

        value_kind = kind_of(value)
        if field.kind is not None and value_kind is not Kind.UNSET and value_kind is not field.kind:
            raise InflationError(self.identity, f"field '{field.name}' should hold {field.kind}, found {value_kind}")
        self._kwargs[field.name] = value

    def leave_document(self, document: DocumentNode) -> None:
        try:
            self._result = document.type(**self._kwargs)
        except (TypeError, ValueError) as exc:
            raise InflationError(self.identity, str(exc)) from exc


@attr.s(auto_attribs=True)
class Codec:
    document_cls: typing.Type

    @property
    def schema(self) -> DocumentSchema:
        return registry.schema_for(self.document_cls)

    def pack(self, document: typing.Any) -> typing.Dict[str, typing.Any]:
        visitor = PackingVisitor(document)
        visitor.traverse_from(self.schema.root)
        return visitor.result

    def unpack(self, data: typing.Mapping[str, typing.Any]) -> typing.Any:
        visitor = UnpackingVisitor(data)
        visitor.traverse_from(self.schema.root)
        return visitor.result
