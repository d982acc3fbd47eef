from typing import Dict, Type

import attr

from document_mapper.schema import DocumentSchema, build


@attr.s(auto_attribs=True)
class Registry:
    documents_to_schemas: Dict[Type, DocumentSchema] = attr.Factory(dict)

    def schema_for(self, document_cls: Type) -> DocumentSchema:
        if document_cls not in self.documents_to_schemas:
            self.documents_to_schemas[document_cls] = build(document_cls)
        return self.documents_to_schemas[document_cls]


registry = Registry()
