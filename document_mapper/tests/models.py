import typing

import attr

from document_mapper import Document, EpochDateTime


class Person(Document):
    name: str
    birthday: typing.Optional[EpochDateTime] = attr.ib(
        default=None, converter=attr.converters.optional(EpochDateTime.coerce)
    )
    likes: int = 0
    tags: typing.List[str] = attr.Factory(list)
    parents: typing.Dict[str, typing.Any] = attr.Factory(dict)
    nickname: typing.Optional[str] = None
    extra: typing.Any = None

    @classmethod
    def _indexes(cls) -> typing.List[typing.Sequence]:
        return [[{"unique": True}, "name", 1], ["tags", 1, "likes", 1]]


class Gadget(Document):
    __collection__ = "gadget_inventory"

    label: str
    serial: str


class Widget(Document):
    label: str

    @classmethod
    def _indexes(cls) -> typing.List[typing.Sequence]:
        return [["label", 1], [{"sparse": True}, "label", 1, "extra"]]


@attr.s(auto_attribs=True)
class Address:
    city: str
    street: typing.Optional[str] = None


class Customer(Document):
    name: str
    address: typing.Optional[Address] = None
