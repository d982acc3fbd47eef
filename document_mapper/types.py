import datetime
import typing
import uuid
from functools import singledispatch

import attr
from bson import DatetimeMS

from document_mapper.schema import FieldNode


def _to_utc(value: datetime.datetime) -> datetime.datetime:
    # naive values coming back from the server are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


@attr.s(auto_attribs=True, eq=False)
class EpochDateTime:
    """Floating point epoch seconds that only turn into a `datetime` when asked to."""

    epoch: float = attr.ib(converter=float)
    _datetime: typing.Optional[datetime.datetime] = attr.ib(default=None, init=False, repr=False)

    @property
    def datetime(self) -> datetime.datetime:
        if self._datetime is None:
            self._datetime = datetime.datetime.fromtimestamp(self.epoch, tz=datetime.timezone.utc)
        return self._datetime

    @classmethod
    def coerce(cls, value: typing.Any) -> "EpochDateTime":
        if isinstance(value, cls):
            return value
        if isinstance(value, DatetimeMS):
            return cls(int(value) / 1000)
        if isinstance(value, datetime.datetime):
            return cls(_to_utc(value).timestamp())
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return cls(value)
        raise TypeError(f"cannot make an EpochDateTime out of {value!r}")

    def __eq__(self, other: typing.Any) -> bool:
        if not isinstance(other, EpochDateTime):
            return NotImplemented
        # storage keeps millisecond precision
        return round(self.epoch * 1000) == round(other.epoch * 1000)

    def __hash__(self) -> int:
        return hash(round(self.epoch * 1000))


@singledispatch
def to_storage(argument: typing.Any) -> typing.Any:
    if attr.has(type(argument)):
        return to_storage(attr.asdict(argument, recurse=False))
    return argument


@to_storage.register(EpochDateTime)
def _(argument: EpochDateTime) -> datetime.datetime:
    return argument.datetime


@to_storage.register(uuid.UUID)
def _(argument: uuid.UUID) -> str:
    return str(argument)


@to_storage.register(list)
@to_storage.register(tuple)
def _(argument: typing.Sequence) -> list:
    return [to_storage(item) for item in argument]


@to_storage.register(dict)
def _(argument: dict) -> dict:
    return {key: to_storage(value) for key, value in argument.items()}


def _to_datetime(argument: typing.Any) -> typing.Any:
    if isinstance(argument, DatetimeMS):
        return _to_utc(argument.as_datetime())
    if isinstance(argument, datetime.datetime):
        return _to_utc(argument)
    return argument


mapping: typing.Dict[typing.Type, typing.Callable[[typing.Any], typing.Any]] = {
    EpochDateTime: EpochDateTime.coerce,
    datetime.datetime: _to_datetime,
    uuid.UUID: uuid.UUID,
}


def _is_attrs_class(field_type: typing.Any) -> bool:
    return isinstance(field_type, type) and attr.has(field_type)


def _from_mapping(cls: typing.Type, data: typing.Mapping[str, typing.Any]) -> typing.Any:
    kwargs = {}
    for field in attr.fields(cls):
        if not field.init or field.name not in data:
            continue
        value = data[field.name]
        if _is_attrs_class(field.type) and isinstance(value, typing.Mapping):
            value = _from_mapping(field.type, value)
        # attrs strips the leading underscore of private attributes from init arguments
        kwargs[field.name.lstrip("_")] = value
    return cls(**kwargs)


def from_storage(argument: typing.Any, field: FieldNode) -> typing.Any:
    if argument is None:
        return None
    try:
        converter = mapping[field.type]
    except (KeyError, TypeError):
        if _is_attrs_class(field.type) and isinstance(argument, typing.Mapping):
            return _from_mapping(field.type, argument)
        return argument
    return converter(argument)
