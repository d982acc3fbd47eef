import typing


class DocumentMapperError(Exception):
    pass


class StoreConnectionError(DocumentMapperError, ConnectionError):
    pass


class ConfigurationError(DocumentMapperError, ValueError):
    pass


class PersistenceError(DocumentMapperError):
    def __init__(self, action: str, cause: typing.Any) -> None:
        self.action = action
        self.cause = cause
        super().__init__(f"{action} failed: {_describe(cause)}")


class ProtocolError(DocumentMapperError, ValueError):
    def __init__(self, keys: typing.Iterable[str]) -> None:
        self.keys = list(keys)
        super().__init__(f"update must only use '$'-prefixed operators, got: {', '.join(map(repr, self.keys))}")


class PathError(DocumentMapperError, LookupError):
    def __init__(self, path: str, segment: str, reason: str) -> None:
        self.path = path
        self.segment = segment
        super().__init__(f"cannot resolve '{path}' at '{segment}': {reason}")


class TypeMismatchError(DocumentMapperError, TypeError):
    def __init__(
        self, operator: str, path: str, kind: typing.Any, assigned_kind: typing.Optional[typing.Any] = None
    ) -> None:
        self.operator = operator
        self.path = path
        self.kind = kind
        self.assigned_kind = assigned_kind
        if assigned_kind is None:
            message = f"{operator} not allowed on '{path}' holding {kind}"
        else:
            message = f"{operator} on '{path}' would change {kind} at rest into {assigned_kind} being assigned"
        super().__init__(message)


class InflationError(DocumentMapperError, ValueError):
    def __init__(self, identity: typing.Any, reason: str) -> None:
        self.identity = identity
        super().__init__(f"could not inflate document {identity!r}: {reason}")


def _describe(cause: typing.Any) -> str:
    # pymongo errors carry server details after the first line
    text = str(cause).strip()
    return text.splitlines()[0] if text else type(cause).__name__
