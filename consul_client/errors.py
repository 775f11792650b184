class ConsulClientError(Exception):
    kind = "ConsulClientError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.message))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ParseError(ConsulClientError):
    kind = "ParseError"


class EmptyArguments(ParseError):
    kind = "EmptyArguments"


class MalformedFlag(ParseError):
    kind = "MalformedFlag"


class UnknownFlag(ParseError):
    kind = "UnknownFlag"


class MissingValue(ParseError):
    kind = "MissingValue"


class InvalidEnumValue(ParseError):
    kind = "InvalidEnumValue"


class DuplicateFlag(ParseError):
    kind = "DuplicateFlag"


class UnknownCommand(ConsulClientError):
    kind = "UnknownCommand"


class RequestBuildError(ConsulClientError):
    kind = "RequestBuildError"


class ConfigError(ConsulClientError):
    kind = "ConfigError"


class TransportError(ConsulClientError):
    kind = "TransportError"

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
