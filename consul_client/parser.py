from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Sequence

from .errors import (
    DuplicateFlag,
    EmptyArguments,
    InvalidEnumValue,
    MalformedFlag,
    MissingValue,
    ParseError,
    UnknownFlag,
)
from .grammar import CommandKind, flag_spec


SWITCH_ON = "true"


@dataclass(frozen=True)
class ParsedCommand:
    kind: CommandKind
    fields: Mapping[str, str]

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.fields.get(name, default)

    def __hash__(self) -> int:
        return hash((self.kind, frozenset(self.fields.items())))


@dataclass(frozen=True)
class ParseOutcome:
    command: ParsedCommand | None = None
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_arguments(kind: CommandKind, tokens: Sequence[str]) -> ParsedCommand:
    """Validate ``--flag value`` pairs for one sub-command.

    Raises the first ParseError encountered; nothing is returned on failure.
    """
    key = kind.value
    if not tokens:
        raise EmptyArguments(f"No {key} arguments were provided")

    fields: dict[str, str] = {}
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if not token.startswith("--"):
            if token == "":
                raise MalformedFlag(f"{key} directive requires an argument")
            raise MalformedFlag(f'Invalid {key} argument: "{token}"')

        name = token[2:]
        spec = flag_spec(kind, name)
        if spec is None:
            raise UnknownFlag(f'Invalid {key} type: "--{name}"')

        if not spec.requires_value:
            if name in fields:
                raise DuplicateFlag(f'{key} type "--{name}" was already given')
            fields[name] = SWITCH_ON
            i += 1
            continue

        value = tokens[i + 1] if i + 1 < len(tokens) else ""
        if value == "":
            raise MissingValue(f'{key} type "--{name}" requires an argument')

        if spec.allowed_values is not None and value not in spec.allowed_values:
            raise InvalidEnumValue(f'Invalid sub {key} type: "{value}"')

        if name in fields:
            raise DuplicateFlag(f'{key} type "--{name}" was already given')

        fields[name] = value
        i += 2

    return ParsedCommand(kind=kind, fields=MappingProxyType(fields))


def try_parse(kind: CommandKind, tokens: Sequence[str]) -> ParseOutcome:
    try:
        return ParseOutcome(command=parse_arguments(kind, tokens))
    except ParseError as e:
        return ParseOutcome(error=e)
