import json
import logging
import sys
from typing import Any, Callable, Sequence, TextIO

from .client import ConsulClient, RawBody
from .config import Settings, load_settings
from .errors import ConsulClientError, UnknownCommand
from .grammar import command_for, usage
from .parser import parse_arguments


HELP_TOKENS = ("help", "-h", "--help")


def dispatch(argv: Sequence[str], client_factory: Callable[[], ConsulClient]) -> Any:
    """Resolve the sub-command, validate its flags, then run it.

    The client is only created once the arguments have parsed, so a bad
    command line never touches the network.
    """
    if not argv:
        raise UnknownCommand("Unknown command line argument")
    kind = command_for(argv[0])
    if kind is None:
        raise UnknownCommand(f'Unknown command line argument: "{argv[0]}"')

    cmd = parse_arguments(kind, argv[1:])
    return client_factory().execute(cmd)


def report_error(err: ConsulClientError, stream: TextIO) -> int:
    stream.write(f"\nERROR: {err} ... processing halted\n\n")
    return 1


def report_result(result: Any, stream: TextIO) -> int:
    if result is None:
        return 0
    if isinstance(result, RawBody):
        stream.write(result.rstrip() + "\n")
    else:
        stream.write(json.dumps(result, indent=2) + "\n")
    return 0


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def make_client() -> ConsulClient:
    settings = load_settings()
    configure_logging(settings)
    return ConsulClient(settings)


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)

    if args and args[0] in HELP_TOKENS:
        print(usage())
        return 0

    try:
        result = dispatch(args, make_client)
    except ConsulClientError as e:
        return report_error(e, sys.stderr)
    return report_result(result, sys.stdout)
