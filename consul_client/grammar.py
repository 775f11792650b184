from dataclasses import dataclass
from enum import Enum


class CommandKind(str, Enum):
    QUERY = "query"
    REGISTER = "register"
    DEREGISTER = "deregister"


@dataclass(frozen=True)
class FlagSpec:
    name: str
    help: str = ""
    requires_value: bool = True
    allowed_values: frozenset[str] | None = None


QUERY_TYPES = frozenset({"datacenter", "services", "nodes"})

GRAMMAR: dict[CommandKind, tuple[FlagSpec, ...]] = {
    CommandKind.QUERY: (
        FlagSpec("type", "list registered datacenters|services|nodes", allowed_values=QUERY_TYPES),
        FlagSpec("datacenter", "query datacenter resource named <datacenter>"),
        FlagSpec("service", "query service resource whose name is <service>"),
        FlagSpec("node", "query node resource whose hostname is <node>"),
    ),
    CommandKind.REGISTER: (
        FlagSpec("datacenter", "the name of the datacenter to register"),
        FlagSpec("node", "the name of the node to register"),
        FlagSpec("node_address", "the IP address of the node to register"),
        FlagSpec("service_id", "the unique ID of the service to register"),
        FlagSpec("service_name", "a single string moniker for the service to register"),
        FlagSpec("tags", "comma separated key words associated with the service"),
        FlagSpec("service_address", "the IP address to associate with the service"),
        FlagSpec("service_port", "port associated with the service_address"),
        FlagSpec("check_node", "the name of the node to check"),
        FlagSpec("check_id", "the service ID the check belongs to (CheckID service:<id>)"),
        FlagSpec("check_name", "a terse description of the check"),
        FlagSpec("check_notes", "a verbose description of the check"),
        FlagSpec("check_status", "keyword used to detect successful check"),
        FlagSpec("check_serviceid", "the service ID the check is bound to"),
    ),
    CommandKind.DEREGISTER: (
        FlagSpec("datacenter", "the name of the datacenter to deregister"),
        FlagSpec("node", "the name of the node to deregister"),
        FlagSpec("service_id", "the unique ID of the service to deregister"),
    ),
}

_BY_NAME: dict[CommandKind, dict[str, FlagSpec]] = {
    kind: {f.name: f for f in flags} for kind, flags in GRAMMAR.items()
}


def command_for(token: str) -> CommandKind | None:
    for kind in CommandKind:
        if kind.value == token:
            return kind
    return None


def flags_for(kind: CommandKind) -> tuple[FlagSpec, ...]:
    return GRAMMAR[kind]


def flag_spec(kind: CommandKind, name: str) -> FlagSpec | None:
    return _BY_NAME[kind].get(name)


def is_known_flag(kind: CommandKind, name: str) -> bool:
    return name in _BY_NAME[kind]


def allowed_values(kind: CommandKind, name: str) -> frozenset[str] | None:
    spec = flag_spec(kind, name)
    return spec.allowed_values if spec else None


def usage(prog: str = "consul-client") -> str:
    lines = [
        f"usage: {prog} < query | register | deregister > --<flag> <value> [--<flag> <value> ...]",
        "",
    ]
    for kind in CommandKind:
        lines.append(f"  {kind.value}")
        for f in GRAMMAR[kind]:
            arg = "|".join(sorted(f.allowed_values)) if f.allowed_values else f"<{f.name}>"
            left = f"      --{f.name} {arg}"
            lines.append(f"{left:<47} {f.help}")
    lines += [
        "",
        "environment: CONSUL_HTTP_ADDR, CONSUL_HTTP_TOKEN, CONSUL_HTTP_TIMEOUT, CONSUL_CLIENT_LOG_LEVEL",
    ]
    return "\n".join(lines)
