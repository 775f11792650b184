import json
import logging
import re
from dataclasses import dataclass, field
from http.client import HTTPException
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode, urlsplit
from urllib.request import Request, urlopen

from .config import Settings
from .errors import ConfigError, RequestBuildError, TransportError
from .grammar import CommandKind
from .parser import ParsedCommand


logger = logging.getLogger(__name__)

CATALOG = "/v1/catalog"

NODE_FIELDS = (
    ("datacenter", "Datacenter"),
    ("node", "Node"),
    ("node_address", "Address"),
)
SERVICE_FIELDS = (
    ("service_id", "ID"),
    ("service_name", "Service"),
    ("tags", "Tags"),
    ("service_address", "Address"),
    ("service_port", "Port"),
)
CHECK_FIELDS = (
    ("check_node", "Node"),
    ("check_id", "CheckID"),
    ("check_name", "Name"),
    ("check_notes", "Notes"),
    ("check_status", "Status"),
    ("check_serviceid", "ServiceID"),
)
DEREGISTER_FIELDS = (
    ("datacenter", "Datacenter"),
    ("node", "Node"),
    ("service_id", "ServiceID"),
)


@dataclass(frozen=True)
class ConsulRequest:
    method: str
    path: str
    params: dict[str, str] = field(default_factory=dict)
    body: dict | None = None

    def url(self, base: str) -> str:
        url = f"{base.rstrip('/')}{self.path}"
        if self.params:
            url = f"{url}?{urlencode(self.params)}"
        return url


def parse_csv(value: str) -> list[str]:
    if not value:
        return []
    return [p.strip() for p in value.split(",") if p.strip()]


def parse_port(value: str) -> int:
    if not re.fullmatch(r"[0-9]+", value):
        raise RequestBuildError(f'register type "--service_port" must be a number: "{value}"')
    port = int(value)
    if not 0 <= port <= 65535:
        raise RequestBuildError(f'register type "--service_port" out of range: "{value}"')
    return port


def check_id(value: str) -> str:
    if value.startswith("service:"):
        return value
    return f"service:{value}"


def pick(fields, mapping: tuple[tuple[str, str], ...]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for flag, key in mapping:
        if flag in fields:
            out[key] = fields[flag]
    return out


def build_query(cmd: ParsedCommand) -> ConsulRequest:
    selectors = [name for name in ("type", "service", "node") if name in cmd.fields]
    if len(selectors) > 1:
        given = ", ".join(f"--{s}" for s in selectors)
        raise RequestBuildError(f"query accepts only one of --type, --service, --node (got {given})")

    dc = cmd.get("datacenter")
    params = {"dc": dc} if dc else {}

    if "service" in cmd.fields:
        return ConsulRequest("GET", f"{CATALOG}/service/{quote(cmd.fields['service'], safe='')}", params)
    if "node" in cmd.fields:
        return ConsulRequest("GET", f"{CATALOG}/node/{quote(cmd.fields['node'], safe='')}", params)

    qtype = cmd.get("type")
    if qtype == "datacenter":
        # The datacenter list is global; dc= has no meaning there.
        return ConsulRequest("GET", f"{CATALOG}/datacenters")
    if qtype == "services":
        return ConsulRequest("GET", f"{CATALOG}/services", params)
    return ConsulRequest("GET", f"{CATALOG}/nodes", params)


def build_register(cmd: ParsedCommand) -> ConsulRequest:
    body = pick(cmd.fields, NODE_FIELDS)

    service = pick(cmd.fields, SERVICE_FIELDS)
    if "Tags" in service:
        service["Tags"] = parse_csv(service["Tags"])
    if "Port" in service:
        service["Port"] = parse_port(service["Port"])
    if service:
        body["Service"] = service

    check = pick(cmd.fields, CHECK_FIELDS)
    if "CheckID" in check:
        check["CheckID"] = check_id(check["CheckID"])
    if check:
        body["Check"] = check

    return ConsulRequest("PUT", f"{CATALOG}/register", body=body)


def build_deregister(cmd: ParsedCommand) -> ConsulRequest:
    return ConsulRequest("PUT", f"{CATALOG}/deregister", body=pick(cmd.fields, DEREGISTER_FIELDS))


BUILDERS = {
    CommandKind.QUERY: build_query,
    CommandKind.REGISTER: build_register,
    CommandKind.DEREGISTER: build_deregister,
}


def build_request(cmd: ParsedCommand) -> ConsulRequest:
    return BUILDERS[cmd.kind](cmd)


def http_request(
    method: str,
    url: str,
    *,
    body: bytes | None = None,
    headers: dict[str, str] | None = None,
    timeout_s: float = 5.0,
) -> tuple[int, str]:
    req = Request(url, data=body, headers=headers or {}, method=method)
    try:
        with urlopen(req, timeout=timeout_s) as resp:
            return resp.status, resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        text = e.read().decode("utf-8", errors="replace") if e.fp else ""
        return e.code, text
    except URLError as e:
        return 0, str(e.reason)
    except TimeoutError:
        return 0, f"timed out after {timeout_s}s"
    except (OSError, HTTPException) as e:
        return 0, str(e) or type(e).__name__


class RawBody(str):
    """Response text that was not JSON."""


def decode_body(text: str) -> Any:
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return RawBody(text)


class ConsulClient:
    def __init__(self, settings: Settings, transport=http_request) -> None:
        parts = urlsplit(settings.http_addr)
        bad = ConfigError(f'CONSUL_HTTP_ADDR is not an http(s) URL: "{settings.http_addr}"')
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise bad
        try:
            # raises on a non-numeric or out-of-range port
            parts.port
        except ValueError:
            raise bad from None
        self.settings = settings
        self.transport = transport

    def headers(self, with_body: bool) -> dict[str, str]:
        h = {"Accept": "application/json"}
        if with_body:
            h["Content-Type"] = "application/json"
        if self.settings.token:
            h["X-Consul-Token"] = self.settings.token
        return h

    def send(self, request: ConsulRequest) -> Any:
        url = request.url(self.settings.http_addr)
        data = None
        if request.body is not None:
            data = json.dumps(request.body).encode("utf-8")
        logger.debug("%s %s", request.method, url)

        code, text = self.transport(
            request.method,
            url,
            body=data,
            headers=self.headers(data is not None),
            timeout_s=self.settings.timeout_s,
        )
        if code == 0:
            logger.warning("%s %s failed: %s", request.method, url, text)
            raise TransportError(f"Cannot reach Consul at {self.settings.http_addr} ({text})")
        if not 200 <= code < 300:
            logger.warning("%s %s -> %s", request.method, url, code)
            detail = text.strip()[:200]
            raise TransportError(f"{request.method} {request.path} -> {code}: {detail}", status=code)

        logger.debug("%s %s -> %s", request.method, url, code)
        return decode_body(text)

    def execute(self, cmd: ParsedCommand) -> Any:
        return self.send(build_request(cmd))
