"""TestRail REST API client.

Translates a tool name plus arguments into exactly one HTTP request against
``{url}/index.php?/api/v2/<endpoint>``. TestRail routes through the query
string, so list filters are appended as ``&key=value`` after the endpoint
path rather than encoded as a regular query.
"""

from __future__ import annotations

import string
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from core.orchestrator.tool_registry import ToolRegistry
from shared.errors import ConfigError, UnknownTool, UpstreamError
from shared.schemas.messages import Credentials

logger = structlog.get_logger()

API_PREFIX = "index.php?/api/v2/"


@dataclass(frozen=True)
class Route:
    """HTTP method and endpoint template for one tool."""

    method: str
    path: str  # e.g. "get_runs/{project_id}"

    @property
    def path_params(self) -> tuple[str, ...]:
        return tuple(
            field for _, field, _, _ in string.Formatter().parse(self.path) if field
        )

    @property
    def is_mutation(self) -> bool:
        return self.method != "GET"


ROUTES: dict[str, Route] = {
    "testrail.get_projects": Route("GET", "get_projects"),
    "testrail.get_project": Route("GET", "get_project/{project_id}"),
    "testrail.get_test_runs_for_project": Route("GET", "get_runs/{project_id}"),
    "testrail.get_run": Route("GET", "get_run/{run_id}"),
    "testrail.get_tests_for_run": Route("GET", "get_tests/{run_id}"),
    "testrail.get_results_for_run": Route("GET", "get_results_for_run/{run_id}"),
    "testrail.get_results_for_case": Route("GET", "get_results_for_case/{run_id}/{case_id}"),
    "testrail.get_test_case": Route("GET", "get_case/{case_id}"),
    "testrail.get_cases": Route("GET", "get_cases/{project_id}"),
    "testrail.get_suites": Route("GET", "get_suites/{project_id}"),
    "testrail.get_milestones_for_project": Route("GET", "get_milestones/{project_id}"),
    "testrail.get_statuses": Route("GET", "get_statuses"),
    "testrail.add_run": Route("POST", "add_run/{project_id}"),
    "testrail.close_run": Route("POST", "close_run/{run_id}"),
    "testrail.add_result_for_case": Route("POST", "add_result_for_case/{run_id}/{case_id}"),
}

PROBE_TOOL = "testrail.get_projects"


def coerce_credentials(raw: Credentials | Mapping[str, Any] | None) -> Credentials:
    """Validate client-supplied settings.

    Raises:
        ConfigError: If the settings are missing or malformed.
    """
    if raw is None:
        raise ConfigError("TestRail settings are not configured.")
    if isinstance(raw, Credentials):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigError("TestRail settings must be an object with url, email and apiKey.")
    try:
        return Credentials.model_validate(raw)
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise ConfigError(
            f"TestRail settings are invalid: check {', '.join(fields) or 'the settings'}."
        ) from e


def _normalize(value: Any) -> Any:
    """Gemini sends whole numbers as floats; TestRail IDs must be ints."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    return value


def _filter_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (list, tuple)):
        return ",".join(_filter_value(v) for v in value)
    return quote(str(value), safe="")


def _error_message(resp: httpx.Response) -> str:
    """Build the user-facing message for a non-2xx TestRail response."""
    message = f"TestRail API Error: Status {resp.status_code}."
    body = resp.text
    try:
        data = resp.json()
    except ValueError:
        return f"{message} Details: {body}"
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return f'{message} Message: "{data["error"]}"'
    return f"{message} Details: {body}"


class TestRailClient:
    """Executes registry tools against a TestRail instance."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        registry: ToolRegistry,
        timeout: float = 30.0,
        routes: Mapping[str, Route] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.registry = registry
        self.routes = dict(ROUTES if routes is None else routes)
        self.timeout = timeout
        self._transport = transport

        unrouted = [t.name for t in registry.list_tools() if t.name not in self.routes]
        if unrouted:
            raise ConfigError(f"No TestRail endpoint for tools: {', '.join(unrouted)}")
        orphaned = [name for name in self.routes if name not in registry]
        if orphaned:
            raise ConfigError(f"TestRail endpoints without a tool definition: {', '.join(orphaned)}")

    def route_for(self, name: str) -> Route:
        if name not in self.registry:
            raise UnknownTool(name)
        return self.routes[name]

    def build_request(
        self, base_url: str, name: str, args: Mapping[str, Any]
    ) -> tuple[str, str, dict | None]:
        """Return (method, url, json_body) for a tool invocation."""
        route = self.route_for(name)
        tool = self.registry.get(name)
        declared = {p.name for p in tool.parameters} if tool else set()

        remaining: dict[str, Any] = {}
        for key, value in args.items():
            if key not in declared and key not in route.path_params:
                logger.warning("testrail_argument_ignored", tool=name, argument=key)
                continue
            if value is None:
                continue
            remaining[key] = _normalize(value)

        path_values = {}
        for param in route.path_params:
            if param not in remaining:
                raise ValueError(f"Missing required argument '{param}' for {name}")
            path_values[param] = quote(str(remaining.pop(param)), safe="")

        url = f"{base_url.rstrip('/')}/{API_PREFIX}{route.path.format(**path_values)}"
        if route.is_mutation:
            return route.method, url, remaining
        for key, value in remaining.items():
            url += f"&{key}={_filter_value(value)}"
        return route.method, url, None

    async def invoke(
        self,
        name: str,
        args: Mapping[str, Any] | None,
        credentials: Credentials | Mapping[str, Any] | None,
    ) -> Any:
        """Run one tool and return TestRail's JSON response.

        Raises:
            UnknownTool: If the tool is not in the registry (no request is made).
            ConfigError: If the credentials are missing or malformed.
            UpstreamError: If TestRail is unreachable or returns a non-2xx status.
        """
        if name not in self.registry:
            raise UnknownTool(name)
        creds = coerce_credentials(credentials)
        method, url, body = self.build_request(creds.url, name, args or {})
        endpoint = url.split(API_PREFIX, 1)[1].split("&", 1)[0]

        logger.info("testrail_request", tool=name, method=method, endpoint=endpoint)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                auth=httpx.BasicAuth(creds.email, creds.api_key),
                headers={"Content-Type": "application/json"},
            ) as client:
                resp = await client.request(method, url, json=body)
        except httpx.TimeoutException as e:
            logger.error("testrail_timeout", tool=name, endpoint=endpoint)
            raise UpstreamError(
                f"TestRail at {creds.url} did not respond within {self.timeout:g}s."
            ) from e
        except httpx.RequestError as e:
            logger.error("testrail_request_error", tool=name, endpoint=endpoint, error=str(e))
            raise UpstreamError(
                f"Could not connect to TestRail at {creds.url}: {str(e) or type(e).__name__}"
            ) from e

        if not resp.is_success:
            logger.error("testrail_http_error", tool=name, endpoint=endpoint, status=resp.status_code)
            raise UpstreamError(_error_message(resp), status_code=resp.status_code)

        logger.info("testrail_response", tool=name, endpoint=endpoint, status=resp.status_code)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(
                f"TestRail returned a response that is not JSON (status {resp.status_code}).",
                status_code=resp.status_code,
            ) from e

    async def verify(self, credentials: Credentials | Mapping[str, Any] | None) -> None:
        """Connectivity probe: list projects with the given credentials."""
        await self.invoke(PROBE_TOOL, {}, credentials)
