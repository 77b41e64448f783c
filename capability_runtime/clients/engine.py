from __future__ import annotations

"""HTTP client engine.

``ClientEngine`` executes the capabilities of a ``ClientDefinition``. Each
capability is one HTTP endpoint; the engine builds the request from the
declared parameters and the stored credentials, performs it with
``httpx.AsyncClient`` and shapes the JSON response.

Request building:

- ``path`` parameters replace ``{{name}}`` placeholders (URL-encoded),
- ``query`` parameters become the query string,
- ``header`` parameters are sent as headers (from the call, else from the credentials),
- a body is only sent for POST/PUT/PATCH: the ``requestTransform.body``
  template with ``{{name}}`` references resolved, else the ``body`` parameters.

Authentication by ``auth.type``:

- ``bearer``: ``Authorization: Bearer <token | access_token>``
- ``apikey``: ``<header_name>: <api_key | apiKey>`` (header defaults to ``X-API-Key``)
- ``basic``: ``Authorization: Basic base64(username:password)``
"""

import base64
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from ..core.config import ClientConfig, settings
from ..core.logging_config import get_logger
from ..errors import CapabilityNotFound, CapabilityRuntimeError, ClientRequestFailed
from ..interpreter.context import ExecutionContext
from ..schemas.definitions import (
    AuthConfig,
    AuthType,
    CapabilityResult,
    ClientCapabilityDefinition,
    ClientDefinition,
    HttpMethod,
    ParameterLocation,
)
from ..schemas.parameters import validate_parameters
from .response import transform_response

logger = get_logger(__name__)

_BODY_METHODS = {HttpMethod.post, HttpMethod.put, HttpMethod.patch}


def build_auth_headers(auth: AuthConfig, credentials: Dict[str, Any]) -> Dict[str, str]:
    """Headers carrying the credentials for ``auth.type``; empty when credentials are missing."""
    if auth.type == AuthType.bearer:
        token = credentials.get("token") or credentials.get("access_token")
        return {"Authorization": f"Bearer {token}"} if token else {}
    if auth.type == AuthType.apikey:
        api_key = credentials.get("api_key") or credentials.get("apiKey")
        header_name = credentials.get("header_name") or auth.header_name
        return {header_name: str(api_key)} if api_key else {}
    if auth.type == AuthType.basic:
        username = credentials.get("username")
        password = credentials.get("password")
        if username and password:
            encoded = base64.b64encode(f"{username}:{password}".encode()).decode()
            return {"Authorization": f"Basic {encoded}"}
        return {}
    return {}


class ClientEngine:
    """Execute HTTP-backed client capabilities.

    The engine owns its ``httpx.AsyncClient`` unless one is injected; tests
    inject a client built on ``httpx.MockTransport``.
    """

    def __init__(
        self,
        *,
        client: Optional[httpx.AsyncClient] = None,
        config: Optional[ClientConfig] = None,
    ) -> None:
        self._config = config or settings.client
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(timeout=self._config.request_timeout_seconds, follow_redirects=True)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def execute(
        self,
        definition: ClientDefinition,
        capability_name: str,
        parameters: Optional[Dict[str, Any]],
        credentials: Optional[Dict[str, Any]] = None,
    ) -> CapabilityResult:
        """
        Run one client capability.

        Args:
            definition: The client definition owning the capability.
            capability_name: Name of the endpoint capability.
            parameters: Call parameters, validated against the capability.
            credentials: Stored configuration of the client (tokens, keys...).

        Returns:
            ``CapabilityResult`` with the shaped response as ``data`` and the
            HTTP status. Failures never raise: non-2xx responses and transport
            errors come back as ``ClientRequestFailed``.
        """
        try:
            capability = definition.get_capability(capability_name)
            if capability is None:
                raise CapabilityNotFound(definition.id, capability_name)
            bound = validate_parameters(capability_name, capability.parameters, parameters)
            request = self.build_request(definition, capability, bound, dict(credentials or {}))
        except CapabilityRuntimeError as e:
            return CapabilityResult.fail(e.code, str(e))

        logger.debug("ClientEngine.execute: %s %s", request.method, request.url)
        try:
            response = await self._http.send(request)
        except httpx.HTTPError as e:
            logger.warning("Request for %s.%s failed: %s", definition.id, capability_name, e)
            failure = ClientRequestFailed(definition.id, None, str(e) or type(e).__name__)
            return CapabilityResult.fail(failure.code, str(failure))

        status = response.status_code
        if not response.is_success:
            logger.warning("Request for %s.%s returned HTTP %s", definition.id, capability_name, status)
            return CapabilityResult.fail(ClientRequestFailed.code, f"HTTP {status}: {response.text}", status=status)

        payload: Any = response.text
        if "application/json" in response.headers.get("content-type", ""):
            try:
                payload = response.json()
            except ValueError:
                logger.warning("Response for %s.%s is not valid JSON", definition.id, capability_name)
        return CapabilityResult.ok(transform_response(payload, capability.response_transform), status=status)

    def build_request(
        self,
        definition: ClientDefinition,
        capability: ClientCapabilityDefinition,
        parameters: Dict[str, Any],
        credentials: Dict[str, Any],
    ) -> httpx.Request:
        path = capability.path
        query: Dict[str, str] = {}
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        body: Dict[str, Any] = {}

        for spec in capability.parameters:
            value = parameters.get(spec.name)
            if spec.location == ParameterLocation.header:
                header_value = value if value is not None else credentials.get(spec.name)
                if header_value:
                    headers[spec.name] = str(header_value)
                continue
            if value is None:
                continue
            if spec.location == ParameterLocation.path:
                path = path.replace(f"{{{{{spec.name}}}}}", quote(str(value), safe=""))
            elif spec.location == ParameterLocation.query:
                query[spec.name] = str(value).lower() if isinstance(value, bool) else str(value)
            elif spec.location == ParameterLocation.body:
                body[spec.name] = value

        headers.update(build_auth_headers(definition.auth, credentials))
        if capability.request_transform is not None:
            headers.update(capability.request_transform.headers)

        json_body: Any = None
        if capability.method in _BODY_METHODS:
            template = capability.request_transform.body if capability.request_transform else None
            if template is not None:
                scope = ExecutionContext(agent_id=definition.id, capability_name=capability.name, variables=parameters)
                json_body = scope.resolve_value(template)
            elif body:
                json_body = body

        url = f"{definition.base_url or ''}{path}"
        return self._http.build_request(
            capability.method.value,
            url,
            params=query or None,
            headers=headers,
            json=json_body,
        )
