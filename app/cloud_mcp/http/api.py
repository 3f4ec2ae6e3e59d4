"""
REST front-end for the tool router.

Provides:
- GET /tools: tool descriptors
- POST /tools/{toolName}: call a tool, body is the arguments
- POST /mcp/call: call a tool, body is {name, arguments}

Responses are the router's envelope. Unknown tools get status 400.
"""

import json
from typing import Any, Callable

from starlette.requests import Request
from starlette.responses import JSONResponse

from cloud_mcp.utils.logging import get_logger

logger = get_logger(__name__)


class InvalidBody(ValueError):
    """Raised when a request body is not a JSON object."""


async def _read_json(request: Request) -> dict[str, Any]:
    body = await request.body()
    if not body.strip():
        return {}
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidBody("Invalid JSON body") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidBody("Invalid JSON body")
    return data


def _extract_arguments(body: dict[str, Any]) -> dict[str, Any]:
    """Arguments are body["arguments"] when present, else the body itself."""
    arguments = body.get("arguments", body)
    if arguments is None:
        return {}
    if not isinstance(arguments, dict):
        raise InvalidBody("Invalid JSON body")
    return arguments


async def _call(router: Any, tool_name: str, arguments: dict[str, Any]) -> JSONResponse:
    response = await router.dispatch(tool_name, arguments)
    status_code = 200 if router.has_tool(tool_name) else 400
    return JSONResponse(response.to_dict(), status_code=status_code)


def list_tools_endpoint(router: Any) -> Callable:
    async def endpoint(request: Request) -> JSONResponse:
        return JSONResponse({"tools": router.list_tools()})

    return endpoint


def call_tool_endpoint(router: Any) -> Callable:
    """Build the POST /tools/{toolName} handler."""

    async def endpoint(request: Request) -> JSONResponse:
        tool_name = request.path_params["toolName"]
        try:
            arguments = _extract_arguments(await _read_json(request))
        except InvalidBody as e:
            return JSONResponse({"error": str(e)}, status_code=400)

        logger.debug("HTTP call to tool %s", tool_name)
        return await _call(router, tool_name, arguments)

    return endpoint


def mcp_call_endpoint(router: Any) -> Callable:
    """Build the POST /mcp/call handler."""

    async def endpoint(request: Request) -> JSONResponse:
        try:
            body = await _read_json(request)
        except InvalidBody as e:
            return JSONResponse({"error": str(e)}, status_code=400)

        tool_name = body.get("name")
        if not tool_name or not isinstance(tool_name, str):
            return JSONResponse({"error": "Tool name is required"}, status_code=400)

        arguments = body.get("arguments") or {}
        if not isinstance(arguments, dict):
            return JSONResponse({"error": "Invalid JSON body"}, status_code=400)

        logger.debug("HTTP call to tool %s via /mcp/call", tool_name)
        return await _call(router, tool_name, arguments)

    return endpoint
