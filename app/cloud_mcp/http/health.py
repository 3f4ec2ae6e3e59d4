"""
Health check endpoints.

/health is a liveness probe. /ready reports which provider CLIs are on
PATH; a missing CLI is informational, so /ready is always 200.
"""

import shutil
from typing import Callable, Mapping

from starlette.requests import Request
from starlette.responses import JSONResponse

from cloud_mcp import __version__

SERVICE_NAME = "cloud_mcp"


async def health_check(request: Request) -> JSONResponse:
    """
    Liveness probe endpoint.

    Returns:
        JSON response with health status
    """
    return JSONResponse(
        {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": __version__,
        }
    )


def check_binaries(binaries: Mapping[str, str]) -> dict[str, bool]:
    """Check which CLI programs resolve on PATH, keyed by check name."""
    return {name: shutil.which(program) is not None for name, program in binaries.items()}


def ready_check(binaries: Mapping[str, str]) -> Callable:
    """
    Build the readiness endpoint.

    Args:
        binaries: Check name -> program, e.g. {"gcloud": "gcloud", "az": "az"}

    Returns:
        Starlette endpoint
    """

    async def endpoint(request: Request) -> JSONResponse:
        checks = {"server": True, **check_binaries(binaries)}
        return JSONResponse(
            {
                "status": "ready",
                "checks": checks,
            }
        )

    return endpoint
