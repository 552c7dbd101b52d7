"""
Session Context Middleware Module
=================================

Starlette middleware for request processing.

Features:
- Request ID generation for tracing
- Active role injection into the logging context
- Request timing

Note:
    This middleware only annotates requests. Authorization is decided by
    the route guard dependency.
"""

import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from multiauth.core.logging import active_role_context, get_logger, request_id_context

# Initialize logger
logger = get_logger(__name__)


class SessionContextMiddleware(BaseHTTPMiddleware):
    """
    Bind per-request tracing context.

    Responsibilities:
    - Generate unique request ID, echoed as ``X-Request-ID``
    - Put the active role of the session manager into log entries
    - Report processing time as ``X-Process-Time``
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request_id_token = request_id_context.set(request_id)
        request.state.request_id = request_id

        manager = getattr(request.app.state, "session_manager", None)
        active_role = manager.active_role if manager is not None else None
        active_role_token = active_role_context.set(active_role.value if active_role else None)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_processing_error",
                error=str(e),
                path=request.url.path,
                method=request.method,
            )
            raise
        finally:
            request_id_context.reset(request_id_token)
            active_role_context.reset(active_role_token)

        process_time = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        logger.debug(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time=round(process_time, 4),
        )
        return response
