"""
Middleware for request context and logging
"""

import json
import re
from collections.abc import Callable
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import bind_request, clear_request, get_logger

logger = get_logger(__name__)

SENSITIVE_QUERY_KEYS = {
    "password",
    "token",
    "secret",
    "auth",
    "authorization",
    "access_token",
    "refresh_token",
    "jwt",
    "session",
    "cookie",
}

OPERATION_PATTERN = re.compile(r"\b(query|mutation)\s+(\w+)")


def sanitize_query_params(params: dict[str, Any]) -> dict[str, Any]:
    """Redact query parameters whose name looks sensitive."""
    return {
        key: "[REDACTED]"
        if any(sensitive in key.lower() for sensitive in SENSITIVE_QUERY_KEYS)
        else value
        for key, value in params.items()
    }


def operation_name_from_payload(data: dict[str, Any]) -> str | None:
    """Best-effort GraphQL operation name for log lines."""
    op = data.get("operationName")
    if isinstance(op, str) and op:
        return op
    query = data.get("query", "")
    if not isinstance(query, str) or not query:
        return None
    if "__schema" in query or "IntrospectionQuery" in query:
        return "__introspection"
    match = OPERATION_PATTERN.search(query)
    if match:
        kind, name = match.groups()
        return f"mutation:{name}" if kind == "mutation" else name
    return "unnamed_operation"


async def extract_graphql_operation_name(request: Request) -> str | None:
    if request.url.path != "/graphql":
        return None

    if request.method == "GET":
        return operation_name_from_payload(dict(request.query_params))

    if request.method == "POST":
        try:
            body = await request.body()
            if not body:
                return None
            data = json.loads(body)
        except (json.JSONDecodeError, TypeError, UnicodeDecodeError):
            return None
        return operation_name_from_payload(data) if isinstance(data, dict) else None

    return None


class LoggingContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id and log the start and end of every request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = bind_request(request.headers.get("x-request-id"))

        try:
            sanitized_params = None
            if request.query_params:
                sanitized_params = sanitize_query_params(dict(request.query_params))
                # Never log a raw GraphQL document passed in the query string
                if request.url.path == "/graphql":
                    for key in ("query", "variables", "extensions"):
                        if key in sanitized_params:
                            sanitized_params[key] = "[REDACTED]"

            graphql_operation = await extract_graphql_operation_name(request)

            log_data = {
                "method": request.method,
                "path": request.url.path,
                "query_params": sanitized_params,
                "user_agent": request.headers.get("user-agent"),
                "remote_addr": request.client.host if request.client else None,
            }
            if graphql_operation:
                log_data["graphql_operation"] = graphql_operation

            logger.info("Request started", **log_data)

            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "Request completed",
                status_code=response.status_code,
                method=request.method,
                path=request.url.path,
                graphql_operation=graphql_operation,
            )
            return response

        except Exception as e:
            logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
            )
            raise

        finally:
            clear_request()
