"""
Per-request GraphQL context and the helpers resolvers use to read it.

The context is a plain dict (strawberry's default for FastAPI routers) holding
the gateway, a fresh ``Loaders`` scope, the acting user and the error sink.
"""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

import strawberry
from starlette.requests import Request

from ..auth.context import ActorContext
from ..auth.middleware import get_actor_context
from ..config import settings
from ..core.error_sink import ErrorLogSink
from ..core.loaders import Loaders
from ..errors import SchoolHubError, Unauthorized
from ..logging import bind_actor, get_logger
from ..store.base import EntityGateway, Record

logger = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def build_context(
    gateway: EntityGateway,
    actor: ActorContext | None = None,
    error_sink: ErrorLogSink | None = None,
    request: Request | None = None,
) -> dict[str, Any]:
    """Assemble the context dict for one GraphQL operation."""
    return {
        "request": request,
        "gateway": gateway,
        "loaders": Loaders(gateway, timeout=settings.gateway_timeout),
        "actor": actor or ActorContext.anonymous(),
        "error_sink": error_sink,
    }


async def get_context(request: Request) -> dict[str, Any]:
    """Context getter wired into the FastAPI GraphQL router."""
    actor = await get_actor_context(request.headers.get("authorization"))
    if actor.user_id is not None:
        bind_actor(actor.user_id)
    state = request.app.state
    return build_context(
        gateway=state.gateway,
        actor=actor,
        error_sink=getattr(state, "error_sink", None),
        request=request,
    )


def get_gateway(info: strawberry.Info) -> EntityGateway:
    return info.context["gateway"]


def get_loaders(info: strawberry.Info) -> Loaders:
    return info.context["loaders"]


def get_actor(info: strawberry.Info) -> ActorContext:
    return info.context.get("actor") or ActorContext.anonymous()


async def require_admin(info: strawberry.Info) -> Record:
    """Return the acting user's record if it is active and holds the admin role."""
    actor = get_actor(info)
    if not actor.is_authenticated:
        raise Unauthorized("Authentication required")

    record = await get_loaders(info).user.load(actor.user_id)
    if record is None:
        raise Unauthorized("Actor does not exist or is deleted")
    if settings.admin_role not in record.get("roles", []):
        logger.info("Admin role required", actor_id=str(actor.user_id))
        raise Unauthorized("Admin role required")
    return record


def report_errors(
    function_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Log a failing resolver, queue an error log record and re-raise.

    The wrapped function must take ``info`` as its first positional argument.
    """

    def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await fn(*args, **kwargs)
            except Exception as e:
                info = args[0]
                if isinstance(e, SchoolHubError) and e.code != "BACKEND_UNAVAILABLE":
                    logger.info(
                        "Resolver rejected request",
                        function_name=function_name,
                        code=e.code,
                        error=str(e),
                    )
                else:
                    logger.error(
                        "Resolver failed",
                        function_name=function_name,
                        error=str(e),
                        exc_info=True,
                    )
                sink = info.context.get("error_sink")  # type: ignore[attr-defined]
                if sink is not None:
                    sink.log_error(
                        e,
                        function_name=function_name,
                        path=fn.__module__,
                        parameter_input={"args": list(args[1:]), **kwargs},
                    )
                raise

        return wrapper

    return decorator
