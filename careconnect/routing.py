"""
Startup check that every (method, path) pair resolves to exactly one handler.

Two kinds of collision are rejected:

* the same method and path registered twice, and
* a parameterized route registered before a literal route it would capture,
  e.g. ``GET /verification/{provider_id}`` ahead of ``GET /verification/status``.

Included routers are walked recursively. Depending on the FastAPI release,
``include_router`` either copies the routes onto the app or appends a single
entry wrapping the original router (``original_router`` plus an include
prefix); both layouts produce the same table here.
"""

import logging
from typing import Iterator, Sequence

from fastapi import APIRouter, FastAPI
from fastapi.routing import APIRoute
from starlette.routing import BaseRoute, Mount, Route, WebSocketRoute, compile_path

logger = logging.getLogger(__name__)


class DuplicateRouteError(RuntimeError):
    """Raised at startup when two handlers claim the same request"""


class RouteTableError(RuntimeError):
    """Raised when the route table cannot be fully inspected"""


def iter_api_routes(routes: Sequence[BaseRoute], prefix: str = "") -> Iterator[tuple[str, APIRoute]]:
    """Yield ``(full_path, route)`` for every API route, descending into included routers"""
    for route in routes:
        if isinstance(route, APIRoute):
            yield prefix + route.path, route
            continue

        original_router = getattr(route, "original_router", None)
        if original_router is not None:
            include_prefix = getattr(getattr(route, "include_context", None), "prefix", "") or ""
            yield from iter_api_routes(original_router.routes, prefix + include_prefix)
            continue

        # Docs, openapi.json and static mounts
        if isinstance(route, (Route, WebSocketRoute, Mount)):
            continue

        raise RouteTableError(f"Cannot inspect route entry {route!r}")


def assert_unique_routes(app: FastAPI, routers: Sequence[APIRouter] = ()) -> int:
    """
    Raise DuplicateRouteError on any collision; returns the number of
    method/path pairs checked.

    Every API route of the given ``routers`` must show up in the table,
    otherwise RouteTableError is raised instead of passing on a partial view.
    """
    seen: dict[tuple[str, str], str] = {}
    earlier: list[tuple[object, set, str, str]] = []
    endpoints = set()

    for path, route in iter_api_routes(app.routes):
        endpoints.add(route.endpoint)
        for method in route.methods:
            key = (method, path)
            if key in seen:
                raise DuplicateRouteError(
                    f"{method} {path} is handled by both {seen[key]} and {route.name}"
                )
            seen[key] = route.name

            if "{" in path:
                continue
            for regex, methods, prior_path, prior_name in earlier:
                if method in methods and regex.match(path):
                    raise DuplicateRouteError(
                        f"{method} {path} ({route.name}) is shadowed by {prior_path} ({prior_name})"
                    )

        path_regex, _, _ = compile_path(path)
        earlier.append((path_regex, route.methods, path, route.name))

    for router in routers:
        missing = [
            r.path for r in router.routes if isinstance(r, APIRoute) and r.endpoint not in endpoints
        ]
        if missing:
            raise RouteTableError(f"Routes not found in the application table: {missing}")

    if not seen:
        raise RouteTableError("No API routes registered")

    logger.info(f"✅ Route table verified: {len(seen)} method/path pairs")
    return len(seen)
