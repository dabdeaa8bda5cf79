"""A WSGI router with path parameters, prefixed sub-routers and instrumentation."""

from __future__ import annotations

import html
import os
import re
from http import HTTPStatus
from typing import Any, Callable, Iterable, Optional

from .static_server import _FileServer, _clean_path, _respond, _text_error

WsgiApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]
Instrumentation = Callable[[str, WsgiApp], WsgiApp]

_PARAMS_KEY = "promcommon.route.params"
_WILDCARD_RE = re.compile(r"([:*])([^/]*)")


def param(environ: dict, p: str) -> str:
    """The path parameter ``p`` of a request, or the empty string."""
    return environ.get(_PARAMS_KEY, {}).get(p, "")


def with_param(environ: dict, p: str, v: str) -> dict:
    """A copy of ``environ`` with path parameter ``p`` set to ``v``."""
    return {**environ, _PARAMS_KEY: {**environ.get(_PARAMS_KEY, {}), p: v}}


def _compile(path: str) -> re.Pattern:
    if not path.startswith("/"):
        raise ValueError(f"path must begin with '/' in path {path!r}")
    pieces = []
    pos = 0
    for match in _WILDCARD_RE.finditer(path):
        kind, name = match.groups()
        if not name:
            raise ValueError(f"wildcards must be named with a non-empty name in path {path!r}")
        if path[match.start() - 1] != "/":
            raise ValueError(f"only one wildcard per path segment is allowed in path {path!r}")
        literal = path[pos:match.start()]
        if kind == ":":
            pieces.append(re.escape(literal) + f"(?P<{name}>[^/]+)")
        elif match.end() != len(path):
            raise ValueError(f"catch-all routes are only allowed at the end of the path {path!r}")
        else:
            pieces.append(re.escape(literal[:-1]) + f"(?P<{name}>/.*)")
        pos = match.end()
    pieces.append(re.escape(path[pos:]))
    return re.compile("".join(pieces))


def _redirect(environ: dict, start_response: Callable[..., Any], url: str, code: int) -> list[bytes]:
    location, sep, query = url.partition("?")
    cleaned = _clean_path(location)
    if location.endswith("/") and not cleaned.endswith("/"):
        cleaned += "/"
    url = cleaned + sep + query

    headers = {"Location": url}
    method = environ.get("REQUEST_METHOD", "GET").upper()
    body = b""
    if method in ("GET", "HEAD"):
        headers["Content-Type"] = "text/html; charset=utf-8"
    if method == "GET":
        href = html.escape(url, quote=True).replace("&#x27;", "&#39;")
        body = f'<a href="{href}">{HTTPStatus(code).phrase}</a>.\n'.encode()
    return _respond(start_response, code, headers, body)


class Router:
    """Routes requests by method and path; sub-routers share one route table."""

    def __init__(self) -> None:
        self._routes: dict[str, dict[str, tuple[re.Pattern, WsgiApp]]] = {}
        self._prefix = ""
        self._instrh: Optional[Instrumentation] = None

    def _derive(self, prefix: str, instrh: Optional[Instrumentation]) -> Router:
        router = Router()
        router._routes, router._prefix, router._instrh = self._routes, prefix, instrh
        return router

    def with_instrumentation(self, instrh: Instrumentation) -> Router:
        """A router whose handlers are also wrapped by ``instrh``, after existing wrappers."""
        previous = self._instrh
        if previous is not None:
            outer = instrh

            def instrh(name: str, handler: WsgiApp) -> WsgiApp:
                return outer(name, previous(name, handler))

        return self._derive(self._prefix, instrh)

    def with_prefix(self, prefix: str) -> Router:
        """A router that prefixes every registered path with ``prefix``."""
        return self._derive(self._prefix + prefix, self._instrh)

    def _register(self, method: str, path: str, handler: WsgiApp) -> None:
        if self._instrh is not None:
            handler = self._instrh(path, handler)
        full = self._prefix + path
        routes = self._routes.setdefault(method, {})
        if full in routes:
            raise ValueError(f"a handle is already registered for path {full!r}")
        routes[full] = (_compile(full), handler)

    def get(self, path: str, handler: WsgiApp) -> None:
        """Register a GET route."""
        self._register("GET", path, handler)

    def options(self, path: str, handler: WsgiApp) -> None:
        """Register an OPTIONS route."""
        self._register("OPTIONS", path, handler)

    def delete(self, path: str, handler: WsgiApp) -> None:
        """Register a DELETE route."""
        self._register("DELETE", path, handler)

    def put(self, path: str, handler: WsgiApp) -> None:
        """Register a PUT route."""
        self._register("PUT", path, handler)

    def post(self, path: str, handler: WsgiApp) -> None:
        """Register a POST route."""
        self._register("POST", path, handler)

    def head(self, path: str, handler: WsgiApp) -> None:
        """Register a HEAD route."""
        self._register("HEAD", path, handler)

    def redirect(
        self, environ: dict, start_response: Callable[..., Any], path: str, code: int
    ) -> Iterable[bytes]:
        """Redirect to the absolute ``path`` under this router's prefix."""
        return _redirect(environ, start_response, self._prefix + path, code)

    def _lookup(self, method: str, path: str) -> Optional[tuple[WsgiApp, dict[str, str]]]:
        for pattern, handler in self._routes.get(method, {}).values():
            found = pattern.fullmatch(path)
            if found is not None:
                return handler, found.groupdict()
        return None

    def __call__(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        method = environ.get("REQUEST_METHOD", "GET").upper()
        path = environ.get("PATH_INFO") or "/"

        found = self._lookup(method, path)
        if found is not None:
            handler, values = found
            params = {**environ.get(_PARAMS_KEY, {}), **values}
            return handler({**environ, _PARAMS_KEY: params}, start_response)

        allowed = sorted(m for m in self._routes if m != method and self._lookup(m, path))
        if allowed:
            return _text_error(
                start_response, 405, "Method Not Allowed", {"Allow": ", ".join(allowed)}
            )
        return _text_error(start_response, 404, "404 page not found")


def file_serve(directory: str | os.PathLike) -> WsgiApp:
    """A handler serving files from ``directory``; routes must supply ``*filepath``."""
    server = _FileServer(directory)

    def app(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        return server({**environ, "PATH_INFO": param(environ, "filepath")}, start_response)

    return app