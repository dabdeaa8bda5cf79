"""Serving files from a directory, with fixed content types for web assets."""

from __future__ import annotations

import html
import os
import posixpath
import stat
from http import HTTPStatus
from typing import Any, Callable, Iterable, Mapping, Optional
from urllib.parse import quote

from werkzeug.http import http_date, parse_date

MIME_TYPES = {
    ".cjs": "application/javascript",
    ".css": "text/css",
    ".eot": "font/eot",
    ".gif": "image/gif",
    ".ico": "image/x-icon",
    ".jpg": "image/jpeg",
    ".js": "application/javascript",
    ".json": "application/json",
    ".less": "text/plain",
    ".map": "application/json",
    ".otf": "font/otf",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".ttf": "font/ttf",
    ".txt": "text/plain",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}

_INDEX_PAGE = "/index.html"
_SNIFF_LEN = 512

StartResponse = Callable[..., Any]


def _status(code: int) -> str:
    return f"{code} {HTTPStatus(code).phrase}"


def _clean_path(p: str) -> str:
    """Lexically clean a slash-separated path, as for URL paths."""
    cleaned = posixpath.normpath(p)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _base(p: str) -> str:
    """The last element of a slash-separated path."""
    if p == "":
        return "."
    stripped = p.rstrip("/")
    if stripped == "":
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _ext(p: str) -> str:
    """The extension of the last path element, including the dot."""
    name = p.rsplit("/", 1)[-1]
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def _respond(
    start_response: StartResponse, code: int, headers: Mapping[str, str], body: bytes = b""
) -> list[bytes]:
    start_response(_status(code), list(headers.items()))
    return [body]


def _text_error(
    start_response: StartResponse,
    code: int,
    message: str,
    headers: Optional[Mapping[str, str]] = None,
) -> list[bytes]:
    merged = dict(headers or {})
    merged.pop("Content-Length", None)
    merged["Content-Type"] = "text/plain; charset=utf-8"
    merged["X-Content-Type-Options"] = "nosniff"
    return _respond(start_response, code, merged, (message + "\n").encode())


def _error_for(exc: Exception) -> tuple[int, str]:
    if isinstance(exc, PermissionError):
        return 403, "403 Forbidden"
    if isinstance(exc, (FileNotFoundError, NotADirectoryError, ValueError)):
        return 404, "404 page not found"
    return 500, "500 Internal Server Error"


def _guess_type(name: str, head: bytes) -> str:
    import mimetypes

    guessed, _ = mimetypes.guess_type(name)
    if guessed:
        if guessed.startswith("text/"):
            return guessed + "; charset=utf-8"
        return guessed
    try:
        text = head.decode("utf-8")
    except UnicodeDecodeError:
        # A multi-byte character may be cut at the sniffing boundary.
        try:
            text = head[:-3].decode("utf-8") if len(head) >= _SNIFF_LEN else ""
        except UnicodeDecodeError:
            return "application/octet-stream"
        if not text:
            return "application/octet-stream"
    if any(ord(ch) < 0x20 and ch not in "\t\n\r\x0c\x1b" for ch in text):
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


class _FileServer:
    """A WSGI application serving the files below a directory."""

    def __init__(self, root: str | os.PathLike) -> None:
        self._root = os.fspath(root)

    def __call__(self, environ: dict, start_response: StartResponse) -> Iterable[bytes]:
        return self.serve(environ, start_response, {})

    def serve(
        self, environ: dict, start_response: StartResponse, preset: Mapping[str, str]
    ) -> Iterable[bytes]:
        headers = dict(preset)
        upath = environ.get("PATH_INFO") or ""
        if not upath.startswith("/"):
            upath = "/" + upath
        if upath.endswith(_INDEX_PAGE):
            return self._local_redirect(environ, start_response, headers, "./")

        try:
            target = self._resolve(_clean_path(upath))
            info = os.stat(target)
        except (OSError, ValueError) as exc:
            code, message = _error_for(exc)
            return _text_error(start_response, code, message, headers)

        if stat.S_ISDIR(info.st_mode):
            if not upath.endswith("/"):
                return self._local_redirect(
                    environ, start_response, headers, _base(upath) + "/"
                )
            index = os.path.join(target, "index.html")
            try:
                index_info = os.stat(index)
            except (OSError, ValueError):
                index_info = None
            if index_info is not None and not stat.S_ISDIR(index_info.st_mode):
                return self._send_file(environ, start_response, headers, index, index_info)
            return self._send_listing(environ, start_response, headers, target, info)

        if upath.endswith("/"):
            return self._local_redirect(
                environ, start_response, headers, "../" + _base(upath)
            )
        return self._send_file(environ, start_response, headers, target, info)

    def _resolve(self, name: str) -> str:
        if "\x00" in name:
            raise ValueError("invalid character in file path")
        parts = [part for part in name.split("/") if part]
        return os.path.join(self._root, *parts)

    @staticmethod
    def _local_redirect(
        environ: dict, start_response: StartResponse, headers: dict, new_path: str
    ) -> list[bytes]:
        query = environ.get("QUERY_STRING", "")
        if query:
            new_path += "?" + query
        headers["Location"] = new_path
        return _respond(start_response, 301, headers)

    @staticmethod
    def _not_modified(environ: dict, mtime: float) -> bool:
        if environ.get("REQUEST_METHOD", "GET").upper() not in ("GET", "HEAD"):
            return False
        since = environ.get("HTTP_IF_MODIFIED_SINCE")
        if not since or mtime <= 0:
            return False
        parsed = parse_date(since)
        if parsed is None:
            return False
        return int(mtime) <= parsed.timestamp()

    @staticmethod
    def _write_not_modified(start_response: StartResponse, headers: dict) -> list[bytes]:
        for name in ("Content-Type", "Content-Length", "Content-Encoding"):
            headers.pop(name, None)
        return _respond(start_response, 304, headers)

    def _send_file(
        self,
        environ: dict,
        start_response: StartResponse,
        headers: dict,
        path: str,
        info: os.stat_result,
    ) -> list[bytes]:
        if self._not_modified(environ, info.st_mtime):
            return self._write_not_modified(start_response, headers)
        try:
            with open(path, "rb") as handle:
                body = handle.read()
        except OSError as exc:
            code, message = _error_for(exc)
            return _text_error(start_response, code, message, headers)
        if info.st_mtime > 0:
            headers["Last-Modified"] = http_date(int(info.st_mtime))
        if "Content-Type" not in headers:
            headers["Content-Type"] = _guess_type(os.path.basename(path), body[:_SNIFF_LEN])
        headers["Content-Length"] = str(len(body))
        if environ.get("REQUEST_METHOD", "GET").upper() == "HEAD":
            body = b""
        return _respond(start_response, 200, headers, body)

    def _send_listing(
        self,
        environ: dict,
        start_response: StartResponse,
        headers: dict,
        path: str,
        info: os.stat_result,
    ) -> list[bytes]:
        if self._not_modified(environ, info.st_mtime):
            return self._write_not_modified(start_response, headers)
        if info.st_mtime > 0:
            headers["Last-Modified"] = http_date(int(info.st_mtime))
        try:
            with os.scandir(path) as entries:
                names = sorted(
                    entry.name + ("/" if entry.is_dir() else "") for entry in entries
                )
        except OSError:
            return _text_error(
                start_response, 500, "Error reading directory", headers
            )
        lines = [
            f'<a href="{html.escape(quote(name, safe="/:@!$&()*+,;=-._~"), quote=True)}">'
            f"{html.escape(name, quote=True).replace('&#x27;', '&#39;')}</a>\n"
            for name in names
        ]
        body = ("<pre>\n" + "".join(lines) + "</pre>\n").encode()
        headers.setdefault("Content-Type", "text/html; charset=utf-8")
        if environ.get("REQUEST_METHOD", "GET").upper() == "HEAD":
            body = b""
        return _respond(start_response, 200, headers, body)


def static_file_server(root: str | os.PathLike) -> Callable[[dict, StartResponse], Iterable[bytes]]:
    """A WSGI application serving files from ``root``, typing common web assets."""
    server = _FileServer(root)

    def app(environ: dict, start_response: StartResponse) -> Iterable[bytes]:
        preset = {}
        content_type = MIME_TYPES.get(_ext(environ.get("PATH_INFO") or ""))
        if content_type is not None:
            preset["Content-Type"] = content_type
        return server.serve(environ, start_response, preset)

    return app