from __future__ import annotations

import http.client
import urllib.error
import urllib.request
from pathlib import Path
from typing import Callable

from .errors import (
    ExtractError,
    NetworkError,
    NoMappingError,
    ParseError,
    SourceConfigError,
    SourceIoError,
)
from .extract import extractRows
from .sources import FileSource, RemoteSource, Rows, StaticSource, TableSource
from .version import __version__

USER_AGENT = f"tabledash/{__version__}"


class NoRedirectHandler(urllib.request.HTTPRedirectHandler):
    # a 3xx answer surfaces as HTTPError instead of a second request
    def redirect_request(self, req, fp, code, msg, headers, newurl):
        return None


_opener = urllib.request.build_opener(NoRedirectHandler)


def requireMapping(source: FileSource | RemoteSource) -> tuple[str, ...]:
    if source.mapping is None:
        raise SourceConfigError(f"{source.kind} source {source.target} has no field mapping")
    return source.mapping


def readFile(path: str) -> bytes:
    try:
        return Path(path).expanduser().read_bytes()
    except OSError as exc:
        reason = exc.strerror or str(exc)
        raise SourceIoError(f"cannot read {path}: {reason}") from exc


def readUrl(url: str) -> bytes:
    try:
        req = urllib.request.Request(url, method="GET", headers={"User-Agent": USER_AGENT})
        with _opener.open(req) as resp:
            code = int(resp.status)
            body = resp.read()
    except urllib.error.HTTPError as exc:
        reason = str(exc.reason or "").strip()
        raise NetworkError(f"HTTP {exc.code} {reason}".strip() + f" from {url}") from exc
    except urllib.error.URLError as exc:
        raise NetworkError(f"{url}: {exc.reason}") from exc
    except (http.client.HTTPException, OSError, ValueError) as exc:
        raise NetworkError(f"{url}: {type(exc).__name__}: {exc}") from exc

    if not 200 <= code <= 299:
        raise NetworkError(f"HTTP {code} from {url}")
    return body


def parseRows(raw: bytes, mapping: tuple[str, ...]) -> Rows:
    try:
        return extractRows(raw, mapping)
    except NoMappingError as exc:
        raise SourceConfigError(str(exc)) from exc
    except ExtractError as exc:
        raise ParseError(str(exc)) from exc


def fetchStatic(source: StaticSource) -> Rows:
    return source.rows


def fetchFile(source: FileSource) -> Rows:
    mapping = requireMapping(source)
    return parseRows(readFile(source.path), mapping)


def fetchRemote(source: RemoteSource) -> Rows:
    mapping = requireMapping(source)
    return parseRows(readUrl(source.url), mapping)


sourceFetchers: dict[type, Callable[..., Rows]] = {
    StaticSource: fetchStatic,
    FileSource: fetchFile,
    RemoteSource: fetchRemote,
}


def fetchRows(source: TableSource) -> Rows:
    """Fetch and extract the current rows for a source.

    This may block for as long as the file system or the remote host takes;
    there is no timeout. Every failure is raised as a FetchError subclass.
    """
    fetchFn = sourceFetchers.get(type(source))
    if fetchFn is None:
        raise TypeError(f"unsupported table source: {type(source).__name__}")
    return fetchFn(source)
