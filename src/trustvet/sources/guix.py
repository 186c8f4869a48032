"""Guix curated list: Rust crates packaged in GNU Guix.

Guix defines its Rust packages in Scheme modules under
``gnu/packages/crates-*.scm``. Each crate is one ``define-public`` form::

    (define-public rust-serde-json-1
      (package
        (name "rust-serde-json")
        (version "1.0.108")
        (source
         (origin
           (method url-fetch)
           (uri (crate-uri "serde_json" version))
           ...

The crate name is read from ``crate-uri``, which spells it exactly.
Packages fetched some other way (git checkouts, ``inherit`` variants
without their own source) fall back to the ``name`` field with ``rust-``
removed; like Debian names these are lower case with ``-`` for ``_``.
Each package becomes one corroboration ``(crate, version, "guix")``.

Modules are downloaded as plain files from the Guix repository into a
cache directory and reused until a refresh is requested.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Iterator, Sequence
from pathlib import Path

import httpx

from trustvet.core.model import ExternalCorroboration, Version
from trustvet.exceptions import MalformedInputError, SourceUnavailableError
from trustvet.sources.http_client import download_to

logger = logging.getLogger(__name__)

SOURCE_NAME = "guix"
GUIX_MODULES_URL = "https://git.savannah.gnu.org/cgit/guix.git/plain/gnu/packages"
DEFAULT_MODULES: tuple[str, ...] = (
    "crates-io.scm",
    "crates-crypto.scm",
    "crates-graphics.scm",
    "crates-gtk.scm",
    "crates-tls.scm",
    "crates-web.scm",
    "crates-windows.scm",
)

_DEFINE_RE = re.compile(r"^\(define-public\s+(\S+)", re.MULTILINE)
_CRATE_URI_RE = re.compile(r'\(crate-uri\s+"([^"]+)"')
_NAME_RE = re.compile(r'\(name\s+"([^"]+)"\)')
_VERSION_RE = re.compile(r'\(version\s+"([^"]+)"\)')


def iter_definitions(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(variable, body)`` for every top-level ``define-public``."""
    matches = list(_DEFINE_RE.finditer(text))
    for m, following in zip(matches, matches[1:] + [None]):
        end = following.start() if following is not None else len(text)
        yield m.group(1), text[m.end():end]


def package_crate(body: str) -> tuple[str, str] | None:
    """``(crate, version text)`` of one definition, or None if not a crate."""
    version = _VERSION_RE.search(body)
    if version is None:
        return None
    uri = _CRATE_URI_RE.search(body)
    if uri is not None:
        return uri.group(1), version.group(1)
    name = _NAME_RE.search(body)
    if name is None or not name.group(1).startswith("rust-"):
        return None
    crate = name.group(1)[len("rust-"):]
    return (crate, version.group(1)) if crate else None


def parse_module(text: str) -> list[ExternalCorroboration]:
    """Corroborations for every Rust crate defined in one module."""
    out: list[ExternalCorroboration] = []
    seen: set[tuple[str, Version]] = set()
    for variable, body in iter_definitions(text):
        found = package_crate(body)
        if found is None:
            continue
        crate, version_text = found
        try:
            version = Version.parse(version_text)
        except MalformedInputError:
            logger.debug("Skipping %s: unparsable version %s", variable, version_text)
            continue
        if (crate, version) in seen:
            continue
        seen.add((crate, version))
        out.append(ExternalCorroboration(crate, version, SOURCE_NAME))
    return out


async def download_modules(
    cache_dir: Path,
    *,
    modules: Sequence[str] = DEFAULT_MODULES,
    base_url: str = GUIX_MODULES_URL,
    refresh: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Path]:
    """Ensure every module is cached in *cache_dir* and return the paths.

    Raises:
        SourceUnavailableError: If any module cannot be obtained.
    """
    return list(await asyncio.gather(*(
        download_to(f"{base_url}/{name}", cache_dir / name, refresh=refresh, transport=transport)
        for name in modules
    )))


def read_cached(paths: Sequence[Path]) -> list[ExternalCorroboration]:
    """Parse cached modules, dropping duplicates across modules.

    Raises:
        SourceUnavailableError: If a file is missing or unreadable.
    """
    out: list[ExternalCorroboration] = []
    seen: set[tuple[str, Version]] = set()
    for path in paths:
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise SourceUnavailableError(f"Cannot read {path}: {exc}") from exc
        for item in parse_module(text):
            if (item.package, item.version) not in seen:
                seen.add((item.package, item.version))
                out.append(item)
    return out


def fetch_guix(
    cache_dir: Path,
    *,
    modules: Sequence[str] = DEFAULT_MODULES,
    base_url: str = GUIX_MODULES_URL,
    refresh: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[ExternalCorroboration]:
    """Download (or reuse) the Guix crate modules and return their corroborations.

    Raises:
        SourceUnavailableError: If a module cannot be obtained.
    """
    paths = asyncio.run(download_modules(
        cache_dir, modules=modules, base_url=base_url, refresh=refresh, transport=transport
    ))
    return read_cached(paths)
