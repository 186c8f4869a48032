"""Debian curated list: Rust crates packaged in Debian stable.

Debian's source index (``Sources.gz``) is a sequence of deb822
paragraphs. Rust crates are packaged as ``rust-<crate>`` source packages
by the debcargo team, often with an ``X-Cargo-Crate`` field naming the
crate exactly. Each such package becomes one corroboration
``(crate, upstream version, "debian")``.

Source package names are lower case with ``-`` for ``_``, so a name
derived without ``X-Cargo-Crate`` may be spelled differently from the
crate; the conversion pipeline matches such names against the packages
it knows before merging.

Version mapping from Debian to SemVer:

- the epoch (``1:``) and Debian revision (``-2``) are removed;
- repack suffixes after ``+`` (``+dfsg``, ``+ds``) are removed;
- ``~`` (Debian's pre-release marker) becomes ``-``.

Versions that still do not parse are skipped.

The index is downloaded once into a cache directory and reused until a
refresh is requested.
"""

from __future__ import annotations

import asyncio
import gzip
import logging
import re
from collections.abc import Iterator
from pathlib import Path

import httpx

from trustvet.core.model import ExternalCorroboration, Version
from trustvet.exceptions import MalformedInputError, SourceUnavailableError
from trustvet.sources.http_client import download_to

logger = logging.getLogger(__name__)

SOURCE_NAME = "debian"
DEBIAN_SOURCES_URL = "https://deb.debian.org/debian/dists/stable/main/source/Sources.gz"
CACHE_FILENAME = "Sources.gz"

_EPOCH_RE = re.compile(r"^\d+:")
_SEMVER_SUFFIX_RE = re.compile(r"^(?P<base>.+)-(?P<major>\d+)(?:\.(?P<minor>\d+))?$")


def iter_paragraphs(text: str) -> Iterator[dict[str, str]]:
    """Yield deb822 paragraphs as field dicts (continuation lines folded)."""
    fields: dict[str, str] = {}
    last: str | None = None
    for line in text.splitlines():
        if not line.strip():
            if fields:
                yield fields
            fields, last = {}, None
            continue
        if line[0] in " \t":
            if last is not None:
                fields[last] += "\n" + line.strip()
            continue
        name, sep, value = line.partition(":")
        if not sep:
            continue
        last = name.strip()
        fields[last] = value.strip()
    if fields:
        yield fields


def upstream_version(debian_version: str) -> str:
    """Convert a Debian source version to its upstream SemVer text."""
    version = _EPOCH_RE.sub("", debian_version.strip())
    if "-" in version:
        version = version.rsplit("-", 1)[0]
    version = version.split("+", 1)[0]
    return version.replace("~", "-")


def crate_name(fields: dict[str, str], version: Version | None = None) -> str | None:
    """Crate name of a source paragraph, or None if it is not a crate.

    Without ``X-Cargo-Crate`` the name comes from the source package.
    Older semver lines are packaged with the line as a suffix
    (``rust-rand-0.7`` ships rand 0.7.3); the suffix is dropped when it
    agrees with *version*, so crates whose names end in a number
    (``rust-md-5`` ships md-5 0.10) keep it.
    """
    crate = fields.get("X-Cargo-Crate")
    if crate:
        return crate
    package = fields.get("Package", "")
    if not package.startswith("rust-") or len(package) == len("rust-"):
        return None
    name = package[len("rust-"):]
    m = _SEMVER_SUFFIX_RE.match(name)
    if m and version is not None and int(m.group("major")) == version.major:
        minor = m.group("minor")
        if minor is None or int(minor) == version.minor:
            return m.group("base")
    return name


def parse_sources(text: str) -> list[ExternalCorroboration]:
    """Corroborations for every Rust crate in a ``Sources`` index."""
    out: list[ExternalCorroboration] = []
    seen: set[tuple[str, Version]] = set()
    for fields in iter_paragraphs(text):
        if "Version" not in fields or crate_name(fields) is None:
            continue
        try:
            version = Version.parse(upstream_version(fields["Version"]))
        except MalformedInputError:
            logger.debug("Skipping %s: unparsable version %s", fields.get("Package"), fields["Version"])
            continue
        crate = crate_name(fields, version)
        if (crate, version) in seen:
            continue
        seen.add((crate, version))
        out.append(ExternalCorroboration(crate, version, SOURCE_NAME))
    return out


async def download_sources(
    cache_dir: Path,
    *,
    url: str = DEBIAN_SOURCES_URL,
    refresh: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Path:
    """Ensure ``Sources.gz`` is cached in *cache_dir* and return its path.

    Raises:
        SourceUnavailableError: If the download fails or the cache
            directory is not writable.
    """
    return await download_to(url, cache_dir / CACHE_FILENAME, refresh=refresh, transport=transport)


def read_cached(path: Path) -> list[ExternalCorroboration]:
    """Parse a cached ``Sources.gz``.

    Raises:
        SourceUnavailableError: If the file is missing or corrupt.
    """
    try:
        with gzip.open(path, "rt", encoding="utf-8", errors="replace") as fh:
            text = fh.read()
    except (OSError, EOFError) as exc:
        raise SourceUnavailableError(f"Cannot read {path}: {exc}") from exc
    return parse_sources(text)


def fetch_debian(
    cache_dir: Path,
    *,
    url: str = DEBIAN_SOURCES_URL,
    refresh: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[ExternalCorroboration]:
    """Download (or reuse) the Debian index and return its corroborations.

    Raises:
        SourceUnavailableError: If the index cannot be obtained.
    """
    path = asyncio.run(download_sources(
        cache_dir, url=url, refresh=refresh, transport=transport
    ))
    return read_cached(path)
