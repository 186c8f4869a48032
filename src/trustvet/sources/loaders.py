"""Evidence file loaders.

Reads the materialized inputs of a conversion run from JSON or YAML
files (chosen by extension; ``.yaml``/``.yml`` use PyYAML, everything
else JSON):

- **Verdicts** exported from the trust graph: a list of objects, or
  ``{"verdicts": [...]}``::

      - package: serde
        version: 1.0.188
        trust_level: high
        flags: [has_issues]
        reviewer_count: 2
        timestamp: 2024-01-05T10:00:00Z
        reviewers: ["alice (https://github.com/alice)"]
        comment: Careful review of the derive macros.

- **Corroborations** from a curated list: a list of
  ``{package, version, source_name}`` objects, or the compact form
  ``{"source": "debian", "packages": {"serde": ["1.0.188"]}}``.

- **Known versions**: ``{"serde": ["1.0.187", "1.0.188"]}``.

Every structural problem raises ``MalformedInputError``; a run never
proceeds on partially understood evidence.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from trustvet.core.model import (
    ExternalCorroboration,
    TrustLevel,
    TrustVerdict,
    Version,
)
from trustvet.exceptions import MalformedInputError

_YAML_SUFFIXES = frozenset([".yaml", ".yml"])


def load_document(path: Path) -> Any:
    """Parse a JSON or YAML file.

    Raises:
        MalformedInputError: If the file cannot be read or parsed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MalformedInputError(f"Cannot read {path}: {exc}") from exc
    try:
        if path.suffix.lower() in _YAML_SUFFIXES:
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise MalformedInputError(f"Cannot parse {path}: {exc}") from exc


def _field(entry: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    """First present key among snake_case / kebab-case spellings."""
    for name in names:
        if name in entry:
            return entry[name]
    return default


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    raise MalformedInputError(f"Invalid timestamp: {value!r}")


def _string_tuple(value: Any, what: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise MalformedInputError(f"{what} must be a string or list of strings, got {value!r}")


def _parse_version(value: Any, what: str) -> Version:
    """Parse a version that must be written as a string.

    YAML reads an unquoted ``1.10`` as the float ``1.1``, so numbers are
    rejected rather than converted.
    """
    if not isinstance(value, str):
        raise MalformedInputError(
            f"{what}: version must be a string, got {value!r} (quote it in YAML)"
        )
    return Version.parse(value)


def parse_verdict(entry: Mapping[str, Any]) -> TrustVerdict:
    """Build a ``TrustVerdict`` from one parsed object.

    Raises:
        MalformedInputError: On missing fields, an unparsable version, or
            an unrecognized trust level.
    """
    if not isinstance(entry, Mapping):
        raise MalformedInputError(f"Verdict must be an object, got {entry!r}")
    package = entry.get("package")
    if not isinstance(package, str) or not package:
        raise MalformedInputError(f"Verdict has no package name: {entry!r}")
    if "version" not in entry:
        raise MalformedInputError(f"Verdict for {package!r} has no version")
    level = _field(entry, "trust_level", "trust-level")
    if level is None:
        raise MalformedInputError(f"Verdict for {package!r} has no trust level")

    reviewer_count = _field(entry, "reviewer_count", "reviewer-count", default=0)
    if isinstance(reviewer_count, bool) or not isinstance(reviewer_count, int) or reviewer_count < 0:
        raise MalformedInputError(
            f"Verdict for {package!r}: reviewer_count must be a non-negative integer"
        )

    comment = entry.get("comment")
    if comment is not None and not isinstance(comment, str):
        raise MalformedInputError(f"Verdict for {package!r}: comment must be a string")

    return TrustVerdict(
        package=package,
        version=_parse_version(entry["version"], f"Verdict for {package!r}"),
        trust_level=TrustLevel.parse(level),
        flags=frozenset(_string_tuple(entry.get("flags"), f"{package}: flags")),
        reviewer_count=reviewer_count,
        timestamp=_parse_timestamp(entry.get("timestamp")),
        reviewers=_string_tuple(entry.get("reviewers"), f"{package}: reviewers"),
        comment=comment,
    )


def load_verdicts(path: Path) -> list[TrustVerdict]:
    """Load trust verdicts from *path*."""
    data = load_document(path)
    if isinstance(data, Mapping):
        data = data.get("verdicts")
    if not isinstance(data, list):
        raise MalformedInputError(f"{path}: expected a list of verdicts")
    return [parse_verdict(entry) for entry in data]


def parse_corroborations(
    data: Any, source_name: str | None = None
) -> list[ExternalCorroboration]:
    """Build corroborations from a parsed document (either layout).

    Args:
        data: Parsed list or compact mapping.
        source_name: Source to use for entries that do not name one.
    """
    if isinstance(data, Mapping):
        source = data.get("source", source_name)
        packages = data.get("packages")
        if not isinstance(source, str) or not isinstance(packages, Mapping):
            raise MalformedInputError(
                "Compact corroboration list needs 'source' and 'packages'"
            )
        out = []
        for package, versions in packages.items():
            for version in _string_tuple(versions, f"{source}: {package}"):
                out.append(ExternalCorroboration(package, Version.parse(version), source))
        return out

    if not isinstance(data, list):
        raise MalformedInputError("Expected a list of corroborations")
    out = []
    for entry in data:
        if not isinstance(entry, Mapping):
            raise MalformedInputError(f"Corroboration must be an object, got {entry!r}")
        source = _field(entry, "source_name", "source-name", "source", default=source_name)
        package = entry.get("package")
        if not isinstance(source, str) or not isinstance(package, str) or "version" not in entry:
            raise MalformedInputError(f"Incomplete corroboration: {entry!r}")
        out.append(ExternalCorroboration(
            package, _parse_version(entry["version"], f"{source}: {package}"), source
        ))
    return out


def load_corroborations(
    path: Path, source_name: str | None = None
) -> list[ExternalCorroboration]:
    """Load corroborations from *path*."""
    return parse_corroborations(load_document(path), source_name)


def group_by_source(
    corroborations: Iterable[ExternalCorroboration],
) -> dict[str, list[ExternalCorroboration]]:
    grouped: dict[str, list[ExternalCorroboration]] = {}
    for c in corroborations:
        grouped.setdefault(c.source_name, []).append(c)
    return grouped


def corroborations_to_dict(
    source_name: str, corroborations: Iterable[ExternalCorroboration]
) -> dict[str, Any]:
    """Compact, deterministic document for one source's list."""
    packages: dict[str, list[str]] = {}
    for c in corroborations:
        packages.setdefault(c.package, []).append(c.version)
    return {
        "source": source_name,
        "packages": {
            name: [str(v) for v in sorted(set(packages[name]))]
            for name in sorted(packages)
        },
    }


def load_known_versions(path: Path) -> dict[str, list[Version]]:
    """Load known releases per package from *path*."""
    data = load_document(path)
    if not isinstance(data, Mapping):
        raise MalformedInputError(f"{path}: expected a mapping of package to versions")
    known: dict[str, list[Version]] = {}
    for package, versions in data.items():
        if not isinstance(versions, list):
            raise MalformedInputError(f"{path}: versions of {package!r} must be a list")
        known[str(package)] = [
            _parse_version(v, f"{path}: {package}") for v in versions
        ]
    return known
