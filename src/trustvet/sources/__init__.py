"""Input collaborators: evidence files and curated package lists.

Nothing here is part of the conversion engine. These modules turn files
and remote indexes into the in-memory records the engine consumes.

Submodules:
    loaders      -- verdict, corroboration and known-version file loaders
    http_client  -- async httpx download helper
    debian       -- Debian ``Sources.gz`` fetcher and parser
    guix         -- Guix ``crates-*.scm`` fetcher and parser
"""

from trustvet.sources.loaders import (
    corroborations_to_dict,
    group_by_source,
    load_corroborations,
    load_document,
    load_known_versions,
    load_verdicts,
    parse_corroborations,
    parse_verdict,
)

__all__ = [
    "corroborations_to_dict",
    "group_by_source",
    "load_corroborations",
    "load_document",
    "load_known_versions",
    "load_verdicts",
    "parse_corroborations",
    "parse_verdict",
]
