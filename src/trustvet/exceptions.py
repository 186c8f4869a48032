"""trustvet exception hierarchy.

All public exceptions inherit from TrustVetError, giving callers a single
base class to catch when they want to handle any trustvet-specific failure
without swallowing unrelated errors.

Conflicts found while reconciling a ledger are not exceptions. They are
reported as values (see ``trustvet.core.ledger.Conflict``) and the run
continues.
"""


class TrustVetError(Exception):
    """Base exception for all trustvet errors."""


class MalformedInputError(TrustVetError):
    """Raised when input evidence or a ledger document cannot be understood.

    Covers unparsable version strings, unrecognized trust levels,
    duplicate verdicts for one package version, and structurally invalid
    JSON/YAML documents. A run that hits this error writes nothing.
    """


class ConfigurationError(TrustVetError):
    """Raised for invalid conversion configuration.

    Covers threshold tables missing a trust level, corroboration caps that
    would grant ``safe-to-deploy`` without being allowed to, and unknown
    option values.
    """


class LedgerError(TrustVetError):
    """Raised when the audit ledger cannot be read from or written to disk.

    The in-memory ledger is never considered authoritative until a write
    has succeeded, so callers should treat this as fatal.
    """


class SourceUnavailableError(TrustVetError):
    """Raised when an external curated package list cannot be retrieved.

    Callers degrade gracefully: the source contributes zero
    corroborations and the output is flagged as reduced-confidence.
    """
