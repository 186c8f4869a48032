"""Semantic versions and version ranges for audit records.

This module provides the ordering primitives the rest of the engine is
built on: a ``Version`` with full SemVer 2.0.0 precedence and a
``VersionRange`` interval type supporting containment, overlap and
subtraction.

Ranges are written in the ledger with comparison atoms joined by commas,
the same syntax package managers use for requirements::

    >=1.0.0,<=1.1.0     closed range
    >2.0.0,<=2.5.0      half-open below
    >=1.2.0             open upward

An exact range ``[v, v]`` is written as the bare version instead.

References
----------
.. [SemVer] Preston-Werner, T. (2013). "Semantic Versioning 2.0.0."
   https://semver.org/
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

from trustvet.exceptions import MalformedInputError


# ---------------------------------------------------------------------------
# Version: SemVer precedence
# ---------------------------------------------------------------------------

_VERSION_RE = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)"
    r"(?:\.(?P<minor>0|[1-9]\d*))?"
    r"(?:\.(?P<patch>0|[1-9]\d*))?"
    r"(?:-(?P<pre>[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?$"
)


def _prerelease_key(pre: str | None) -> tuple:
    """Sort key for the pre-release part (SemVer section 11).

    A release sorts above every pre-release of the same core version.
    Numeric identifiers compare numerically and sort below alphanumeric
    ones; a shorter identifier list sorts first when it is a prefix of
    the longer one.
    """
    if not pre:
        return (1,)
    idents: list[tuple[int, int | str]] = []
    for ident in pre.split("."):
        if ident.isdigit():
            idents.append((0, int(ident)))
        else:
            idents.append((1, ident))
    return (0, tuple(idents))


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A parsed semantic version.

    Missing minor and patch components are read as zero, so ``1.0`` and
    ``1.0.0`` have equal precedence. Build metadata is kept for display
    but ignored for ordering and equality.

    Attributes:
        raw: The version text as it appeared in the input.
        major: Major component.
        minor: Minor component.
        patch: Patch component.
        pre: Pre-release identifiers (without the leading ``-``), or None.
    """

    raw: str
    major: int
    minor: int
    patch: int
    pre: str | None = None

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a version string.

        Raises:
            MalformedInputError: If *text* is not a semantic version.
        """
        if not isinstance(text, str):
            raise MalformedInputError(f"Version must be a string, got {text!r}")
        stripped = text.strip()
        m = _VERSION_RE.match(stripped)
        if not m:
            raise MalformedInputError(f"Invalid semantic version: {text!r}")
        return cls(
            raw=stripped,
            major=int(m.group("major")),
            minor=int(m.group("minor") or 0),
            patch=int(m.group("patch") or 0),
            pre=m.group("pre"),
        )

    @property
    def key(self) -> tuple:
        """Total-order key implementing SemVer precedence."""
        return (self.major, self.minor, self.patch, _prerelease_key(self.pre))

    @property
    def is_prerelease(self) -> bool:
        return self.pre is not None

    def normalized(self) -> Version:
        """The same version written as full ``MAJOR.MINOR.PATCH``.

        A leading ``v`` is dropped and missing components are filled with
        zero; pre-release and build metadata are kept.
        """
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre is not None:
            text += f"-{self.pre}"
        _, plus, build = self.raw.partition("+")
        if plus:
            text += f"+{build}"
        return Version(raw=text, major=self.major, minor=self.minor, patch=self.patch, pre=self.pre)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.key == other.key

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.key < other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return self.raw

    def __repr__(self) -> str:
        return f"Version({self.raw!r})"


def parse_version(version: str | Version) -> Version:
    """Return *version* as a ``Version``, parsing strings."""
    if isinstance(version, Version):
        return version
    return Version.parse(version)


# ---------------------------------------------------------------------------
# VersionRange: interval over versions
# ---------------------------------------------------------------------------

_RANGE_ATOM_RE = re.compile(r"^\s*(?P<op>==|>=|<=|>|<|=)?\s*(?P<ver>\S+)\s*$")


@dataclass(frozen=True)
class VersionRange:
    """An interval of versions.

    The lower bound is always present. The upper bound may be None, in
    which case the range extends to every future version.

    Attributes:
        start: Lower bound.
        end: Upper bound, or None for an open-ended range.
        start_inclusive: Whether ``start`` itself is in the range.
        end_inclusive: Whether ``end`` itself is in the range. Ignored
            when ``end`` is None.
    """

    start: Version
    end: Version | None
    start_inclusive: bool = True
    end_inclusive: bool = True

    @classmethod
    def exact(cls, version: str | Version) -> VersionRange:
        """The single-version range ``[v, v]``."""
        v = parse_version(version)
        return cls(v, v)

    @classmethod
    def closed(cls, start: str | Version, end: str | Version) -> VersionRange:
        """The closed range ``[start, end]``."""
        return cls(parse_version(start), parse_version(end))

    @classmethod
    def at_least(cls, start: str | Version) -> VersionRange:
        """The open-ended range ``[start, ∞)``."""
        return cls(parse_version(start), None)

    @classmethod
    def parse(cls, text: str) -> VersionRange:
        """Parse the ledger text form of a range.

        Accepts a bare version (exact range) or one lower-bound atom
        (``>=`` / ``>``) optionally followed by one upper-bound atom
        (``<=`` / ``<``), comma-separated. ``==v`` and ``=v`` are exact.

        Raises:
            MalformedInputError: If the text is not a recognized range.
        """
        if not isinstance(text, str) or not text.strip():
            raise MalformedInputError(f"Invalid version range: {text!r}")

        atoms = [a for a in text.split(",") if a.strip()]
        lower: tuple[Version, bool] | None = None
        upper: tuple[Version, bool] | None = None
        for atom in atoms:
            m = _RANGE_ATOM_RE.match(atom)
            if not m:
                raise MalformedInputError(f"Invalid range atom: {atom!r} in {text!r}")
            op = m.group("op")
            ver = Version.parse(m.group("ver"))
            if op in (None, "==", "="):
                if len(atoms) != 1:
                    raise MalformedInputError(
                        f"Exact version cannot be combined with bounds: {text!r}"
                    )
                return cls(ver, ver)
            if op in (">=", ">"):
                if lower is not None:
                    raise MalformedInputError(f"Duplicate lower bound in {text!r}")
                lower = (ver, op == ">=")
            else:
                if upper is not None:
                    raise MalformedInputError(f"Duplicate upper bound in {text!r}")
                upper = (ver, op == "<=")

        if lower is None:
            raise MalformedInputError(f"Version range needs a lower bound: {text!r}")
        start, start_inclusive = lower
        if upper is None:
            return cls(start, None, start_inclusive, True)
        end, end_inclusive = upper
        rng = cls(start, end, start_inclusive, end_inclusive)
        if rng.is_empty:
            raise MalformedInputError(f"Version range is empty: {text!r}")
        return rng

    # -- Predicates ---------------------------------------------------------

    @property
    def is_exact(self) -> bool:
        return self.end is not None and self.start == self.end and not self.is_empty

    @property
    def is_open(self) -> bool:
        return self.end is None

    @property
    def is_empty(self) -> bool:
        """True when no version can satisfy both bounds."""
        if self.end is None:
            return False
        if self.start > self.end:
            return True
        if self.start == self.end:
            return not (self.start_inclusive and self.end_inclusive)
        return False

    def contains(self, version: str | Version) -> bool:
        """Check whether *version* lies inside the range."""
        v = parse_version(version)
        if v < self.start or (v == self.start and not self.start_inclusive):
            return False
        if self.end is None:
            return True
        if v > self.end or (v == self.end and not self.end_inclusive):
            return False
        return True

    def overlaps(self, other: VersionRange) -> bool:
        """Check whether the two ranges share at least one version."""
        return not self.intersection(other).is_empty

    def intersection(self, other: VersionRange) -> VersionRange:
        """Return the (possibly empty) intersection of two ranges."""
        start, start_inclusive = _max_lower(
            (self.start, self.start_inclusive), (other.start, other.start_inclusive)
        )
        if self.end is None:
            end, end_inclusive = other.end, other.end_inclusive
        elif other.end is None:
            end, end_inclusive = self.end, self.end_inclusive
        else:
            end, end_inclusive = _min_upper(
                (self.end, self.end_inclusive), (other.end, other.end_inclusive)
            )
        return VersionRange(start, end, start_inclusive, end_inclusive)

    def subtract(self, other: VersionRange) -> list[VersionRange]:
        """Return the parts of this range not covered by *other*.

        The result has zero, one or two non-empty pieces, in ascending
        order. Subtracting a disjoint range returns ``[self]``.
        """
        if not self.overlaps(other):
            return [self]

        pieces: list[VersionRange] = []

        # Part below other's lower bound
        below = VersionRange(
            self.start, other.start, self.start_inclusive, not other.start_inclusive
        )
        below = below.intersection(self)
        if not below.is_empty:
            pieces.append(below)

        # Part above other's upper bound
        if other.end is not None:
            above = VersionRange(
                other.end, self.end, not other.end_inclusive, self.end_inclusive
            )
            if not above.is_empty:
                pieces.append(above)

        return pieces

    # -- Ordering and text ----------------------------------------------------

    def sort_key(self) -> tuple:
        """Ascending order: by lower bound, then by upper bound."""
        start_key = (self.start.key, 0 if self.start_inclusive else 1)
        if self.end is None:
            end_key: tuple = (1,)
        else:
            end_key = (0, self.end.key, 1 if self.end_inclusive else 0)
        return (start_key, end_key)

    def to_string(self) -> str:
        """Render the ledger text form (see module docstring)."""
        if self.is_exact:
            return str(self.start)
        lower = f"{'>=' if self.start_inclusive else '>'}{self.start}"
        if self.end is None:
            return lower
        upper = f"{'<=' if self.end_inclusive else '<'}{self.end}"
        return f"{lower},{upper}"

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"VersionRange({self.to_string()!r})"


def _max_lower(
    a: tuple[Version, bool], b: tuple[Version, bool]
) -> tuple[Version, bool]:
    """The tighter of two lower bounds."""
    if a[0] > b[0]:
        return a
    if b[0] > a[0]:
        return b
    return a[0], a[1] and b[1]


def _min_upper(
    a: tuple[Version, bool], b: tuple[Version, bool]
) -> tuple[Version, bool]:
    """The tighter of two upper bounds."""
    if a[0] < b[0]:
        return a
    if b[0] < a[0]:
        return b
    return a[0], a[1] and b[1]
