"""Criteria mapper: one trust verdict in, one criteria set out.

Mapping rules, applied in order:

1. The verdict's trust level selects a base criteria set from the
   ``ThresholdConfig``.
2. A ``has_issues`` flag removes ``safe-to-deploy`` whatever the trust
   level. An issue report outweighs raw trust.
3. An ``unmaintained`` flag never removes criteria. It is surfaced in the
   record's notes instead.

Both functions are pure and perform no I/O.
"""

from __future__ import annotations

from trustvet.core.mapping.models import Assessment, ThresholdConfig
from trustvet.core.model import SAFE_TO_DEPLOY, CriteriaSet, TrustVerdict

UNMAINTAINED_NOTE = "Flagged as unmaintained by reviewers."
ISSUES_NOTE = "Reviewers reported issues; safe-to-deploy withheld."


def map_verdict(verdict: TrustVerdict, thresholds: ThresholdConfig) -> CriteriaSet:
    """Map a verdict to the criteria it supports.

    Args:
        verdict: The trust graph's verdict for one package version.
        thresholds: Base criteria per trust level.

    Returns:
        The criteria set, possibly empty.

    Raises:
        ConfigurationError: If the verdict's trust level is not in the
            threshold table.
    """
    criteria = thresholds.criteria_for(verdict.trust_level)
    if verdict.has_issues:
        criteria = criteria - {SAFE_TO_DEPLOY}
    return frozenset(criteria)


def assess(verdict: TrustVerdict, thresholds: ThresholdConfig) -> Assessment:
    """Map a verdict and collect the notes its record should carry.

    Notes are emitted only when the verdict yields at least one
    criterion; a verdict that certifies nothing produces no record.
    """
    criteria = map_verdict(verdict, thresholds)
    if not criteria:
        return Assessment(criteria)

    notes: list[str] = []
    if verdict.comment and verdict.comment.strip():
        notes.append(verdict.comment.strip())
    if verdict.has_issues and SAFE_TO_DEPLOY in thresholds.criteria_for(verdict.trust_level):
        notes.append(ISSUES_NOTE)
    if verdict.unmaintained:
        notes.append(UNMAINTAINED_NOTE)

    return Assessment(criteria=criteria, notes=tuple(notes), who=verdict.reviewers)
