# src/decision/fuser.py — v2
"""Decision fuser: duplicate + relevance + content signals -> one action.

Guards, highest outcome wins:

    reject  exact duplicate match
            strict_relevance and relevance score < REJECT_RELEVANCE_THRESHOLD
    warn    visual or content duplicate match
            relevance score < WARN_RELEVANCE_THRESHOLD
            relevance mismatch warnings
            content confidence < LOW_CONTENT_CONFIDENCE or near-empty text
            security warning of severity warning (info ones are reported only)
    accept  otherwise

Every guard that fires contributes its warnings. A stage passed as None
contributes nothing. decide() is a pure function of its arguments.
"""

from __future__ import annotations

from docintel.api.models import AnalysisOptions
from docintel.core.models import (
    AnalysisWarning,
    ContentAnalysis,
    Decision,
    DuplicateAnalysis,
    DuplicateMatch,
    Fingerprints,
    RecommendedAction,
    RelevanceAnalysis,
)

REJECT_RELEVANCE_THRESHOLD = 0.3
WARN_RELEVANCE_THRESHOLD = 0.4
LOW_CONTENT_CONFIDENCE = 0.3
MIN_EXTRACTED_TEXT = 10

CONTENT_WEIGHT = 0.3
RELEVANCE_WEIGHT = 0.4
UNIQUENESS_WEIGHT = 0.3
NO_SIGNAL_SCORE = 0.5

EXACT_DUPLICATE_SUGGESTION = (
    "This exact file was already uploaded; view the existing document instead of uploading it again."
)
SIMILAR_DUPLICATE_SUGGESTION = (
    "A similar document already exists; verify this is not a duplicate before uploading."
)
RECURRING_SUGGESTION = (
    "This looks like a recurring bill; upload it if it covers a new billing period."
)
STRICT_RELEVANCE_SUGGESTION = "Retry with the correct document context or a clearer document."
CLEARER_SCAN_SUGGESTION = "Consider re-uploading a clearer scan so text can be extracted reliably."
HIGHER_RESOLUTION_SUGGESTION = (
    "Consider re-uploading at higher resolution; the image could not be fingerprinted."
)

_SEVERITY_RANK = {"accept": 0, "warn": 1, "reject": 2}


def decide(
    duplicate_analysis: DuplicateAnalysis | None,
    relevance_analysis: RelevanceAnalysis | None,
    options: AnalysisOptions,
    content_analysis: ContentAnalysis | None = None,
    fingerprints: Fingerprints | None = None,
    security: list[AnalysisWarning] | None = None,
) -> Decision:
    """Fuse stage outputs into a Decision."""
    action: RecommendedAction = "accept"
    warnings: list[AnalysisWarning] = []
    suggestions: list[str] = []

    for outcome, new_warnings, new_suggestions in (
        _duplicate_guards(duplicate_analysis),
        _relevance_guards(relevance_analysis, options.strict_relevance),
        _quality_guards(content_analysis),
        _security_guards(security),
    ):
        if _SEVERITY_RANK[outcome] > _SEVERITY_RANK[action]:
            action = outcome
        warnings.extend(new_warnings)
        suggestions.extend(new_suggestions)

    if fingerprints is not None and fingerprints.perceptual_status == "failed":
        suggestions.append(HIGHER_RESOLUTION_SUGGESTION)

    return Decision(
        recommended_action=action,
        overall_score=overall_score(duplicate_analysis, relevance_analysis, content_analysis),
        warnings=warnings,
        suggestions=list(dict.fromkeys(suggestions)),
    )


def overall_score(
    duplicate_analysis: DuplicateAnalysis | None,
    relevance_analysis: RelevanceAnalysis | None,
    content_analysis: ContentAnalysis | None,
) -> float:
    """Weighted mean of the available signals; NO_SIGNAL_SCORE when none."""
    signals: list[tuple[float, float]] = []
    if content_analysis is not None:
        signals.append((CONTENT_WEIGHT, content_analysis.confidence))
    if relevance_analysis is not None:
        signals.append((RELEVANCE_WEIGHT, relevance_analysis.overall_score))
    if duplicate_analysis is not None:
        signals.append((UNIQUENESS_WEIGHT, 1.0 - duplicate_analysis.top_confidence))
    if not signals:
        return NO_SIGNAL_SCORE
    total = sum(w for w, _ in signals)
    return round(sum(w * v for w, v in signals) / total, 4)


def _duplicate_guards(
    analysis: DuplicateAnalysis | None,
) -> tuple[RecommendedAction, list[AnalysisWarning], list[str]]:
    if analysis is None or not analysis.matches:
        return "accept", [], []

    exact = [m for m in analysis.matches if m.match_type == "exact"]
    similar = [m for m in analysis.matches if m.match_type != "exact"]
    warnings: list[AnalysisWarning] = []
    suggestions: list[str] = []

    if exact:
        top = exact[0]
        warnings.append(AnalysisWarning(
            kind="duplicate",
            severity="error",
            message=(
                f"Exact duplicate of document {top.candidate_id} "
                f"uploaded {top.created_at:%Y-%m-%d}"
            ),
            actionable=True,
            details=_match_details(top, len(exact)),
        ))
        suggestions.append(EXACT_DUPLICATE_SUGGESTION)

    if similar:
        top = similar[0]
        warnings.append(AnalysisWarning(
            kind="duplicate",
            severity="warning",
            message=(
                f"Possible {top.match_type} duplicate of document {top.candidate_id} "
                f"({top.confidence:.0%} confidence)"
            ),
            actionable=True,
            details=_match_details(top, len(similar)),
        ))
        suggestions.append(SIMILAR_DUPLICATE_SUGGESTION)
        if any(m.recurring for m in similar):
            suggestions.append(RECURRING_SUGGESTION)

    return ("reject" if exact else "warn"), warnings, suggestions


def _relevance_guards(
    analysis: RelevanceAnalysis | None, strict: bool
) -> tuple[RecommendedAction, list[AnalysisWarning], list[str]]:
    if analysis is None:
        return "accept", [], []

    outcome: RecommendedAction = "accept"
    warnings: list[AnalysisWarning] = []
    suggestions: list[str] = []
    score = analysis.overall_score
    context = analysis.declared_context.replace("_", " ")

    if strict and score < REJECT_RELEVANCE_THRESHOLD:
        outcome = "reject"
        warnings.append(AnalysisWarning(
            kind="relevance",
            severity="error",
            message=f"Document does not appear to be a {context} (relevance {score:.2f})",
            actionable=True,
            details={"overall_score": score, "strict": True},
        ))
        suggestions.append(STRICT_RELEVANCE_SUGGESTION)
    elif score < WARN_RELEVANCE_THRESHOLD:
        outcome = "warn"
        warnings.append(AnalysisWarning(
            kind="relevance",
            severity="warning",
            message=f"Document may not be appropriate as a {context} (relevance {score:.2f})",
            actionable=True,
            details={"overall_score": score, "strict": strict},
        ))

    for mismatch in analysis.mismatch_warnings:
        if outcome == "accept":
            outcome = "warn"
        warnings.append(AnalysisWarning(
            kind="relevance",
            severity=mismatch.severity,
            message=mismatch.message,
            actionable=True,
            details={
                "mismatch": mismatch.kind,
                "entity": mismatch.entity,
                "suggested_context": mismatch.suggested_context,
            },
        ))

    suggestions.extend(analysis.suggestions)
    return outcome, warnings, suggestions


def _quality_guards(
    analysis: ContentAnalysis | None,
) -> tuple[RecommendedAction, list[AnalysisWarning], list[str]]:
    if analysis is None:
        return "accept", [], []

    warnings: list[AnalysisWarning] = []
    if analysis.confidence < LOW_CONTENT_CONFIDENCE:
        warnings.append(AnalysisWarning(
            kind="quality",
            severity="warning",
            message=f"Low text extraction confidence ({analysis.confidence:.0%})",
            actionable=True,
            details={"confidence": analysis.confidence},
        ))
    if len(analysis.raw_text.strip()) < MIN_EXTRACTED_TEXT:
        warnings.append(AnalysisWarning(
            kind="quality",
            severity="warning",
            message="Very little text could be extracted from the document",
            actionable=True,
            details={"text_length": len(analysis.raw_text.strip())},
        ))

    if not warnings:
        return "accept", [], []
    return "warn", warnings, [CLEARER_SCAN_SUGGESTION]


def _security_guards(
    security: list[AnalysisWarning] | None,
) -> tuple[RecommendedAction, list[AnalysisWarning], list[str]]:
    if not security:
        return "accept", [], []
    outcome: RecommendedAction = (
        "warn" if any(w.severity != "info" for w in security) else "accept"
    )
    return outcome, list(security), []


def _match_details(match: DuplicateMatch, count: int) -> dict[str, object]:
    return {
        "candidate_id": match.candidate_id,
        "match_type": match.match_type,
        "confidence": match.confidence,
        "match_count": count,
        "recurring": match.recurring,
    }
