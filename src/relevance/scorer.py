# src/relevance/scorer.py — v1
"""Relevance scorer: fit between extracted content and a declared context.

score = (sum over expected groups of weight * strength
         + sum over unexpected groups of weight * (1 - strength)) / total weight

where strength is the highest analyzer confidence among the group's
entity types (0.0 when absent). Every context is scored so a dominant
foreign context can be reported.

Without content (stage disabled, failed, or timed out) the score is the
neutral NEUTRAL_SCORE and no warnings are emitted.
"""

from __future__ import annotations

import logging
import re
from pathlib import PurePath

from docintel.core.models import (
    DOCUMENT_CONTEXTS,
    ContentAnalysis,
    DocumentContext,
    MismatchWarning,
    RelevanceAnalysis,
)
from docintel.relevance.profiles import (
    BUSINESS_KEYWORDS,
    CONTEXT_PROFILES,
    PERSONAL_KEYWORDS,
    ContextProfile,
)

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 0.5
FOREIGN_DOMINANCE_MIN = 0.6
FOREIGN_DOMINANCE_MARGIN = 0.25
GUIDANCE_BELOW = 0.6

FILE_TYPE_ADJUSTMENT = 0.1
BUSINESS_KEYWORD_BONUS = 0.05
BUSINESS_KEYWORD_CAP = 0.15
PERSONAL_KEYWORD_PENALTY = 0.1
PERSONAL_KEYWORD_CAP = 0.3

MISSING_INFO_SUGGESTION = (
    "The document appears to be missing key information required for this context."
)
PERSONAL_SUGGESTION = "This appears to be personal content. Business documents are recommended."


class RelevanceScorer:
    """Score content or file metadata against DocumentContext profiles."""

    def __init__(self, profiles: dict[str, ContextProfile] | None = None) -> None:
        self._profiles = profiles or CONTEXT_PROFILES

    def score(
        self,
        content: ContentAnalysis | None,
        declared_context: DocumentContext,
    ) -> RelevanceAnalysis:
        """Content-based relevance for the declared context."""
        if content is None:
            return neutral_relevance(declared_context)

        scores = {
            ctx: round(profile_score(self._profiles[ctx], content), 4)
            for ctx in DOCUMENT_CONTEXTS
        }
        declared_score = scores[declared_context]
        profile = self._profiles[declared_context]

        warnings: list[MismatchWarning] = []
        suggestions: list[str] = []

        for expectation in profile.expected:
            if not expectation.strong:
                continue
            if _group_strength(content, expectation.entity_types) == 0.0:
                warnings.append(MismatchWarning(
                    kind="missing_expected",
                    message=(
                        f"No {expectation.label} found, expected for "
                        f"{_readable(declared_context)}"
                    ),
                    entity=expectation.label,
                ))

        best = _best_context(scores, declared_context)
        if (
            declared_context != "generic_business"
            and best != declared_context
            and scores[best] >= FOREIGN_DOMINANCE_MIN
            and scores[best] - declared_score >= FOREIGN_DOMINANCE_MARGIN
        ):
            warnings.append(MismatchWarning(
                kind="foreign_context",
                message=(
                    f"Document looks like a {_readable(best)} rather than "
                    f"a {_readable(declared_context)}"
                ),
                suggested_context=best,
            ))
            suggestions.append(f"Consider uploading this document as {_readable(best)}.")

        if any(w.kind == "missing_expected" for w in warnings):
            suggestions.append(MISSING_INFO_SUGGESTION)
        if declared_score < GUIDANCE_BELOW and profile.guidance:
            suggestions.append(profile.guidance)

        logger.debug(
            "Relevance %s=%.3f (best=%s %.3f, %d warnings)",
            declared_context, declared_score, best, scores[best], len(warnings),
        )
        return RelevanceAnalysis(
            declared_context=declared_context,
            overall_score=declared_score,
            mismatch_warnings=warnings,
            suggestions=suggestions,
            context_scores=scores,
            best_matching_context=best,
            basis="content",
        )

    def score_file_fit(
        self,
        original_name: str,
        mime_type: str,
        declared_context: DocumentContext,
    ) -> RelevanceAnalysis:
        """Basic relevance from file type and name alone.

        Starts at NEUTRAL_SCORE; a preferred mime type adds, others
        subtract; business words in the filename add and personal words
        subtract (capped). Personal words emit a mismatch warning.
        """
        profile = self._profiles[declared_context]
        score = NEUTRAL_SCORE
        if mime_type.lower() in profile.preferred_mime_types:
            score += FILE_TYPE_ADJUSTMENT
        else:
            score -= FILE_TYPE_ADJUSTMENT

        words = set(re.split(r"[^a-z]+", PurePath(original_name).stem.lower())) - {""}
        business = sorted(words & BUSINESS_KEYWORDS)
        personal = sorted(words & PERSONAL_KEYWORDS)
        score += min(len(business) * BUSINESS_KEYWORD_BONUS, BUSINESS_KEYWORD_CAP)
        score -= min(len(personal) * PERSONAL_KEYWORD_PENALTY, PERSONAL_KEYWORD_CAP)

        warnings: list[MismatchWarning] = []
        suggestions: list[str] = []
        if personal:
            warnings.append(MismatchWarning(
                kind="personal_content",
                message=f"Filename suggests personal content ({', '.join(personal)})",
                entity=personal[0],
            ))
            suggestions.append(PERSONAL_SUGGESTION)

        score = round(max(0.0, min(1.0, score)), 4)
        return RelevanceAnalysis(
            declared_context=declared_context,
            overall_score=score,
            mismatch_warnings=warnings,
            suggestions=suggestions,
            context_scores={declared_context: score},
            basis="file_metadata",
        )


def profile_score(profile: ContextProfile, content: ContentAnalysis) -> float:
    total = profile.total_weight
    if total <= 0:
        return NEUTRAL_SCORE
    agreement = 0.0
    for expectation in profile.expected:
        agreement += expectation.weight * _group_strength(content, expectation.entity_types)
    for expectation in profile.unexpected:
        agreement += expectation.weight * (1.0 - _group_strength(content, expectation.entity_types))
    return max(0.0, min(1.0, agreement / total))


def neutral_relevance(declared_context: DocumentContext) -> RelevanceAnalysis:
    return RelevanceAnalysis(
        declared_context=declared_context,
        overall_score=NEUTRAL_SCORE,
        basis="neutral",
    )


def _group_strength(content: ContentAnalysis, entity_types: tuple[str, ...]) -> float:
    return max((content.strength(t) for t in entity_types), default=0.0)


def _best_context(scores: dict[str, float], declared: str) -> str:
    """Highest-scoring context; the declared one wins ties, then enum order."""
    ordered = [declared] + [
        c for c in DOCUMENT_CONTEXTS if c != declared and c != "generic_business"
    ]
    return max(ordered, key=lambda c: scores[c])


def _readable(context: str) -> str:
    return context.replace("_", " ")
