"""Quality score aggregation."""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from statistics import fmean
from typing import Any, Final

EXCELLENT_SCORE: Final[float] = 0.9

GRADE_THRESHOLDS: Final[tuple[tuple[str, float], ...]] = (
    ("A", 0.9),
    ("B", 0.8),
    ("C", 0.7),
    ("D", 0.6),
    ("F", 0.0),
)

# Scores are rounded so threshold comparisons are not at the mercy of float noise
SCORE_PRECISION: Final[int] = 4


def grade_for(score: float) -> str:
    for grade, threshold in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


def aggregate_scores(evaluations: Iterable[Mapping[str, Any]]) -> dict[str, float]:
    """Arithmetic mean per metric across evaluations.

    ``[{"scores": {"seo": 0.8}}, {"scores": {"seo": 0.6}}]`` gives ``{"seo": 0.7}``.
    Evaluations without a ``scores`` mapping are ignored.
    """
    by_metric: dict[str, list[float]] = defaultdict(list)
    for evaluation in evaluations:
        scores = evaluation.get("scores")
        if not isinstance(scores, Mapping):
            continue
        for metric, value in scores.items():
            by_metric[metric].append(float(value))
    return {
        metric: round(fmean(values), SCORE_PRECISION) for metric, values in sorted(by_metric.items())
    }


def composite_score(scores: Mapping[str, float]) -> float | None:
    """Mean of the per-metric means, or None when nothing was scored."""
    if not scores:
        return None
    return round(fmean(scores.values()), SCORE_PRECISION)


@dataclass(frozen=True)
class QualityReport:
    scores: dict[str, float]
    composite: float | None
    passed: bool
    feedback: list[str] = field(default_factory=list)

    @property
    def grade(self) -> str | None:
        return grade_for(self.composite) if self.composite is not None else None

    def as_metadata(self) -> dict[str, Any]:
        return {
            "scores": self.scores,
            "compositeScore": self.composite,
            "grade": self.grade,
            "passed": self.passed,
        }


def build_quality_report(
    evaluations: Iterable[Mapping[str, Any]],
    pass_score: float,
) -> QualityReport:
    """Aggregate evaluations and decide pass/fail against ``pass_score``.

    No scores at all counts as a failure.
    """
    evaluations = list(evaluations)
    scores = aggregate_scores(evaluations)
    composite = composite_score(scores)
    feedback: list[str] = []
    for evaluation in evaluations:
        feedback.extend(str(item) for item in evaluation.get("issues", []))
        feedback.extend(str(item) for item in evaluation.get("recommendations", []))
    return QualityReport(
        scores=scores,
        composite=composite,
        passed=composite is not None and composite >= pass_score,
        feedback=feedback,
    )
