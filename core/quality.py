"""Quality gate evaluation."""

from config.defaults import DEFAULTS
from core.schemas import QualityReport

THRESHOLD = DEFAULTS["quality_threshold"]


def mean_score(reviews):
    if not reviews:
        return 0.0
    return sum(r.score for r in reviews) / len(reviews)


def normalize_report(report: QualityReport) -> QualityReport:
    """Recompute overallScore and passesThreshold from the page scores."""
    overall = mean_score(report.page_reviews)
    return report.model_copy(update={
        "overall_score": overall,
        "passes_threshold": bool(report.page_reviews) and overall >= THRESHOLD,
    })


def empty_report() -> QualityReport:
    """Synthetic report used when no page survived generation."""
    return QualityReport(overall_score=0, page_reviews=[], passes_threshold=False)


def failing_page_ids(report: QualityReport):
    """Page ids scored below the threshold, in review order."""
    return [r.page_id for r in report.page_reviews if r.score < THRESHOLD]


def should_retry(report: QualityReport, trigger=None) -> bool:
    """Decide whether a second coder pass runs.

    The retry set is always the pages below threshold. The trigger decides
    when that set is acted on:
        "page":    any page below threshold, even if the average passes.
        "overall": only when the report as a whole fails the gate.
    """
    trigger = trigger or DEFAULTS["retry_trigger"]
    if not failing_page_ids(report):
        return False
    if trigger == "overall":
        return not report.passes_threshold
    if trigger == "page":
        return True
    raise ValueError(f"Unknown retry trigger: {trigger}")
