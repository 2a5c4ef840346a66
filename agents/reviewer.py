"""Reviewer agent — scores generated pages against the technical design."""

import json
import logging

from agents.base import BaseAgent
from core.quality import normalize_report
from core.schemas import QualityReport, TechDesign
from utils.structured import generate_structured

logger = logging.getLogger(__name__)


class ReviewerAgent(BaseAgent):
    """Reviews every generated page and returns a quality report."""

    name = "reviewer"

    def run(self, client, pages, design: TechDesign) -> QualityReport:
        parts = [
            "Technical Design:",
            json.dumps(design.to_json_dict(), indent=2),
            "",
            "Generated Pages:",
        ]
        for page in pages:
            parts.append(
                f"\nPage ID: {page.page_id}\n"
                f"Page Name: {page.page_name}\n"
                f"HTML Content:\n```html\n{page.html_content}\n```\n"
            )
        parts.append("Please review each page against the technical design and provide a quality report.")

        report = generate_structured(
            client,
            self.load_prompt(),
            [{"role": "user", "content": "\n".join(parts)}],
            QualityReport,
        )

        # Ignore reviews of pages that were not submitted
        reviewed = {p.page_id for p in pages}
        kept = [r for r in report.page_reviews if r.page_id in reviewed]
        if len(kept) != len(report.page_reviews):
            logger.warning("Reviewer scored %d unknown page(s)", len(report.page_reviews) - len(kept))

        report = normalize_report(report.model_copy(update={"page_reviews": kept}))
        logger.info("Reviewer scored %d page(s), overall %.2f", len(kept), report.overall_score)
        return report
