"""Shared factories for designs, plans and reports."""

import pytest

from core.schemas import (
    DesignComponent, DesignPage, DesignTokens, ImplementationPlan,
    PageReview, PlanTask, QualityReport, TechDesign,
)


def _design(n=3):
    return TechDesign(
        pages=[
            DesignPage(id=f"page-{i}", name=f"Page {i}", description=f"Page number {i}", layout="grid")
            for i in range(1, n + 1)
        ],
        components=[
            DesignComponent(name="NavBar", purpose="Top navigation", props=["active"], placement="top"),
        ],
        design_tokens=DesignTokens(primary_color="#2563eb", font_family="Inter", spacing="4px"),
        data_flow="Pages share a cart in localStorage",
        navigation_type="tabs",
    )


def _plan(design):
    return ImplementationPlan(
        tasks=[
            PlanTask(
                page_id=p.id,
                page_name=p.name,
                description=p.description,
                acceptance_criteria=["Shows the nav bar", "Works on mobile"],
                priority=i,
            )
            for i, p in enumerate(design.pages, 1)
        ],
        shared_components=["NavBar"],
        implementation_order=[p.id for p in design.pages],
    )


def _report(scores):
    """Report with one review per score, for pages page-1..page-N."""
    reviews = [
        PageReview(page_id=f"page-{i}", score=s, issues=[], suggestions=[])
        for i, s in enumerate(scores, 1)
    ]
    overall = sum(scores) / len(scores) if scores else 0
    return QualityReport(overall_score=overall, page_reviews=reviews, passes_threshold=overall >= 7)


@pytest.fixture
def make_design():
    return _design


@pytest.fixture
def make_plan():
    return _plan


@pytest.fixture
def make_report():
    return _report
