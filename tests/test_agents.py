"""Tests for the architect, planner, coder and reviewer agents."""

import json
from unittest.mock import MagicMock

import pytest

from agents.architect import ArchitectAgent
from agents.coder import CoderAgent
from agents.planner import PlannerAgent, validate_plan
from agents.reviewer import ReviewerAgent
from core.errors import DecodingError, InputValidationError
from core.state import GeneratedPage


def _client(text):
    client = MagicMock()
    client.generate_text.return_value = text
    return client


# ---------------------------------------------------------------------------
# Architect
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("spec", ["", "   \n\t "])
def test_architect_rejects_empty_spec_without_model_call(spec):
    client = _client("{}")
    with pytest.raises(InputValidationError, match="empty"):
        ArchitectAgent().run(client, spec)
    client.generate_text.assert_not_called()


def test_architect_returns_design(make_design):
    design = make_design(3)
    client = _client(json.dumps(design.to_json_dict()))

    result = ArchitectAgent().run(client, "# Shop\nA small shop.")

    assert result.page_ids() == ["page-1", "page-2", "page-3"]
    system, messages = client.generate_text.call_args.args
    assert "max 8 pages" in system.lower()
    assert messages == [{"role": "user", "content": "# Shop\nA small shop."}]


def test_architect_accepts_exactly_eight_pages(make_design):
    client = _client(json.dumps(make_design(8).to_json_dict()))
    assert len(ArchitectAgent().run(client, "spec").pages) == 8


def test_architect_rejects_more_than_eight_pages(make_design):
    client = _client(json.dumps(make_design(9).to_json_dict()))
    with pytest.raises(DecodingError, match="9 pages"):
        ArchitectAgent().run(client, "spec")


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------

def test_planner_sends_design_as_json(make_design, make_plan):
    design = make_design(2)
    client = _client(json.dumps(make_plan(design).to_json_dict()))

    plan = PlannerAgent().run(client, design)

    assert [t.page_id for t in plan.tasks] == ["page-1", "page-2"]
    _, messages = client.generate_text.call_args.args
    assert json.loads(messages[0]["content"])["designTokens"]["primaryColor"] == "#2563eb"


def test_validate_plan_accepts_matching_plan(make_design, make_plan):
    design = make_design(3)
    validate_plan(make_plan(design), design)


def test_validate_plan_unknown_page(make_design, make_plan):
    design = make_design(3)
    plan = make_plan(design)
    plan.tasks[1].page_id = "checkout"
    with pytest.raises(InputValidationError, match="unknown page id: checkout"):
        validate_plan(plan, design)


def test_validate_plan_duplicate_page(make_design, make_plan):
    design = make_design(3)
    plan = make_plan(design)
    plan.tasks[2].page_id = "page-1"
    with pytest.raises(InputValidationError, match="more than once"):
        validate_plan(plan, design)


def test_validate_plan_missing_page(make_design, make_plan):
    design = make_design(3)
    plan = make_plan(design)
    plan.tasks.pop()
    with pytest.raises(InputValidationError, match="no task for page"):
        validate_plan(plan, design)


def test_validate_plan_error_names_planner_step(make_design, make_plan):
    design = make_design(1)
    plan = make_plan(design)
    plan.tasks[0].page_id = "nope"
    with pytest.raises(InputValidationError) as exc:
        validate_plan(plan, design)
    assert exc.value.step == "planner"


# ---------------------------------------------------------------------------
# Coder
# ---------------------------------------------------------------------------

def test_coder_extracts_html(make_design, make_plan):
    design = make_design(1)
    task = make_plan(design).tasks[0]
    client = _client("Here you go!\n<!DOCTYPE html>\n<html><body>Page 1</body></html>")

    page = CoderAgent().run(client, task, design, ["NavBar"])

    assert page.page_id == "page-1"
    assert page.page_name == "Page 1"
    assert page.html_content.startswith("<!DOCTYPE html>")


def test_coder_stores_malformed_output_as_is(make_design, make_plan):
    design = make_design(1)
    task = make_plan(design).tasks[0]
    page = CoderAgent().run(_client("  <div>no document</div> "), task, design)
    assert page.html_content == "<div>no document</div>"


def test_coder_message_contents(make_design, make_plan):
    design = make_design(2)
    task = make_plan(design).tasks[1]

    message = CoderAgent().build_message(task, design, ["NavBar", "Footer"])

    assert "Page ID: page-2" in message
    assert "- Works on mobile" in message
    assert "- NavBar: Top navigation" in message
    assert "- Footer" in message
    assert '"navigationType": "tabs"' in message


def test_coder_falls_back_to_design_components(make_design, make_plan):
    design = make_design(1)
    message = CoderAgent().build_message(make_plan(design).tasks[0], design, [])
    assert "- NavBar: Top navigation" in message


# ---------------------------------------------------------------------------
# Reviewer
# ---------------------------------------------------------------------------

def _pages(n):
    return [
        GeneratedPage(page_id=f"page-{i}", page_name=f"Page {i}", html_content=f"<html>{i}</html>")
        for i in range(1, n + 1)
    ]


def test_reviewer_recomputes_overall(make_design, make_report):
    report = make_report([9, 9, 4]).to_json_dict()
    report["overallScore"] = 3
    report["passesThreshold"] = False
    client = _client(json.dumps(report))

    result = ReviewerAgent().run(client, _pages(3), make_design(3))

    assert result.overall_score == pytest.approx(22 / 3)
    assert result.passes_threshold is True


def test_reviewer_drops_unknown_pages(make_design, make_report):
    report = make_report([8, 2]).to_json_dict()
    client = _client(json.dumps(report))

    result = ReviewerAgent().run(client, _pages(1), make_design(2))

    assert [r.page_id for r in result.page_reviews] == ["page-1"]
    assert result.overall_score == 8


def test_reviewer_message_includes_pages(make_design, make_report):
    client = _client(json.dumps(make_report([8, 8]).to_json_dict()))
    ReviewerAgent().run(client, _pages(2), make_design(2))

    _, messages = client.generate_text.call_args.args
    content = messages[0]["content"]
    assert "Page ID: page-1" in content
    assert "<html>2</html>" in content
