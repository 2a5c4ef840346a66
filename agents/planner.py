"""Planner agent — breaks a technical design into one task per page."""

import json
import logging

from agents.base import BaseAgent
from core.errors import InputValidationError
from core.schemas import ImplementationPlan, TechDesign
from utils.structured import generate_structured

logger = logging.getLogger(__name__)


class PlannerAgent(BaseAgent):
    """Produces an implementation plan from a technical design."""

    name = "planner"

    def run(self, client, design: TechDesign) -> ImplementationPlan:
        user_message = json.dumps(design.to_json_dict())
        plan = generate_structured(
            client,
            self.load_prompt(),
            [{"role": "user", "content": user_message}],
            ImplementationPlan,
        )
        logger.info("Planner produced %d task(s)", len(plan.tasks))
        return plan


def validate_plan(plan: ImplementationPlan, design: TechDesign):
    """Check that plan tasks map 1:1 onto design pages.

    Generated pages are routed back to storage slots by page id, so a task
    with an unknown or repeated id, or a page without a task, is fatal.
    """
    design_ids = set(design.page_ids())
    if len(design_ids) != len(design.pages):
        raise InputValidationError("Technical design repeats a page id", step="planner")

    seen = set()
    for task in plan.tasks:
        if task.page_id not in design_ids:
            raise InputValidationError(
                f"Plan references unknown page id: {task.page_id}", step="planner"
            )
        if task.page_id in seen:
            raise InputValidationError(
                f"Plan lists page id more than once: {task.page_id}", step="planner"
            )
        seen.add(task.page_id)

    missing = [pid for pid in design.page_ids() if pid not in seen]
    if missing:
        raise InputValidationError(
            f"Plan has no task for page(s): {', '.join(missing)}", step="planner"
        )
