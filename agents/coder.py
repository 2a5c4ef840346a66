"""Coder agent — generates one standalone HTML page per planned task."""

import json
import logging

from agents.base import BaseAgent
from core.schemas import PlanTask, TechDesign
from core.state import GeneratedPage
from utils.llm import extract_html

logger = logging.getLogger(__name__)


class CoderAgent(BaseAgent):
    """Generates a page for one task.

    Runs concurrently for every task of a plan, so run() only reads its
    arguments and keeps no state on the instance.
    """

    name = "coder"

    def run(self, client, task: PlanTask, design: TechDesign, shared_components=None) -> GeneratedPage:
        user_message = self.build_message(task, design, shared_components or [])
        response = client.generate_text(
            self.load_prompt(),
            [{"role": "user", "content": user_message}],
        )
        html = extract_html(response)
        logger.debug("Coder produced %d chars for page %s", len(html), task.page_id)
        return GeneratedPage(page_id=task.page_id, page_name=task.page_name, html_content=html)

    def build_message(self, task, design, shared_components):
        components = {c.name: c for c in design.components}
        shared_lines = []
        for name in shared_components:
            component = components.get(name)
            if component:
                shared_lines.append(f"- {name}: {component.purpose}")
            else:
                shared_lines.append(f"- {name}")
        # Fall back to every designed component when the plan names none
        if not shared_lines:
            shared_lines = [f"- {c.name}: {c.purpose}" for c in design.components]

        criteria = "\n".join(f"- {c}" for c in task.acceptance_criteria)
        design_json = json.dumps(design.to_json_dict(), indent=2)

        return (
            f"## Task\n"
            f"Page ID: {task.page_id}\n"
            f"Page Name: {task.page_name}\n\n"
            f"Description:\n{task.description}\n\n"
            f"Acceptance Criteria:\n{criteria}\n\n"
            f"## Technical Design\n```json\n{design_json}\n```\n\n"
            f"## Shared Components\n" + "\n".join(shared_lines) + "\n\n"
            "Generate a complete, standalone HTML page for this task using Tailwind CSS. "
            "The page should meet all acceptance criteria and follow the design guidelines provided."
        )
