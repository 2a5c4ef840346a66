"""Architect agent — turns spec text into a technical design."""

import logging

from agents.base import BaseAgent
from config.defaults import DEFAULTS
from core.errors import DecodingError, InputValidationError
from core.schemas import TechDesign
from utils.structured import generate_structured

logger = logging.getLogger(__name__)


class ArchitectAgent(BaseAgent):
    """Decomposes a product spec into pages, components and design tokens."""

    name = "architect"

    def run(self, client, spec_text) -> TechDesign:
        if not spec_text or not spec_text.strip():
            raise InputValidationError(
                "Cannot run workflow: spec.md is empty or missing", step=self.name
            )

        design = generate_structured(
            client,
            self.load_prompt(),
            [{"role": "user", "content": spec_text}],
            TechDesign,
        )

        # The prompt asks for this too, but the model does not always comply
        max_pages = DEFAULTS["max_pages"]
        if len(design.pages) > max_pages:
            raise DecodingError(
                f"Technical design has {len(design.pages)} pages, at most {max_pages} allowed",
                step=self.name,
            )

        logger.info("Architect designed %d page(s), navigation=%s",
                    len(design.pages), design.navigation_type)
        return design
