"""Base class for the four pipeline stages."""

import os
from abc import ABC, abstractmethod

_PROMPTS_DIR = os.path.join(os.path.dirname(__file__), "prompts")


class BaseAgent(ABC):
    """A pipeline stage: one system prompt, one model call per run()."""

    name = "base"

    @abstractmethod
    def run(self, client, *args, **kwargs):
        """Run the stage with an explicitly passed ModelClient."""

    def load_prompt(self):
        """Read this stage's system prompt from prompts/<name>.txt."""
        with open(os.path.join(_PROMPTS_DIR, f"{self.name}.txt")) as f:
            return f.read()
