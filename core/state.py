"""Transient pipeline values and the workflow event stream."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from core.schemas import PlanTask

STEPS = ("architect", "planner", "coder", "reviewer")


@dataclass
class GeneratedPage:
    page_id: str
    page_name: str
    html_content: str


@dataclass
class CoderOutcome:
    """Result of one coder invocation: exactly one of page/error is set."""
    task: PlanTask
    page: GeneratedPage | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.page is not None


@dataclass
class StepEvent:
    step: str           # architect|planner|coder|reviewer
    status: str         # running|complete|error
    detail: str | None = None
    result: dict[str, Any] | None = None

    name = "step"

    def to_dict(self):
        data = {"event": self.name, "step": self.step, "status": self.status}
        if self.detail is not None:
            data["detail"] = self.detail
        if self.result is not None:
            data["result"] = self.result
        return data


@dataclass
class ErrorEvent:
    step: str
    error: str

    name = "error"

    def to_dict(self):
        return {"event": self.name, "step": self.step, "error": self.error}


@dataclass
class DoneEvent:
    canvas_id: str
    page_count: int

    name = "done"

    def to_dict(self):
        return {"event": self.name, "canvasId": self.canvas_id, "pageCount": self.page_count}


@dataclass
class RunState:
    """Mutable bookkeeping for one pipeline run. Never persisted."""
    step: str = "architect"
    slots: dict[str, str] = field(default_factory=dict)     # design page id -> slot id
    pages: list[GeneratedPage] = field(default_factory=list)
    retried: list[str] = field(default_factory=list)
