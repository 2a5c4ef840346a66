"""Schemas for model output and persisted canvas metadata.

All models serialize with camelCase keys, the shape described to the model
and written to canvas.json. Python code uses the snake_case attributes.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# --- Architect ---

class DesignPage(CamelModel):
    id: str
    name: str
    description: str
    layout: str


class DesignComponent(CamelModel):
    name: str
    purpose: str
    props: list[str]
    placement: str


class DesignTokens(CamelModel):
    primary_color: str
    font_family: str
    spacing: str


class TechDesign(CamelModel):
    pages: list[DesignPage]
    components: list[DesignComponent]
    design_tokens: DesignTokens
    data_flow: str
    navigation_type: Literal["tabs", "sidebar", "none"]

    def page_ids(self) -> list[str]:
        return [p.id for p in self.pages]


# --- Planner ---

class PlanTask(CamelModel):
    page_id: str
    page_name: str
    description: str
    acceptance_criteria: list[str]
    priority: float


class ImplementationPlan(CamelModel):
    tasks: list[PlanTask]
    shared_components: list[str]
    implementation_order: list[str]


# --- Reviewer ---

class PageReview(CamelModel):
    page_id: str
    score: float = Field(ge=1, le=10)
    issues: list[str]
    suggestions: list[str]


class QualityReport(CamelModel):
    overall_score: float
    page_reviews: list[PageReview]
    passes_threshold: bool


# --- Persisted canvas metadata ---

class CanvasPageMeta(CamelModel):
    id: str
    name: str
    description: str | None = None
    html_path: str
    created_at: str
    updated_at: str


class CanvasMeta(CamelModel):
    id: str
    version_id: str
    name: str
    pages: list[CanvasPageMeta] = Field(default_factory=list)
    created_at: str
    updated_at: str
