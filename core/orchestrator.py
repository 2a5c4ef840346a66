"""Main pipeline orchestrator — architect → planner → coder×N → reviewer.

The run is a generator of workflow events. It ends with a DoneEvent, a
single ErrorEvent, or nothing at all when the cancel signal was observed.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

from agents.architect import ArchitectAgent
from agents.coder import CoderAgent
from agents.planner import PlannerAgent, validate_plan
from agents.reviewer import ReviewerAgent
from config.defaults import DEFAULTS
from config.settings import load_settings
from core.canvas_store import CanvasStore
from core.errors import InputValidationError, WorkflowError
from core.quality import empty_report, failing_page_ids, should_retry
from core.state import CoderOutcome, DoneEvent, ErrorEvent, RunState, StepEvent
from utils.llm import get_client

logger = logging.getLogger(__name__)

COMMIT_MESSAGE = "Canvas workflow: generate multi-page prototype"


class CancelledError(Exception):
    """Coder task skipped because the run was cancelled before it started."""


class Orchestrator:
    """Runs the four-stage pipeline for one canvas.

    The model client is resolved by the caller and handed to every stage;
    nothing re-reads settings mid-run.
    """

    def __init__(self, client, store, retry_trigger=None, max_workers=None):
        self.client = client
        self.store = store
        self.retry_trigger = retry_trigger or DEFAULTS["retry_trigger"]
        self.max_workers = max_workers or DEFAULTS["max_workers"]
        self.architect = ArchitectAgent()
        self.planner = PlannerAgent()
        self.coder = CoderAgent()
        self.reviewer = ReviewerAgent()

    def run(self, spec_text, cancel=None):
        """Generate every page of the canvas from spec text.

        Args:
            spec_text: Product spec markdown.
            cancel: threading.Event checked at each stage boundary.

        Yields:
            StepEvent, ErrorEvent and DoneEvent instances.
        """
        cancel = cancel or threading.Event()
        state = RunState()
        try:
            yield from self._run(spec_text, cancel, state)
        except WorkflowError as e:
            step = e.step or state.step
            logger.error("Workflow failed during %s: %s", step, e)
            yield ErrorEvent(step=step, error=str(e))
        except GeneratorExit:
            # Consumer went away; stop any coder task that has not started
            cancel.set()
            raise

    def _run(self, spec_text, cancel, state):
        if not spec_text or not spec_text.strip():
            raise InputValidationError("Cannot run workflow: spec.md is empty or missing")
        if cancel.is_set():
            return

        # --- Architect ---
        yield StepEvent("architect", "running")
        design = self.architect.run(self.client, spec_text)
        yield StepEvent("architect", "complete", result={"pageCount": len(design.pages)})
        if cancel.is_set():
            return

        # --- Planner ---
        state.step = "planner"
        yield StepEvent("planner", "running")
        plan = self.planner.run(self.client, design)
        validate_plan(plan, design)
        yield StepEvent("planner", "complete", result={"taskCount": len(plan.tasks)})
        if cancel.is_set():
            return

        # --- Pre-allocate one slot per task before anything is generated ---
        state.step = "coder"
        state.slots = self.store.allocate_slots(plan.tasks)
        if cancel.is_set():
            return

        # --- Coder fan-out ---
        yield StepEvent("coder", "running")
        outcomes = yield from self._fan_out(plan.tasks, design, plan.shared_components, cancel, state, "coder")
        state.pages = [o.page for o in outcomes if o.ok]
        yield StepEvent("coder", "complete",
                        result={"generated": len(state.pages), "total": len(plan.tasks)})
        if cancel.is_set():
            return

        # --- Reviewer ---
        state.step = "reviewer"
        yield StepEvent("reviewer", "running")
        if not state.pages:
            logger.warning("No page was generated, skipping review")
            report = empty_report()
        else:
            report = self.reviewer.run(self.client, state.pages, design)

            if should_retry(report, self.retry_trigger):
                if cancel.is_set():
                    return
                failing = set(failing_page_ids(report))
                retry_tasks = [t for t in plan.tasks if t.page_id in failing]
                state.retried = [t.page_id for t in retry_tasks]
                yield StepEvent("reviewer", "running",
                                detail=f"Retrying {len(retry_tasks)} failing page(s)")

                retries = yield from self._fan_out(
                    retry_tasks, design, plan.shared_components, cancel, state, "reviewer"
                )
                replaced = {o.page.page_id: o.page for o in retries if o.ok}
                state.pages = [replaced.get(p.page_id, p) for p in state.pages]
                if cancel.is_set():
                    return

                # Second and last review, whatever it says
                report = self.reviewer.run(self.client, state.pages, design)

        yield StepEvent("reviewer", "complete", result={
            "overallScore": report.overall_score,
            "passesThreshold": report.passes_threshold,
            "retried": len(state.retried),
        })
        if cancel.is_set():
            return

        # --- Finalize: touch metadata once, commit once ---
        meta = self.store.touch_pages()
        self.store.commit(COMMIT_MESSAGE)
        logger.info("Workflow done for %s: %d/%d page(s)",
                    self.store.version_id, len(state.pages), len(plan.tasks))
        yield DoneEvent(canvas_id=meta.id, page_count=len(state.pages))

    def _fan_out(self, tasks, design, shared_components, cancel, state, step):
        """Run the coder for every task concurrently and settle all of them.

        Each success is written to its slot as it arrives. Returns the
        outcomes in task order; a failed task never fails the others.
        """
        if not tasks:
            return []

        verb = "Generated" if step == "coder" else "Regenerated"
        results = {}
        executor = ThreadPoolExecutor(
            max_workers=min(len(tasks), self.max_workers), thread_name_prefix="coder"
        )
        try:
            futures = [
                executor.submit(self._code_one, task, design, shared_components, cancel)
                for task in tasks
            ]
            for done, future in enumerate(as_completed(futures), 1):
                outcome = future.result()
                results[outcome.task.page_id] = outcome
                name = outcome.task.page_name
                if outcome.ok:
                    self.store.write_page(state.slots[outcome.task.page_id], outcome.page.html_content)
                    detail = f"{verb} page: {name} ({done}/{len(tasks)})"
                else:
                    detail = f"Failed page: {name} ({done}/{len(tasks)})"
                yield StepEvent(step, "running", detail=detail)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return [results[t.page_id] for t in tasks]

    def _code_one(self, task, design, shared_components, cancel):
        if cancel.is_set():
            return CoderOutcome(task=task, error=CancelledError(task.page_id))
        try:
            page = self.coder.run(self.client, task, design, shared_components)
        except Exception as e:
            # Per-task failure: folded into the outcome, never re-raised
            logger.warning("Coder failed for page %s: %s", task.page_id, e)
            return CoderOutcome(task=task, error=e)
        return CoderOutcome(task=task, page=page)


def run_workflow(version_id, cancel=None, settings=None, root=None):
    """Resolve storage and the model client once, then run the pipeline.

    Creates the canvas when the version does not have one yet. Setup
    failures are reported as an ErrorEvent like any other fatal error.
    """
    try:
        store = CanvasStore(version_id, root)
        spec_text = store.read_spec()
        if not spec_text.strip():
            raise InputValidationError("Cannot run workflow: spec.md is empty or missing")
        client = get_client(settings or load_settings())
        if not store.exists():
            store.create("Canvas")
    except WorkflowError as e:
        logger.error("Workflow setup failed for %s: %s", version_id, e)
        yield ErrorEvent(step=e.step or "architect", error=str(e))
        return

    yield from Orchestrator(client, store).run(spec_text, cancel)
