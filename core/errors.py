"""Error taxonomy for the generation pipeline.

Every fatal failure of a run is a WorkflowError. The orchestrator turns it
into a single error event; anything else is a bug and propagates.
"""


class WorkflowError(Exception):
    """Base class for fatal pipeline errors."""

    def __init__(self, message, step=None):
        super().__init__(message)
        self.step = step


class InputValidationError(WorkflowError):
    """Empty spec, malformed identifiers, or a plan that does not match its design."""


class ModelInvocationError(WorkflowError):
    """The model provider could not be reached or rejected the request."""


class DecodingError(WorkflowError):
    """Model output could not be parsed or does not satisfy its schema."""


class PersistenceError(WorkflowError):
    """Canvas storage could not be read or written."""


class VersionControlError(WorkflowError):
    """The final commit of a run failed."""
