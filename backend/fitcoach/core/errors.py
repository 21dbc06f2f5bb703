"""Error types shared across the plan and scheduling services.

Only ``ScheduleValidationError`` is meant to reach an HTTP caller. The
collaborator failures are raised by plan generation, rendering and email
delivery and are contained by the report executor.
"""


class FitCoachError(RuntimeError):
    """Base class for expected, recoverable failures."""


class ScheduleValidationError(ValueError):
    """Raised when a schedule request is incomplete or malformed."""


class GenerationFailure(FitCoachError):
    """The LLM backend could not produce a plan."""


class RenderFailure(FitCoachError):
    """A plan could not be rendered to a document."""


class DeliveryFailure(FitCoachError):
    """A delivery channel rejected or failed to send a message."""
