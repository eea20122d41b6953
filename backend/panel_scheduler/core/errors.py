"""Error kinds raised by the scheduling core.

Running out of slots is not an error: candidates that cannot be placed are
reported in the scheduling result with a reason.
"""


class SchedulingError(Exception):
    """Base class for scheduling failures."""

    code = "scheduling_error"


class ConfigurationError(SchedulingError):
    """Fewer than two interviewers were supplied."""

    code = "configuration_error"


class NotFoundError(SchedulingError):
    """An assignment, candidate or history entry id is unknown."""

    code = "not_found"


class AlreadyCompletedError(SchedulingError):
    """A completed assignment was about to be mutated."""

    code = "already_completed"


class LoopDetectedError(SchedulingError):
    """A candidate would be moved back within the reschedule cooldown."""

    code = "loop_detected"


class SlotConflictError(SchedulingError):
    """The slot or the candidate already has an active assignment."""

    code = "slot_conflict"


class InvalidSlotLabelError(SchedulingError, ValueError):
    """A slot label has no parseable start time."""

    code = "invalid_slot_label"
