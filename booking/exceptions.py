# booking/exceptions.py
#
# Purpose:
# - Error taxonomy for the availability & booking engine.
#
# Design highlights:
# - Every engine error is a ValueError.
# - Each error carries an HTTP status and a machine-readable code; views turn
#   them into {"detail": ..., "code": ...} responses via detail().
#


class BookingEngineError(ValueError):
    """Base class for all engine errors. Scoped to a single request."""

    status_code = 400
    code = "invalid"

    def __init__(self, message, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def detail(self):
        data = {"detail": self.message, "code": self.code}
        data.update(self.context)
        return data


# -------------------------
# Bad availability data
# -------------------------
class MalformedTime(BookingEngineError):
    code = "malformed_time"


class InvalidInterval(BookingEngineError):
    code = "invalid_interval"


class InvalidDay(BookingEngineError):
    code = "invalid_day"


class DuplicateDay(BookingEngineError):
    code = "duplicate_day"


class InvalidSlotDuration(BookingEngineError):
    code = "invalid_slot_duration"


# -------------------------
# Bad pricing / rating input
# -------------------------
class InvalidRate(BookingEngineError):
    code = "invalid_rate"


class InvalidScore(BookingEngineError):
    code = "invalid_score"


# -------------------------
# Lifecycle
# -------------------------
class InvalidTransition(BookingEngineError):
    status_code = 409
    code = "invalid_transition"

    def __init__(self, message=None, current_status=None, attempted_status=None, **context):
        if message is None:
            message = f"Cannot change status from '{current_status}' to '{attempted_status}'."
        super().__init__(
            message,
            current_status=current_status,
            attempted_status=attempted_status,
            **context,
        )


class CancellationReasonRequired(InvalidTransition):
    status_code = 400
    code = "cancellation_reason_required"


class Unauthorized(BookingEngineError):
    status_code = 403
    code = "unauthorized"


class NotFound(BookingEngineError):
    status_code = 404
    code = "not_found"


# -------------------------
# Conflicts
# -------------------------
class Conflict(BookingEngineError):
    status_code = 409
    code = "conflict"


class SlotConflict(Conflict):
    code = "slot_conflict"


class SlotUnavailable(Conflict):
    code = "slot_unavailable"


class DuplicateRating(Conflict):
    code = "duplicate_rating"
