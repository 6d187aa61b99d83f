class SchedulingError(Exception):
    """Base class for schedule generation failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Invalid availability, hours or technology selection; rejected before scheduling."""

    status_code = 400


class AllocationError(SchedulingError):
    """The allocator ran past the configured calendar horizon."""

    status_code = 422


class PersistenceError(SchedulingError):
    """Writing the generated sessions failed; partial writes were rolled back."""

    status_code = 500
