class SchedulingError(Exception):
    """Base class for every error raised by the scheduling engine."""

    pass


class InvalidConfigurationError(SchedulingError):
    """Raised when the task list or constraint rules can never yield a schedule (cycles, bad pins, unknown tasks)."""

    pass


class InfeasibleScheduleError(SchedulingError):
    """Raised when a caller requires a schedule but no assignment satisfies every constraint."""

    pass


class InternalInvariantError(SchedulingError):
    """Raised on programmer errors: non-positive durations, schedule length mismatches, out-of-range domain values."""

    pass
