"""Custom exceptions, grouped under a single top-level TrackerError so callers can catch everything from this package at once."""


class TrackerError(Exception):
    """Base class for all errors raised by the rating tracker."""


# --- Domain layer ---
class InvalidOutcomeError(TrackerError):
    """Game outcome is not one of win / draw / loss."""


class InvalidMonthKeyError(TrackerError):
    """A month key could not be interpreted as '<year>-<month>'."""


class RecordPatchError(TrackerError):
    """An edit tried to change a field that cannot be patched."""


class ReadOnlyMonthError(TrackerError):
    """Mutation attempted on a record that belongs to a past (frozen) month."""


# --- Boundary layers ---
class InvalidRequestError(TrackerError):
    """Request data failed validation."""


class MigrationError(TrackerError):
    """A stored payload could not be converted to the current record schema."""


class RepositoryError(TrackerError):
    """Requested record does not exist in the repository."""
