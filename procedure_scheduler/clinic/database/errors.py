"""Errors raised by the storage layer."""


class StorageError(Exception):
    """Raised when the database fails (connection loss, aborted transaction, ...)."""
    pass


class DuplicateRecordError(StorageError):
    """Raised when a write violates a uniqueness constraint."""
    pass


class ReferencedRecordError(Exception):
    """Raised when deleting a record that bookings or history records still reference."""

    def __init__(self, table: str, record_id: str, references: int):
        self.table = table
        self.record_id = record_id
        self.references = references
        super().__init__(
            f"Cannot delete {table} record {record_id}: "
            f"{references} booking or history record(s) still reference it"
        )


class InvalidValueError(ValueError):
    """Raised when a field is outside its enumerated or formatted values."""
    pass


class LockedDayError(Exception):
    """Raised when changing hours, date or location of a locked operation day."""
    pass
