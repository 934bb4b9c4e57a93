"""
Exception hierarchy for log and offset operations.

Reaching end of file while reading is never an error; everything below is
unrecoverable for the operation that raised it.
"""


class LogError(Exception):
    """Base class for all log, record and offset failures."""
    pass


class LogWriteError(LogError):
    """Raised when appending to the log file fails."""
    pass


class UnterminatedLogError(LogWriteError):
    """
    Raised when appending to a log whose last record has no delimiter.

    Appending would glue the new batch onto the fragment and make the
    merged line undecodable, so the log must be repaired first.

    Attributes:
        log_size: Log length in bytes
    """

    def __init__(self, path, log_size: int):
        super().__init__(
            f"Log {path} ends with an unterminated record ({log_size} bytes); "
            f"refusing to append"
        )
        self.log_size = log_size


class LogReadError(LogError):
    """Raised when the log file cannot be opened or read."""
    pass


class SerializationError(LogError):
    """Raised when a record cannot be converted to or from its line format."""
    pass


class RecordEncodeError(SerializationError):
    """Raised when a record cannot be serialized."""
    pass


class RecordDecodeError(SerializationError):
    """
    Raised when a complete log line cannot be decoded into a record.

    Attributes:
        position: Byte position of the offending line in the log
    """

    def __init__(self, message: str, position: int = -1):
        super().__init__(message)
        self.position = position


class OffsetStoreError(LogError):
    """Raised when the offset sidecar cannot be read, parsed or written."""
    pass


class OffsetOutOfRangeError(LogError):
    """
    Raised when an offset points past the end of the log.

    Attributes:
        offset: Requested offset
        log_size: Log length in bytes at the time of the request
    """

    def __init__(self, offset: int, log_size: int):
        super().__init__(f"Offset {offset} is beyond end of log ({log_size} bytes)")
        self.offset = offset
        self.log_size = log_size
