"""Exception hierarchy for ase2ttf."""


class Ase2TtfError(Exception):
    """Base exception for all ase2ttf errors."""

    pass


class FormatError(Ase2TtfError):
    """Malformed or unsupported Aseprite input."""

    def __init__(self, message: str, offset: int | None = None) -> None:
        self.message = message
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte offset {offset})"
        super().__init__(message)


class ConfigError(Ase2TtfError):
    """Invalid conversion settings."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        if field is not None:
            message = f"{field}: {message}"
        super().__init__(message)


class BuildError(Ase2TtfError):
    """The assembled font would violate a structural limit of the format."""

    def __init__(self, message: str, limit: int | None = None) -> None:
        self.message = message
        self.limit = limit
        if limit is not None:
            message = f"{message} (limit {limit})"
        super().__init__(message)


class InputReadError(Ase2TtfError):
    """Error reading the input image file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read '{path}': {reason}")


class OutputWriteError(Ase2TtfError):
    """Error writing the output font file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write font '{path}': {reason}")
