"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for geoencoder failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class InputNotFoundError(ConfigError):
    """Raised before any row is read when the input file is missing."""

    error_code = "INPUT_NOT_FOUND"


class UnresolvableFieldError(ConfigError):
    """Raised when no column can serve as zip code or house number."""

    error_code = "UNRESOLVABLE_FIELD"


class InputReadError(PipelineError):
    """Raised when the input file cannot be opened or read."""

    error_code = "INPUT_READ_ERROR"


class InputDecodeError(InputReadError):
    """Raised when the input is not UTF-8 text or not parseable as CSV."""

    error_code = "INPUT_DECODE_ERROR"


class OutputWriteError(PipelineError):
    """Raised when a checkpoint or final write fails."""

    error_code = "WRITE_ERROR"


class RowSkipped(PipelineError):
    """A single row produced no output record; the run continues."""

    error_code = "ROW_SKIPPED"


class MissingFieldError(RowSkipped):
    error_code = "MISSING_FIELD"


class NetworkError(RowSkipped):
    error_code = "NETWORK_ERROR"


class NoMatchError(RowSkipped):
    error_code = "NO_MATCH"


class MalformedCoordinateError(RowSkipped):
    error_code = "MALFORMED_COORDINATE"
