"""Utility modules for procsim."""

from procsim.utils.logging import (
    bind_process,
    configure_logging,
    get_correlation_id,
    get_logger,
)
from procsim.utils.result import (
    ConfigError,
    Err,
    ErrorCode,
    ExitCode,
    Ok,
    ProcessError,
    Result,
    ResultError,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "get_correlation_id",
    "bind_process",
    # Results
    "Ok",
    "Err",
    "Result",
    "ResultError",
    "ErrorCode",
    "ProcessError",
    "ConfigError",
    "ExitCode",
]
