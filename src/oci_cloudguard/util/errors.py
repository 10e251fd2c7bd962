from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    OK = 0
    FAILURE = 1


class CloudGuardReportError(Exception):
    """Base error for the activity report pipeline."""


class ConfigError(CloudGuardReportError):
    """Raised for configuration or argument issues (e.g. missing compartment id)."""


class AuthResolutionError(CloudGuardReportError):
    """Raised when authentication cannot be resolved or the client cannot be built."""


class OCIClientError(CloudGuardReportError):
    """Raised when Cloud Guard SDK calls fail."""


class ExportError(CloudGuardReportError):
    """Raised when writing the CSV artifact fails."""


def as_exit_code(exc: BaseException | None) -> int:
    """
    Map a run outcome to the process exit code. Every failure class exits 1.
    """
    if exc is None:
        return int(ExitCode.OK)
    return int(ExitCode.FAILURE)


def _oci_error_types() -> tuple[type[BaseException], ...]:
    try:
        from oci.exceptions import RequestException, ServiceError  # type: ignore
    except Exception:
        return ()
    return (ServiceError, RequestException)


def is_oci_error(exc: BaseException) -> bool:
    """
    Return True if the exception looks like an OCI SDK error.
    """
    oci_types = _oci_error_types()
    if oci_types and isinstance(exc, oci_types):
        return True
    return exc.__class__.__module__.startswith("oci.")


def map_oci_error(exc: BaseException, context: str) -> OCIClientError | None:
    """
    Wrap OCI SDK errors with OCIClientError so the CLI reports them uniformly.
    """
    if not is_oci_error(exc):
        return None
    return OCIClientError(f"{context}: {exc}")
