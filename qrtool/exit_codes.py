"""
RU: Отображение таксономии ошибок в коды завершения в стиле sysexits(3).
EN: Maps the internal error taxonomy to stable sysexits-style exit codes.

The mapping depends only on the exception type (and, for I/O errors, on the
error kind), never on message text, so scripts may rely on it.
"""

from __future__ import annotations

import errno
from enum import IntEnum
from typing import Final

from qrtool.errors import (
    ColorParseError,
    EncodeError,
    ExplicitFormatMismatchError,
    FormatUnavailableError,
    FormatUndeterminedError,
    GridReadError,
    ImageLimitsError,
    ImageUnsupportedError,
    ImageError,
    IoError,
    IoErrorKind,
    MalformedGridError,
    RenderValidationError,
    VectorParseError,
)

__all__ = ["ExitCode", "classify"]


class ExitCode(IntEnum):
    """Process exit codes; values follow <sysexits.h> (``os.EX_*`` is POSIX-only)."""

    OK = 0
    FAILURE = 1
    USAGE = 2
    DATAERR = 65
    NOINPUT = 66
    UNAVAILABLE = 69
    OSERR = 71
    IOERR = 74
    NOPERM = 77


_IO_KIND_CODES: Final[dict[IoErrorKind, ExitCode]] = {
    IoErrorKind.NOT_FOUND: ExitCode.NOINPUT,
    IoErrorKind.PERMISSION_DENIED: ExitCode.NOPERM,
    IoErrorKind.OTHER: ExitCode.IOERR,
}

# Порядок важен: более специфичные классы раньше базовых
_TYPE_CODES: Final[tuple[tuple[type[BaseException], ExitCode], ...]] = (
    (ColorParseError, ExitCode.USAGE),
    (RenderValidationError, ExitCode.USAGE),
    (FormatUndeterminedError, ExitCode.UNAVAILABLE),
    (FormatUnavailableError, ExitCode.UNAVAILABLE),
    (ExplicitFormatMismatchError, ExitCode.DATAERR),
    (EncodeError, ExitCode.DATAERR),
    (GridReadError, ExitCode.IOERR),
    (MalformedGridError, ExitCode.DATAERR),
    (VectorParseError, ExitCode.DATAERR),
    (ImageLimitsError, ExitCode.OSERR),
    (ImageUnsupportedError, ExitCode.UNAVAILABLE),
    (ImageError, ExitCode.DATAERR),
)


def classify(error: BaseException) -> ExitCode:
    """Return the exit code for ``error``.

    Args:
        error: Exception that terminated the invocation.

    Returns:
        The stable exit code for the error's origin; ``FAILURE`` when unclassified.

    Example:
        >>> classify(IoError("could not read x", IoErrorKind.NOT_FOUND, "x"))
        <ExitCode.NOINPUT: 66>
    """
    if isinstance(error, IoError):
        return _IO_KIND_CODES[error.kind]
    for error_type, code in _TYPE_CODES:
        if isinstance(error, error_type):
            return code
    if isinstance(error, OSError):
        if isinstance(error, FileNotFoundError) or error.errno == errno.ENOENT:
            return ExitCode.NOINPUT
        if isinstance(error, PermissionError):
            return ExitCode.NOPERM
        return ExitCode.IOERR
    return ExitCode.FAILURE
