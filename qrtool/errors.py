"""
Централизованные исключения qrtool.

Иерархия типизированных исключений для всех этапов конвейера: разбор цвета,
проверка запроса рендеринга, определение входного формата, кодирование
и декодирование символа, растровый кодек и ввод-вывод. Каждое исключение
несёт достаточно контекста, чтобы назвать виновный вход (путь, цветовое
выражение, формат), и передаётся без изменений до обработчика верхнего уровня,
который выбирает код завершения (см. ``qrtool.exit_codes``).

Example:
    >>> from qrtool.errors import QrToolError
    >>> try:
    ...     color = parse_color("#g")
    ... except QrToolError as e:
    ...     print(e)
    InvalidHexError: invalid hex format: '#g'

Иерархия:
    QrToolError (базовое)
    ├── ColorParseError
    │   ├── UnknownColorFormatError
    │   ├── InvalidHexError
    │   ├── InvalidRgbError / InvalidHslError / InvalidHwbError
    │   ├── InvalidOklabError / InvalidOklchError
    │   └── InvalidColorFunctionError
    ├── RenderValidationError
    │   ├── ColorsNotSupportedError
    │   └── OptimizationNotSupportedError
    ├── FormatNegotiationError
    │   ├── FormatUndeterminedError
    │   ├── FormatUnavailableError
    │   └── ExplicitFormatMismatchError
    ├── EncodeError
    │   ├── InvalidVersionError
    │   ├── DataTooLongError
    │   └── InvalidModeError
    ├── DecodeError
    │   ├── GridReadError
    │   ├── MalformedGridError
    │   └── VectorParseError
    ├── ImageError
    │   ├── ImageLimitsError
    │   ├── ImageUnsupportedError
    │   ├── ImageDecodeError
    │   └── ImageEncodeError
    └── IoError
"""

from __future__ import annotations

import errno
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

__all__: list[str] = [
    "QrToolError",
    # Color
    "ColorParseError",
    "UnknownColorFormatError",
    "InvalidHexError",
    "InvalidRgbError",
    "InvalidHslError",
    "InvalidHwbError",
    "InvalidOklabError",
    "InvalidOklchError",
    "InvalidColorFunctionError",
    # Render validation
    "RenderValidationError",
    "ColorsNotSupportedError",
    "OptimizationNotSupportedError",
    # Format negotiation
    "FormatNegotiationError",
    "FormatUndeterminedError",
    "FormatUnavailableError",
    "ExplicitFormatMismatchError",
    # Encode / decode
    "EncodeError",
    "InvalidVersionError",
    "DataTooLongError",
    "InvalidModeError",
    "DecodeError",
    "GridReadError",
    "MalformedGridError",
    "VectorParseError",
    # Raster codec
    "ImageError",
    "ImageLimitsError",
    "ImageUnsupportedError",
    "ImageDecodeError",
    "ImageEncodeError",
    # I/O
    "IoErrorKind",
    "IoError",
]


# ==============================================================================
# BASE EXCEPTION
# ==============================================================================


class QrToolError(Exception):
    """
    Базовое исключение для всех ошибок qrtool.

    Attributes:
        message: Человекочитаемое сообщение об ошибке
        context: Дополнительный контекст (путь, формат, выражение)

    Example:
        >>> raise QrToolError("could not read the image", context={"path": "a.png"})
    """

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        parts = [self.__class__.__name__, ": ", self.message]
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f" ({ctx_str})")
        return "".join(parts)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, context={self.context!r})"

    def user_message(self) -> str:
        """Сообщение для stderr: текст плюс контекст, которого в нём ещё нет."""
        extra = [f"{k}: {v}" for k, v in self.context.items() if str(v) not in self.message]
        if not extra:
            return self.message
        return f"{self.message} ({', '.join(extra)})"


# ==============================================================================
# COLOR ERRORS
# ==============================================================================


class ColorParseError(QrToolError):
    """
    Цветовое выражение не удалось разобрать.

    Attributes:
        expression: Исходное выражение, как его ввёл пользователь
    """

    kind: str = "color"

    def __init__(self, expression: str, detail: Optional[str] = None) -> None:
        message = f"invalid {self.kind} format: {expression!r}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.expression = expression
        self.detail = detail


class UnknownColorFormatError(ColorParseError):
    """Выражение не подходит ни под одну грамматику."""

    kind = "unknown"


class InvalidHexError(ColorParseError):
    kind = "hex"


class InvalidRgbError(ColorParseError):
    kind = "rgb"


class InvalidHslError(ColorParseError):
    kind = "hsl"


class InvalidHwbError(ColorParseError):
    kind = "hwb"


class InvalidOklabError(ColorParseError):
    kind = "oklab"


class InvalidOklchError(ColorParseError):
    kind = "oklch"


class InvalidColorFunctionError(ColorParseError):
    """Функциональная запись с неизвестным именем функции, например ``fn(0)``."""

    def __init__(self, expression: str, detail: Optional[str] = None) -> None:
        message = f"invalid color function: {expression!r}"
        if detail:
            message += f" ({detail})"
        QrToolError.__init__(self, message)
        self.expression = expression
        self.detail = detail


# ==============================================================================
# RENDER VALIDATION ERRORS
# ==============================================================================


class RenderValidationError(QrToolError):
    """Запрос рендеринга противоречив; проверяется до начала рендеринга."""


class ColorsNotSupportedError(RenderValidationError):
    """
    Для бесцветного формата (pic, ascii, unicode) заданы нестандартные цвета.

    Attributes:
        output_format: Имя выбранного формата вывода
    """

    def __init__(self, output_format: str) -> None:
        super().__init__(
            f"the output format {output_format!r} does not support "
            "--foreground and --background",
            context={"format": output_format},
        )
        self.output_format = output_format


class OptimizationNotSupportedError(RenderValidationError):
    """Оптимизация PNG запрошена для не-растрового формата."""

    def __init__(self, output_format: str) -> None:
        super().__init__(
            f"PNG optimization is not available for the output format {output_format!r}",
            context={"format": output_format},
        )
        self.output_format = output_format


# ==============================================================================
# FORMAT NEGOTIATION ERRORS
# ==============================================================================


class FormatNegotiationError(QrToolError):
    """Не удалось выбрать декодер для входных данных."""


class FormatUndeterminedError(FormatNegotiationError):
    """Ни флаг, ни расширение, ни сигнатура содержимого не определили формат."""

    def __init__(self, source: str) -> None:
        super().__init__(
            "could not determine the image format", context={"input": source}
        )
        self.source = source


class FormatUnavailableError(FormatNegotiationError):
    """Формат известен, но не поддерживается установленными библиотеками."""

    def __init__(self, format_name: str, reason: Optional[str] = None) -> None:
        message = f"the format {format_name!r} is not available"
        if reason:
            message += f": {reason}"
        super().__init__(message, context={"format": format_name})
        self.format_name = format_name


class ExplicitFormatMismatchError(FormatNegotiationError):
    """Содержимое не читается в формате, явно указанном через ``--type``."""

    def __init__(self, format_name: str, source: str, reason: str) -> None:
        super().__init__(
            f"could not read the image as {format_name}: {reason}",
            context={"input": source, "format": format_name},
        )
        self.format_name = format_name
        self.source = source


# ==============================================================================
# ENCODE / DECODE ERRORS
# ==============================================================================


class EncodeError(QrToolError):
    """Движок не смог построить символ из данных."""


class InvalidVersionError(EncodeError):
    def __init__(self, version: str, reason: str = "invalid version") -> None:
        super().__init__(f"could not set the version: {reason}", context={"version": version})
        self.version = version


class DataTooLongError(EncodeError):
    def __init__(self, length: int, version: Optional[str] = None) -> None:
        context: Dict[str, Any] = {"bytes": length}
        if version is not None:
            context["version"] = version
        super().__init__("could not construct a QR code: data too long", context=context)
        self.length = length


class InvalidModeError(EncodeError):
    def __init__(self, mode: str, reason: str = "invalid character for the mode") -> None:
        super().__init__(f"could not construct a QR code: {reason}", context={"mode": mode})
        self.mode = mode


class DecodeError(QrToolError):
    """Ошибка на стороне декодирования (чтение сетки, SVG)."""


class GridReadError(DecodeError):
    """Детектор не смог прочитать подготовленное изображение."""


class MalformedGridError(DecodeError):
    """Найденная сетка не декодируется."""


class VectorParseError(DecodeError):
    """SVG-документ повреждён, пуст или имеет нулевой размер."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"could not read the SVG image: {reason}", context={"input": source})
        self.source = source


# ==============================================================================
# RASTER CODEC ERRORS
# ==============================================================================


class ImageError(QrToolError):
    """Ошибка растрового кодека (Pillow / oxipng)."""


class ImageLimitsError(ImageError):
    """Превышены ограничения ресурсов (например, decompression bomb)."""


class ImageUnsupportedError(ImageError):
    """Операция или вариант формата не поддерживается кодеком."""


class ImageDecodeError(ImageError):
    """Повреждённый или некорректный поток изображения."""


class ImageEncodeError(ImageError):
    """Не удалось закодировать или оптимизировать изображение."""


# ==============================================================================
# I/O ERRORS
# ==============================================================================


class IoErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    OTHER = "other"


class IoError(QrToolError):
    """
    Ошибка файловой системы или потока с указанием действия и пути.

    Attributes:
        kind: Класс ошибки для выбора кода завершения
        path: Путь или имя потока ("stdin", "stdout")

    Example:
        >>> try:
        ...     Path("missing.txt").read_bytes()
        ... except OSError as exc:
        ...     raise IoError.from_os_error(exc, "read data from", "missing.txt") from exc
    """

    def __init__(self, message: str, kind: IoErrorKind, path: str) -> None:
        super().__init__(message, context={"path": path})
        self.kind = kind
        self.path = path

    @classmethod
    def from_os_error(cls, exc: OSError, action: str, path: Union[str, Path]) -> "IoError":
        if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
            kind = IoErrorKind.NOT_FOUND
        elif isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
            kind = IoErrorKind.PERMISSION_DENIED
        else:
            kind = IoErrorKind.OTHER
        reason = exc.strerror or str(exc)
        return cls(f"could not {action} {path}: {reason}", kind, str(path))
