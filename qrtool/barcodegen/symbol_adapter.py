"""
RU: Адаптер движков штрихкодов: построение символа (qrcode, segno) и поиск
символов на изображении (zxing-cpp).
EN: Symbol adapter wrapping the external encode/decode engines.

Encoding:
- normal symbols in automatic, numeric, alphanumeric and byte mode: ``qrcode``
- Micro QR symbols and Kanji mode: ``segno``

Decoding: ``zxing-cpp`` restricted to QR, Micro QR and rMQR. The detector
reports payload and ECC level; the version is measured from the symbol extent
and the width of the top-left finder pattern. A located symbol that fails to
decode is an error unless it lies inside a symbol that did decode.

Requirements: qrcode, segno, zxing-cpp, Pillow
"""

from __future__ import annotations

import logging
import math
from typing import Any, Final, List, Optional, Sequence, Tuple

import qrcode
import segno
import zxingcpp
from PIL import Image
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q
from qrcode.exceptions import DataOverflowError
from qrcode.util import MODE_8BIT_BYTE, MODE_ALPHA_NUM, MODE_NUMBER, QRData

from qrtool.errors import (
    DataTooLongError,
    FormatUnavailableError,
    GridReadError,
    InvalidModeError,
    InvalidVersionError,
    MalformedGridError,
)
from qrtool.model.enums import EccLevel, Mode, Variant, VersionKind
from qrtool.model.symbol import DecodedPayload, Metadata, Symbol, Version

logger = logging.getLogger(__name__)

__all__ = ["SymbolAdapter"]

NORMAL_VERSIONS: Final[range] = range(1, 41)
MICRO_VERSIONS: Final[range] = range(1, 5)

# M1 только обнаруживает ошибки; сообщается как L
MICRO_ECC_LEVELS: Final[dict[int, Tuple[EccLevel, ...]]] = {
    1: (EccLevel.L,),
    2: (EccLevel.L, EccLevel.M),
    3: (EccLevel.L, EccLevel.M),
    4: (EccLevel.L, EccLevel.M, EccLevel.Q),
}

_QRCODE_ECC: Final[dict[EccLevel, int]] = {
    EccLevel.L: ERROR_CORRECT_L,
    EccLevel.M: ERROR_CORRECT_M,
    EccLevel.Q: ERROR_CORRECT_Q,
    EccLevel.H: ERROR_CORRECT_H,
}

_QRCODE_MODES: Final[dict[Mode, int]] = {
    Mode.NUMERIC: MODE_NUMBER,
    Mode.ALPHANUMERIC: MODE_ALPHA_NUM,
    Mode.BYTE: MODE_8BIT_BYTE,
}

_SEGNO_MODES: Final[dict[Mode, str]] = {
    Mode.NUMERIC: "numeric",
    Mode.ALPHANUMERIC: "alphanumeric",
    Mode.BYTE: "byte",
    Mode.KANJI: "kanji",
}

# Геометрия: стороны символов в модулях
QR_SIZES: Final[Tuple[int, ...]] = tuple(range(21, 178, 4))
MICRO_SIZES: Final[Tuple[int, ...]] = tuple(range(11, 18, 2))
RMQR_HEIGHTS: Final[Tuple[int, ...]] = (7, 9, 11, 13, 15, 17)
RMQR_WIDTHS: Final[Tuple[int, ...]] = (27, 43, 59, 77, 99, 139)
FINDER_MODULES: Final[int] = 7
DARK_THRESHOLD: Final[int] = 128

_FORMAT_KINDS: Final[dict[str, VersionKind]] = {
    "QRCode": VersionKind.NORMAL,
    "MicroQRCode": VersionKind.MICRO,
    "RMQRCode": VersionKind.RECT_MICRO,
}

Point = Tuple[float, float]


class SymbolAdapter:
    """
    Encode payloads into symbols and detect symbols in raster images.

    Examples:
        >>> adapter = SymbolAdapter()
        >>> symbol = adapter.encode(b"QR code", EccLevel.M)
        >>> str(symbol.version), symbol.width
        ('1', 21)
        >>> micro = adapter.encode(b"123", EccLevel.L, version=3, variant=Variant.MICRO)
        >>> str(micro.version)
        'M3'
    """

    # ------------------------------------------------------------------
    # Encode
    # ------------------------------------------------------------------

    def encode(
        self,
        data: bytes,
        ecc_level: EccLevel,
        version: Optional[int] = None,
        mode: Optional[Mode] = None,
        variant: Variant = Variant.NORMAL,
    ) -> Symbol:
        """
        Build a symbol for ``data``.

        Args:
            data: Payload bytes.
            ecc_level: Requested error-correction level.
            version: Explicit version number; ``None`` picks the smallest that fits.
            mode: Encoding mode; ``None`` selects segments automatically
                (or byte mode when the version is explicit).
            variant: Normal or Micro symbol; Micro requires ``version``.

        Raises:
            InvalidVersionError: Version out of range or ECC level not available.
            DataTooLongError: The payload does not fit.
            InvalidModeError: The payload cannot be represented in ``mode``.
        """
        if variant is Variant.MICRO:
            if version is None:
                raise InvalidVersionError("M?", "a Micro QR symbol requires an explicit version")
            self._check_micro(version, ecc_level)
        elif version is not None and version not in NORMAL_VERSIONS:
            raise InvalidVersionError(
                str(version), f"version must be 1 to 40, got {version}"
            )

        if version is not None and mode is None:
            mode = Mode.BYTE

        if variant is Variant.MICRO or mode is Mode.KANJI:
            symbol = self._encode_segno(data, ecc_level, version, mode, variant)
        else:
            symbol = self._encode_qrcode(data, ecc_level, version, mode)
        logger.info(
            "Encoded %d bytes as version %s, level %s", len(data), symbol.version, symbol.ecc_level.letter
        )
        return symbol

    def encode_rect_micro(self, data: bytes, ecc_level: EccLevel, version: Version) -> Symbol:
        """rMQR symbols are recognised on decode only; no installed engine builds them."""
        raise FormatUnavailableError("rmqr", f"no encoder for rectangular Micro QR {version}")

    @staticmethod
    def _check_micro(version: int, ecc_level: EccLevel) -> None:
        if version not in MICRO_VERSIONS:
            raise InvalidVersionError(
                f"M{version}", f"Micro QR version must be M1 to M4, got M{version}"
            )
        allowed = MICRO_ECC_LEVELS[version]
        if ecc_level not in allowed:
            letters = "/".join(level.letter for level in allowed)
            raise InvalidVersionError(
                f"M{version}",
                f"level {ecc_level.letter} is not available for M{version} (allowed: {letters})",
            )

    def _encode_qrcode(
        self, data: bytes, ecc_level: EccLevel, version: Optional[int], mode: Optional[Mode]
    ) -> Symbol:
        qr = qrcode.QRCode(
            version=version,
            error_correction=_QRCODE_ECC[ecc_level],
            box_size=1,
            border=0,
        )
        try:
            if mode is None:
                qr.add_data(data)
            else:
                qr.add_data(QRData(data, mode=_QRCODE_MODES[mode]))
        except ValueError as e:
            raise InvalidModeError(mode.value if mode else "auto", str(e)) from e

        # qrcode 8.x сообщает о переполнении при подборе версии как ValueError("Invalid version")
        try:
            qr.make(fit=version is None)
        except (DataOverflowError, ValueError) as e:
            raise DataTooLongError(len(data), None if version is None else str(version)) from e

        return Symbol.from_matrix(qr.get_matrix(), Version.normal(qr.version), ecc_level)

    def _encode_segno(
        self,
        data: bytes,
        ecc_level: EccLevel,
        version: Optional[int],
        mode: Optional[Mode],
        variant: Variant,
    ) -> Symbol:
        micro = variant is Variant.MICRO
        content: object = data
        if mode is Mode.KANJI:
            try:
                content = data.decode("shift_jis")
            except UnicodeDecodeError as e:
                raise InvalidModeError(mode.value, "the data is not Shift_JIS encoded") from e

        error: Optional[str] = ecc_level.letter
        if micro and version == 1:
            error = None
        segno_version: Optional[object] = version
        if micro:
            segno_version = f"M{version}"

        try:
            qr = segno.make(
                content,
                error=error,
                version=segno_version,
                mode=_SEGNO_MODES[mode] if mode else None,
                micro=micro,
                boost_error=False,
            )
        except segno.DataOverflowError as e:
            raise DataTooLongError(
                len(data), None if segno_version is None else str(segno_version)
            ) from e
        except ValueError as e:
            raise InvalidModeError(mode.value if mode else "auto", str(e)) from e

        if qr.is_micro:
            number = int(str(qr.version)[1:])
            symbol_version = Version.micro(number)
        else:
            symbol_version = Version.normal(int(qr.version))
        level = EccLevel.from_letter(qr.error) if qr.error else EccLevel.L
        return Symbol.from_matrix(qr.matrix, symbol_version, level)

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    def decode(self, image: Image.Image) -> List[DecodedPayload]:
        """
        Detect all QR, Micro QR and rMQR symbols in ``image``.

        Args:
            image: Prepared raster image (converted to 8-bit luma).

        Returns:
            One payload per symbol; empty when nothing is found.

        Raises:
            GridReadError: The detector could not process the image.
            MalformedGridError: A symbol was located but could not be decoded.
        """
        if image.mode != "L":
            image = image.convert("L")
        try:
            barcodes = zxingcpp.read_barcodes(image, return_errors=True)
        except (ValueError, RuntimeError) as e:
            raise GridReadError(f"could not read the image: {e}") from e

        found: List[Tuple[Any, VersionKind]] = []
        for barcode in barcodes:
            kind = _FORMAT_KINDS.get(barcode.format.name)
            if kind is None:
                logger.debug("Skipping %s symbol", barcode.format.name)
                continue
            found.append((barcode, kind))

        valid_bounds = [_bounds(barcode.position) for barcode, _ in found if barcode.valid]
        for barcode, _ in found:
            if barcode.valid:
                continue
            # Детектор находит ложные Micro QR внутри читаемых символов
            bounds = _bounds(barcode.position)
            if any(_overlaps(bounds, other) for other in valid_bounds):
                logger.debug("Ignoring invalid %s inside a decoded symbol", barcode.format.name)
                continue
            raise MalformedGridError(
                f"could not decode the {barcode.format.name} symbol",
                context={"format": barcode.format.name, "reason": str(barcode.error)},
            )

        payloads: List[DecodedPayload] = []
        for barcode, kind in found:
            if not barcode.valid:
                continue
            version = _measure_version(image, barcode.position, kind)
            metadata = Metadata(version=version, ecc_level=_ecc_level(barcode.ec_level))
            payloads.append(DecodedPayload(metadata=metadata, data=bytes(barcode.bytes)))
        logger.info("Found %d symbol(s)", len(payloads))
        return payloads


# ==============================================================================
# VERSION MEASUREMENT
# ==============================================================================


Bounds = Tuple[float, float, float, float]


def _bounds(position: Any) -> Bounds:
    corners = (position.top_left, position.top_right, position.bottom_right, position.bottom_left)
    xs = [float(corner.x) for corner in corners]
    ys = [float(corner.y) for corner in corners]
    return min(xs), min(ys), max(xs), max(ys)


def _overlaps(a: Bounds, b: Bounds) -> bool:
    return a[0] <= b[2] and b[0] <= a[2] and a[1] <= b[3] and b[1] <= a[3]


def _ecc_level(text: str) -> EccLevel:
    letter = text.strip()[:1].upper()
    if letter in ("L", "M", "Q", "H"):
        return EccLevel[letter]
    return EccLevel.L


def _is_dark(image: Image.Image, x: float, y: float) -> bool:
    px, py = int(math.floor(x)), int(math.floor(y))
    if not (0 <= px < image.width and 0 <= py < image.height):
        return False
    return image.getpixel((px, py)) < DARK_THRESHOLD


def _run(image: Image.Image, start: Point, direction: Point, limit: int) -> int:
    """Length in pixels of the dark run through ``start`` along ``direction``."""
    length = 1
    for sign in (1, -1):
        step = 1
        while step < limit and _is_dark(
            image, start[0] + sign * step * direction[0], start[1] + sign * step * direction[1]
        ):
            step += 1
        length += step - 1
    return length


def _snap(measured: float, sizes: Sequence[int]) -> int:
    # Углы могут указывать как на край символа, так и на последний пиксель
    return min(sizes, key=lambda s: min(abs(s - measured), abs(s - 1 - measured)))


def _measure_version(image: Image.Image, position: Any, kind: VersionKind) -> Version:
    tl = (float(position.top_left.x), float(position.top_left.y))
    tr = (float(position.top_right.x), float(position.top_right.y))
    bl = (float(position.bottom_left.x), float(position.bottom_left.y))

    width_px = math.dist(tl, tr)
    height_px = math.dist(tl, bl)
    if width_px == 0 or height_px == 0:
        raise MalformedGridError("detected symbol has zero size")
    u = ((tr[0] - tl[0]) / width_px, (tr[1] - tl[1]) / width_px)
    v = ((bl[0] - tl[0]) / height_px, (bl[1] - tl[1]) / height_px)
    limit = int(max(width_px, height_px)) + 1

    # Грубый шаг модуля: тёмный отрезок по диагонали внутри первого модуля
    diag_len = math.hypot(u[0] + v[0], u[1] + v[1]) or 1.0
    diag = ((u[0] + v[0]) / diag_len, (u[1] + v[1]) / diag_len)
    origin = (tl[0] + 0.5 * (u[0] + v[0]), tl[1] + 0.5 * (u[1] + v[1]))
    rough = max(1.0, _run(image, origin, diag, limit) / math.sqrt(2))

    # Внешняя рамка поискового узора: 7 тёмных модулей по верхней строке и левому столбцу
    inside = (tl[0] + 0.5 * rough * (u[0] + v[0]), tl[1] + 0.5 * rough * (u[1] + v[1]))
    run_u = _run(image, inside, u, limit)
    run_v = _run(image, inside, v, limit)
    # rMQR продолжает тёмные модули за поисковым узором, поэтому берём меньший отрезок
    pitch = min(run_u, run_v) / FINDER_MODULES

    columns = width_px / pitch
    rows = height_px / pitch
    logger.debug("Measured %.2f x %.2f modules (pitch %.2f px)", columns, rows, pitch)

    if kind is VersionKind.RECT_MICRO:
        return Version.rect_micro(_snap(rows, RMQR_HEIGHTS), _snap(columns, RMQR_WIDTHS))
    side = (columns + rows) / 2
    if kind is VersionKind.MICRO:
        return Version.micro((_snap(side, MICRO_SIZES) - 9) // 2)
    return Version.normal((_snap(side, QR_SIZES) - 17) // 4)
