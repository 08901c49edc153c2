"""
barcodegen

Обёртка над внешними движками QR: построение символа (qrcode, segno) и
поиск символов на изображении (zxing-cpp).

Public API:
    - SymbolAdapter: encode(data, ecc_level, ...) -> Symbol; decode(image) -> [DecodedPayload]

Зависимости:
    qrcode, segno, zxing-cpp, Pillow
"""

from qrtool.barcodegen.symbol_adapter import SymbolAdapter

__all__ = ["SymbolAdapter"]
