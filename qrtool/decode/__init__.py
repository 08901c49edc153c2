"""
decode

Чтение входных данных для декодирования: источник байтов, определение формата
(флаг, расширение, сигнатура) и декодирование растровых и SVG-изображений.
"""

from qrtool.decode.input_source import InputDescriptor, SourceKind
from qrtool.decode.negotiator import decode_image, negotiate, resolve, sniff

__all__ = [
    "InputDescriptor",
    "SourceKind",
    "decode_image",
    "negotiate",
    "resolve",
    "sniff",
]
