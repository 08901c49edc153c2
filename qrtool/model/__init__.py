"""
Доменная модель qrtool: перечисления, символ, метаданные и запрос рендеринга.
"""

from qrtool.model.enums import (
    EccLevel,
    InputFormat,
    Mode,
    OutputFormat,
    Variant,
    VersionKind,
)
from qrtool.model.request import (
    PngOptimization,
    RenderOptions,
    RenderRequest,
    parse_optimization_level,
)
from qrtool.model.symbol import DecodedPayload, Metadata, Symbol, Version

__all__ = [
    "EccLevel",
    "InputFormat",
    "Mode",
    "OutputFormat",
    "Variant",
    "VersionKind",
    "Version",
    "Symbol",
    "Metadata",
    "DecodedPayload",
    "PngOptimization",
    "RenderOptions",
    "RenderRequest",
    "parse_optimization_level",
]
