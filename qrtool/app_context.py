"""
RU: Контекст приложения: набор возможностей (форматы и кодеки), определяемый
один раз при старте, и загруженная конфигурация.
EN: Process-wide application context (singleton) holding the capability set and
the loaded configuration.

Every format is known to the core code; whether it can actually be used depends
on the installed libraries (a Pillow build without WebP, a missing system
libcairo for cairosvg). Unavailable variants fail negotiation at run time with
``FormatUnavailableError``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

from PIL import Image, features

from qrtool import (
    LOG_LEVEL_ENV_VAR,
    add_file_logging,
    check_dependencies,
    load_config,
    set_log_level,
)
from qrtool.errors import FormatUnavailableError
from qrtool.model.enums import InputFormat

logger = logging.getLogger(__name__)

__all__ = ["Capabilities", "AppContext", "detect_capabilities", "get_app_context", "reset_app_context"]

# Pillow plugins compiled against optional codecs
_PILLOW_FEATURES: Dict[InputFormat, str] = {
    InputFormat.WEBP: "webp",
}


@dataclass(frozen=True)
class Capabilities:
    """
    Which input formats and optional codecs this installation can handle.

    Attributes:
        input_formats: Decodable input formats.
        unavailable_reasons: Why a format is missing, for error messages.
    """

    input_formats: FrozenSet[InputFormat]
    unavailable_reasons: Dict[InputFormat, str] = field(default_factory=dict, compare=False)

    def supports(self, fmt: InputFormat) -> bool:
        return fmt in self.input_formats

    def require(self, fmt: InputFormat) -> None:
        """Raise ``FormatUnavailableError`` unless ``fmt`` can be decoded."""
        if fmt not in self.input_formats:
            raise FormatUnavailableError(fmt.value, self.unavailable_reasons.get(fmt))


def _cairosvg_reason() -> Optional[str]:
    try:
        import cairosvg  # noqa: F401
    except ImportError:
        return "cairosvg is not installed"
    except OSError as e:
        # cairocffi не нашёл libcairo
        return f"cairosvg could not load cairo: {e}"
    return None


def detect_capabilities() -> Capabilities:
    """Probe Pillow plugins and optional libraries once."""
    Image.init()
    formats = set()
    reasons: Dict[InputFormat, str] = {}

    for fmt in InputFormat:
        if fmt.is_vector:
            reason = _cairosvg_reason()
            if reason is None:
                formats.add(fmt)
            else:
                reasons[fmt] = reason
            continue
        plugin = fmt.pillow_format
        if plugin not in Image.OPEN:
            reasons[fmt] = f"Pillow has no {plugin} decoder"
            continue
        feature = _PILLOW_FEATURES.get(fmt)
        if feature is not None and not features.check(feature):
            reasons[fmt] = f"Pillow was built without {feature} support"
            continue
        formats.add(fmt)

    missing = sorted(name for name, ok in check_dependencies().items() if not ok)
    if missing:
        logger.info("Missing optional libraries: %s", ", ".join(missing))
    capabilities = Capabilities(
        input_formats=frozenset(formats),
        unavailable_reasons=reasons,
    )
    if reasons:
        logger.info(
            "Unavailable input formats: %s", ", ".join(sorted(f.value for f in reasons))
        )
    return capabilities


class AppContext:
    """
    Dependency context (singleton) for one qrtool process.

    Holds the capability set and the configuration dictionary; both are
    resolved once and shared by the CLI, the negotiator and the renderer.
    """

    def __init__(
        self,
        capabilities: Optional[Capabilities] = None,
        config: Optional[Dict[str, Any]] = None,
        config_path: Optional[Path] = None,
    ) -> None:
        self.capabilities: Capabilities = capabilities or detect_capabilities()
        self.config: Dict[str, Any] = config if config is not None else load_config(config_path)

        log_file = self.config.get("log_file")
        if log_file:
            add_file_logging(Path(log_file))

        # Переменная окружения важнее файла конфигурации
        level_name = str(self.config.get("log_level") or "").upper()
        if level_name and LOG_LEVEL_ENV_VAR not in os.environ:
            level = logging.getLevelName(level_name)
            if isinstance(level, int):
                set_log_level(level)


_ctx: Optional[AppContext] = None


def get_app_context(
    capabilities: Optional[Capabilities] = None,
    config: Optional[Dict[str, Any]] = None,
) -> AppContext:
    """
    Return the global app context, creating it on first use.
    """
    global _ctx
    if _ctx is None:
        _ctx = AppContext(capabilities=capabilities, config=config)
    return _ctx


def reset_app_context() -> None:
    """Drop the singleton (tests, config reload)."""
    global _ctx
    _ctx = None
