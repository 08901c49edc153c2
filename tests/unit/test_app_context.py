import json
import logging
from pathlib import Path

import pytest

from qrtool.app_context import (
    AppContext,
    Capabilities,
    detect_capabilities,
    get_app_context,
    reset_app_context,
)
from qrtool.errors import FormatUnavailableError
from qrtool.model import InputFormat


class TestCapabilities:
    def test_common_raster_formats_detected(self) -> None:
        capabilities = detect_capabilities()
        for fmt in (InputFormat.PNG, InputFormat.JPEG, InputFormat.GIF, InputFormat.BMP):
            assert capabilities.supports(fmt)

    def test_every_missing_format_has_reason(self) -> None:
        capabilities = detect_capabilities()
        for fmt in InputFormat:
            if not capabilities.supports(fmt):
                assert capabilities.unavailable_reasons[fmt]

    def test_require(self) -> None:
        capabilities = Capabilities(input_formats=frozenset({InputFormat.PNG}))
        capabilities.require(InputFormat.PNG)
        with pytest.raises(FormatUnavailableError) as exc_info:
            capabilities.require(InputFormat.WEBP)
        assert exc_info.value.format_name == "webp"


class TestAppContext:
    def test_singleton(self) -> None:
        assert get_app_context(config={}) is get_app_context()

    def test_reset(self) -> None:
        first = get_app_context(config={})
        reset_app_context()
        assert get_app_context(config={}) is not first

    def test_config_loaded_from_working_directory(self, tmp_path: Path) -> None:
        (tmp_path / "qrtool.json").write_text(json.dumps({"output_format": "svg"}), encoding="utf-8")
        assert get_app_context().config["output_format"] == "svg"

    def test_explicit_capabilities(self) -> None:
        capabilities = Capabilities(input_formats=frozenset())
        assert get_app_context(capabilities=capabilities, config={}).capabilities is capabilities

    def test_config_log_level(self, monkeypatch) -> None:
        monkeypatch.delenv("QRTOOL_LOG_LEVEL", raising=False)
        package_logger = logging.getLogger("qrtool")
        saved = package_logger.level
        try:
            AppContext(capabilities=Capabilities(frozenset()), config={"log_level": "error"})
            assert package_logger.level == logging.ERROR
        finally:
            package_logger.setLevel(saved)

    def test_environment_beats_config_log_level(self, monkeypatch) -> None:
        monkeypatch.setenv("QRTOOL_LOG_LEVEL", "DEBUG")
        package_logger = logging.getLogger("qrtool")
        saved = package_logger.level
        try:
            AppContext(capabilities=Capabilities(frozenset()), config={"log_level": "error"})
            assert package_logger.level == saved
        finally:
            package_logger.setLevel(saved)
