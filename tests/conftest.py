"""
Общие фикстуры: изолированный контекст приложения и небольшие символы.
"""

import logging
from typing import Iterator

import pytest

from qrtool import set_log_level
from qrtool.app_context import get_app_context, reset_app_context
from qrtool.model import EccLevel, Symbol, Version


@pytest.fixture(autouse=True)
def isolated_context(tmp_path, monkeypatch) -> Iterator[None]:
    """Каждый тест получает чистый контекст без пользовательского qrtool.json."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("QRTOOL_CONFIG", raising=False)
    reset_app_context()
    yield
    # --verbose поднимает уровень до INFO для всего процесса
    set_log_level(logging.WARNING)
    reset_app_context()


@pytest.fixture
def tiny_symbol() -> Symbol:
    """3x3 symbol with a dark diagonal; small enough to spell out expected output."""
    return Symbol.from_matrix(
        [
            [1, 0, 0],
            [0, 1, 0],
            [0, 0, 1],
        ],
        Version.normal(1),
        EccLevel.M,
    )


@pytest.fixture
def micro_symbol() -> Symbol:
    return Symbol.from_matrix([[1, 0], [0, 1]], Version.micro(1), EccLevel.L)


@pytest.fixture
def qr_symbol() -> Symbol:
    from qrtool.barcodegen import SymbolAdapter

    return SymbolAdapter().encode(b"QR code", EccLevel.M)


@pytest.fixture
def app_context():
    return get_app_context(config={})
