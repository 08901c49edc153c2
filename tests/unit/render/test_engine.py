import pytest

from qrtool.model import OutputFormat, RenderOptions, Symbol
from qrtool.render import engine, render


def test_every_format_has_a_handler() -> None:
    assert set(engine._HANDLERS) == set(OutputFormat)


@pytest.mark.parametrize("fmt", list(OutputFormat))
def test_output_type(tiny_symbol: Symbol, fmt: OutputFormat) -> None:
    output = render(tiny_symbol, RenderOptions(output_format=fmt).resolve(tiny_symbol))
    if fmt.is_binary:
        assert isinstance(output, bytes)
    else:
        assert isinstance(output, str)
        assert output.endswith("\n")
