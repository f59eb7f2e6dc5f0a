from app.models.offer import QuantityKind
from utils.validation_utils import escape_markdown, format_money, format_quantity, is_positive, resolve_quantity


def test_is_positive():
    assert is_positive(0.5)
    assert not is_positive(0)
    assert not is_positive(-3)
    assert not is_positive(None)


def test_resolve_single_kind():
    assert resolve_quantity(500.0, None) == (QuantityKind.MASS, 500.0)
    assert resolve_quantity(None, 12) == (QuantityKind.UNITS, 12)
    # A zero slot counts as not given
    assert resolve_quantity(250.0, 0) == (QuantityKind.MASS, 250.0)


def test_resolve_ambiguous_or_missing():
    assert resolve_quantity(500.0, 12) is None
    assert resolve_quantity(None, None) is None
    assert resolve_quantity(0, None) is None
    assert resolve_quantity(-100.0, None) is None


def test_format_quantity():
    assert format_quantity(500.0) == "500"
    assert format_quantity(12) == "12"
    assert format_quantity(2.5) == "2.5"
    assert format_quantity(1e20) == "100000000000000000000"


def test_format_money():
    assert format_money(10) == "10.00"
    assert format_money(0.02) == "0.02"
    assert format_money(3.456) == "3.46"


def test_escape_markdown():
    assert escape_markdown("ana_b") == "ana\\_b"
    assert escape_markdown("*[tomato]`") == "\\*\\[tomato]\\`"
    assert escape_markdown("Porto, Portugal") == "Porto, Portugal"
