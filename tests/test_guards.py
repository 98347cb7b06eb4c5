import pytest

from matrixci.guards import GuardSyntaxError, compile_guard, matrix_equals
from matrixci.model import Coordinate

RELEASE = Coordinate((("os", "linux"), ("mode", "release")))
DEBUG = Coordinate((("os", "linux"), ("mode", "debug")))


@pytest.mark.parametrize("source", [
    "matrix.mode == 'release'",
    'matrix.mode == "release"',
    "matrix.mode == release",
    "'release' == matrix.mode",
    "matrix.mode=='release'",
])
def test_equality_forms(source):
    g = compile_guard(source)
    assert g(RELEASE, {})
    assert not g(DEBUG, {})


def test_inequality_and_conjunction():
    g = compile_guard("matrix.mode != 'debug' && matrix.os == 'linux'")
    assert g(RELEASE, {})
    assert not g(DEBUG, {})


def test_env_operands_see_current_values():
    g = compile_guard("env.MODE == ''")
    assert g(RELEASE, {})
    assert not g(RELEASE, {"MODE": "--release"})


def test_unknown_axis_compares_as_empty():
    assert compile_guard("matrix.toolchain == ''")(RELEASE, {})


@pytest.mark.parametrize("source", ["", "   ", "matrix.mode", "matrix.mode = 'x'", "a == b c d!"])
def test_syntax_errors(source):
    with pytest.raises(GuardSyntaxError):
        compile_guard(source)


def test_matrix_equals_helper():
    g = matrix_equals("mode", "release")
    assert g(RELEASE, {}) and not g(DEBUG, {})


def test_conjunction_inside_quotes_is_literal():
    coord = Coordinate((("features", "a&&b"),))
    g = compile_guard("matrix.features == 'a&&b' && env.MODE == ''")
    assert g(coord, {})
    assert not g(coord, {"MODE": "x"})
    assert not g(Coordinate((("features", "a"),)), {})


def test_unterminated_quote_is_a_syntax_error():
    with pytest.raises(GuardSyntaxError):
        compile_guard("matrix.mode == 'release")
