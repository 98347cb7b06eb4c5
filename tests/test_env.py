import pytest

from matrixci.env import EnvironmentStore, references, resolve, resolve_args
from matrixci.errors import ResolutionError
from matrixci.model import Coordinate

COORD = Coordinate((("os", "linux"), ("mode", "release")))


def test_store_seeded_from_baseline_and_overwrites():
    store = EnvironmentStore({"A": "1"})
    assert store.get("A") == "1"
    store.set("A", "2")
    store.set("B", "3")
    assert store.get("A") == "2"
    assert store.snapshot() == {"A": "2", "B": "3"}


def test_absent_key_reads_as_none():
    store = EnvironmentStore()
    assert store.get("MISSING") is None
    assert "MISSING" not in store


def test_snapshot_is_a_copy():
    store = EnvironmentStore({"A": "1"})
    snap = store.snapshot_for_step()
    snap["A"] = "changed"
    assert store.get("A") == "1"


def test_stores_do_not_share_state():
    baseline = {"A": "1"}
    x, y = EnvironmentStore(baseline), EnvironmentStore(baseline)
    x.set("A", "x")
    x.set("ONLY_X", "yes")
    assert y.get("A") == "1"
    assert y.get("ONLY_X") is None
    assert baseline == {"A": "1"}


def test_resolve_env_matrix_and_secrets():
    out = resolve("${{ env.MODE }}|${{matrix.os}}|${{ secrets.TOKEN }}",
                  {"MODE": "--release"}, COORD, {"TOKEN": "t0k"})
    assert out == "--release|linux|t0k"


def test_absent_env_key_resolves_to_empty_string():
    assert resolve("pre-${{ env.NOPE }}-post", {}, COORD) == "pre--post"


@pytest.mark.parametrize("fragment", [
    "${{ matrix.toolchain }}",
    "${{ github.sha }}",
    "${{ secrets.TOKEN }}",
    "${{ nonsense }}",
])
def test_unresolvable_references_raise(fragment):
    with pytest.raises(ResolutionError):
        resolve(fragment, {}, COORD, {})


def test_resolve_args_drops_fragments_that_resolve_empty():
    args = ["build", "${{ env.MODE }}", "--verbose"]
    assert resolve_args(args, {}, COORD) == ["build", "--verbose"]
    assert resolve_args(args, {"MODE": "--release"}, COORD) == ["build", "--release", "--verbose"]


def test_resolve_args_keeps_literal_empty_strings():
    assert resolve_args(["a", "", "b"], {}, COORD) == ["a", "", "b"]


def test_references():
    assert references("x ${{ env.A }} y ${{matrix.b}}") == ["env.A", "matrix.b"]
