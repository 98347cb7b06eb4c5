import pytest

from matrixci.dsl import build, cmd, job, matrix_equals, on_push, set_env, wf
from matrixci.model import CommandStep, Coordinate, EnvStep


def test_cmd_and_set_env():
    step = cmd("cargo", "build", "${{ env.MODE }}", name="build", secrets=["TOKEN"])
    assert step == CommandStep(command="cargo", args=("build", "${{ env.MODE }}"), secrets=("TOKEN",), name="build")
    assert step.label == "build"
    assert cmd("cargo").label == "cargo"

    guarded = set_env("MODE", "--release", when="matrix.mode == 'release'")
    assert isinstance(guarded, EnvStep)
    assert guarded.guard(Coordinate((("mode", "release"),)), {})
    assert guarded.guard_source == "matrix.mode == 'release'"
    assert set_env("A", "1").guard is None
    assert set_env("A", "1").label == "set A"


def test_job_requires_steps():
    with pytest.raises(ValueError):
        job("empty")


def test_job_collects_steps_in_order():
    t = job("build", cmd("b"), steps_list=[cmd("a")], matrix={"mode": ["release", "debug"]}, name="n")
    assert [s.command for s in t.steps] == ["a", "b"]
    assert t.matrix == {"mode": ("release", "debug")}
    assert t.display_name == "n"


def test_builder():
    t = (
        build("build")
        .named("cargo-build ${{ matrix.mode }}")
        .axis("mode", "release", "debug")
        .set_env("MODE", "--release", when="matrix.mode == 'release'")
        .run("cargo", "build", "${{ env.MODE }}")
        .build()
    )
    assert t.matrix == {"mode": ("release", "debug")}
    assert len(t.steps) == 2
    with pytest.raises(ValueError):
        build("nothing").build()


def test_wf_trigger_and_env():
    w = wf(job("a", cmd("x")), on=on_push("main", "staging"), env={"K": "V"}, name="demo")
    assert w.trigger.events == {"push": ("main", "staging")}
    assert w.env == {"K": "V"}
    assert w.name == "demo"
    assert w.job("a").id == "a"
    with pytest.raises(KeyError):
        w.job("missing")


def test_set_env_with_matrix_equals():
    step = set_env("MODE", "--release", when=matrix_equals("mode", "release"))
    assert step.guard(Coordinate((("mode", "release"),)), {})
    assert not step.guard(Coordinate((("mode", "debug"),)), {})
    assert not step.guard(Coordinate(), {})
    assert step.guard_source is None
