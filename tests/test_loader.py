import pytest

from matrixci.errors import LoadError
from matrixci.loader import load_mapping, load_text, load_workflow
from matrixci.model import CommandStep, EnvStep, Coordinate


def _problems(text):
    with pytest.raises(LoadError) as exc:
        load_text(text)
    return "\n".join(exc.value.problems)


def test_loads_rust_ci_example(rust_ci_text):
    w = load_text(rust_ci_text)
    assert w.name == "rust-ci"
    assert [j.id for j in w.jobs] == ["build", "doc", "test", "fmt", "clippy"]
    assert w.trigger.events == {"push": ("main", "staging", "trying")}
    assert w.env == {"CARGO_TERM_COLOR": "always", "RUSTFLAGS": "-D warnings"}

    build = w.job("build")
    assert build.matrix == {"os": ("ubuntu-latest",), "toolchain": ("nightly",), "mode": ("release", "debug")}
    assert isinstance(build.steps[0], EnvStep)
    assert isinstance(build.steps[-1], CommandStep)
    assert build.steps[-1].args == ("+${{ matrix.toolchain }}", "build", "${{ env.MODE }}", "--verbose")
    assert w.job("clippy").steps[-1].secrets == ("GITHUB_TOKEN",)
    assert w.job("fmt").matrix == {}


def test_guard_is_compiled(mode_workflow_text):
    step = load_text(mode_workflow_text).job("build").steps[0]
    assert step.guard(Coordinate((("mode", "release"),)), {})
    assert not step.guard(Coordinate((("mode", "debug"),)), {})
    assert step.guard_source == "matrix.mode == 'release'"


def test_scalars_are_stringified():
    w = load_text("""
on: {push: {branches: [main]}}
env: {LEVEL: 3, DEBUG: true}
jobs:
  t:
    matrix: {py: ['3.9', '3.10']}
    steps:
      - {command: tox, args: [-p, 4]}
""")
    assert w.env == {"LEVEL": "3", "DEBUG": "true"}
    assert w.job("t").matrix["py"] == ("3.9", "3.10")
    assert w.job("t").steps[0].args == ("-p", "4")


@pytest.mark.parametrize("fragment", [
    "env: {PY: 3.10}\njobs: {t: {steps: [{command: tox}]}}",
    "jobs: {t: {matrix: {py: ['3.9', 3.10]}, steps: [{command: tox}]}}",
    "jobs: {t: {steps: [{command: tox, args: [--py, 3.10]}]}}",
])
def test_unquoted_decimal_values_are_rejected(fragment):
    with pytest.raises(LoadError) as ei:
        load_text(fragment)
    assert any("quote it" in p for p in ei.value.problems)


def test_on_key_parsed_as_boolean_by_yaml_is_accepted():
    w = load_text("on:\n  push:\n    branches: [main]\njobs:\n  a:\n    steps: [{command: x}]\n")
    assert w.trigger.events == {"push": ("main",)}


def test_missing_trigger_means_no_events():
    w = load_text("jobs:\n  a:\n    steps: [{command: x}]\n")
    assert w.trigger.events == {}


def test_empty_axis_is_allowed():
    w = load_text("jobs:\n  a:\n    matrix: {mode: []}\n    steps: [{command: x}]\n")
    assert w.job("a").matrix == {"mode": ()}


def test_unknown_step_kind():
    assert "unknown step kind" in _problems("jobs:\n  a:\n    steps:\n      - {uses: actions/checkout@v2}\n")


def test_step_with_both_kinds():
    assert "pick one step kind" in _problems("jobs:\n  a:\n    steps:\n      - {set: A, value: '1', command: x}\n")


def test_env_step_missing_value():
    assert "missing 'value'" in _problems("jobs:\n  a:\n    steps:\n      - {set: A}\n")


def test_guard_on_command_step_rejected():
    assert "'if' only applies" in _problems("jobs:\n  a:\n    steps:\n      - {if: matrix.a == b, command: x}\n")


def test_bad_guard_expression():
    assert "steps.0.if" in _problems("jobs:\n  a:\n    steps:\n      - {if: matrix.a, set: A, value: '1'}\n")


def test_no_jobs_and_no_steps():
    assert "jobs" in _problems("name: x\njobs: {}\n")
    assert "steps" in _problems("jobs:\n  a:\n    steps: []\n")


def test_duplicate_axis_values():
    assert "repeats values" in _problems("jobs:\n  a:\n    matrix: {m: [x, x]}\n    steps: [{command: c}]\n")


def test_unknown_top_level_key():
    assert "runs_on" in _problems("runs_on: linux\njobs:\n  a:\n    steps: [{command: c}]\n")


def test_invalid_yaml_and_non_mapping():
    assert "invalid YAML" in _problems("jobs: [unclosed\n")
    with pytest.raises(LoadError):
        load_mapping(["not", "a", "mapping"])


def test_load_workflow_from_files(tmp_path, rust_ci_text):
    yml = tmp_path / "ci.yml"
    yml.write_text(rust_ci_text)
    assert load_workflow(yml).name == "rust-ci"

    py = tmp_path / "demo_workflow.py"
    py.write_text(
        "from matrixci import wf, job, cmd\n"
        "def workflow():\n"
        "    return wf(job('a', cmd('x')), on={'push': ['main']})\n"
    )
    assert [j.id for j in load_workflow(py).jobs] == ["a"]


def test_python_workflow_errors_become_load_errors(tmp_path):
    dup = tmp_path / "dup_workflow.py"
    dup.write_text("from matrixci import wf, job, cmd\nWORKFLOW = wf(job('a', cmd('x')), job('a', cmd('y')))\n")
    with pytest.raises(LoadError) as exc:
        load_workflow(dup)
    assert "duplicate job id" in str(exc.value)

    empty = tmp_path / "empty_workflow.py"
    empty.write_text("from matrixci import wf, job\ndef workflow():\n    return wf(job('a'))\n")
    with pytest.raises(LoadError):
        load_workflow(empty)

    nothing = tmp_path / "nothing_workflow.py"
    nothing.write_text("X = 1\n")
    with pytest.raises(LoadError):
        load_workflow(nothing)


def test_missing_and_unsupported_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_workflow(tmp_path / "nope.yml")
    txt = tmp_path / "ci.txt"
    txt.write_text("jobs: {}")
    with pytest.raises(LoadError):
        load_workflow(txt)
