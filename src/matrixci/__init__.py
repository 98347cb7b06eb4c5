from .dsl import build, cmd, job, JobBuilder, matrix_equals, on_push, set_env, wf
from .errors import LoadError, StepFailed, TriggerRejected
from .executor import CommandExecutor, SubprocessExecutor, run_instance
from .loader import load_mapping, load_text, load_workflow
from .matrix import expand
from .model import Coordinate, InstanceState, JobInstance, JobTemplate, Run, Workflow
from .report import summarize, Verdict
from .runner import run_event
from .scheduler import run
from .trigger import TriggerFilter

__all__ = [
    "build", "cmd", "job", "JobBuilder", "matrix_equals", "on_push", "set_env", "wf",
    "LoadError", "StepFailed", "TriggerRejected",
    "CommandExecutor", "SubprocessExecutor", "run_instance",
    "load_mapping", "load_text", "load_workflow",
    "expand",
    "Coordinate", "InstanceState", "JobInstance", "JobTemplate", "Run", "Workflow",
    "summarize", "Verdict",
    "run_event", "run",
    "TriggerFilter",
]
