import json

from conftest import make_state

from desktop_agent.memory import Memory, format_history
from desktop_agent.models import Action, ActionType, ExecutionStep, LoopState


def step(explanation, success, elapsed=1.0):
    state = make_state()
    return ExecutionStep(
        action=Action(ActionType.CLICK, "OK", explanation=explanation),
        before=state,
        after=state,
        success=success,
        error_message=None if success else "failed",
        elapsed=elapsed,
    )


def test_format_history_numbers_steps():
    steps = [step("open menu", True), step("", False)]

    assert format_history(steps) == "1. open menu - SUCCESS\n2. click - FAILED"


def test_format_history_last_n_keeps_numbering():
    steps = [step(f"s{i}", True) for i in range(1, 8)]

    lines = format_history(steps, last_n=2).splitlines()

    assert lines == ["6. s6 - SUCCESS", "7. s7 - SUCCESS"]


def test_format_history_empty():
    assert format_history([]) == "(无历史)"


def test_metrics():
    memory = Memory("goal")
    memory.record(step("a", True, elapsed=1.0))
    memory.record(step("b", False, elapsed=3.0))

    metrics = memory.metrics()

    assert metrics["total_steps"] == 2
    assert metrics["successful_steps"] == 1
    assert metrics["failed_steps"] == 1
    assert metrics["success_rate"] == 0.5
    assert metrics["average_step_time"] == 2.0


def test_metrics_without_steps():
    assert Memory("goal").metrics()["success_rate"] == 0.0


def test_finish_and_save(tmp_path):
    memory = Memory("type Hello")
    memory.record(step("type greeting", True))
    trace = memory.finish(True, LoopState.SUCCESS, "done")

    path = memory.save(tmp_path / "out" / "trace.json")
    data = json.loads(path.read_text(encoding="utf-8"))

    assert trace.overall_success is True
    assert trace.total_time >= 0
    assert data["goal"] == "type Hello"
    assert data["final_state"] == "success"
    assert data["steps"][0]["description"] == "type greeting"
    assert data["steps"][0]["action"]["action_type"] == "click"
    assert data["metrics"]["total_steps"] == 1
