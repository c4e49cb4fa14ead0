import json

import pytest

import desktop_ui_agent
from desktop_agent.core import ExecutionLoop


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")


def test_main_requires_api_key(monkeypatch, tmp_path):
    monkeypatch.setenv("OPENAI_API_KEY", "")
    with pytest.raises(ValueError):
        desktop_ui_agent.main(["open notepad", "--env-file", str(tmp_path / "none.env")])


def test_main_runs_goal_and_writes_trace(api_key, monkeypatch, make_loop, tmp_path):
    loop = make_loop([{"action_type": "complete"}])
    seen = {}

    def fake_from_config(config):
        seen["max_steps"] = config.max_steps
        return loop

    monkeypatch.setattr(ExecutionLoop, "from_config", fake_from_config)
    trace_out = tmp_path / "trace.json"

    code = desktop_ui_agent.main([
        "nothing to do",
        "--max-steps", "3",
        "--env-file", str(tmp_path / "none.env"),
        "--trace-out", str(trace_out),
    ])

    assert code == 0
    assert seen["max_steps"] == 3
    data = json.loads(trace_out.read_text(encoding="utf-8"))
    assert data["overall_success"] is True
    assert data["metrics"]["total_steps"] == 0


def test_main_exit_code_on_failure(api_key, monkeypatch, make_loop, tmp_path):
    loop = make_loop([{"action_type": "wait", "value": "0"}], max_steps=1)
    monkeypatch.setattr(ExecutionLoop, "from_config", lambda config: loop)

    assert desktop_ui_agent.main(["wait", "--env-file", str(tmp_path / "none.env")]) == 1
