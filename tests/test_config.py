from pathlib import Path

import pytest

from desktop_agent.config import AgentConfig

ENV_VARS = (
    "OPENAI_API_KEY", "OPENAI_BASE_URL", "AGENT_MODEL", "AGENT_VISION_MODEL",
    "AGENT_MAX_STEPS", "AGENT_SETTLE_DELAY", "AGENT_RECOVERY_DELAY",
    "AGENT_LAUNCH_DELAY", "AGENT_SCREENSHOT_DIR", "AGENT_JSON_MODE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # 先 setenv 再 delenv，结束时 load_dotenv 写入的值也会被清掉
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults(tmp_path):
    config = AgentConfig.from_env(tmp_path / "missing.env")

    assert config.api_key is None
    assert config.model == "gpt-4o"
    assert config.effective_vision_model == "gpt-4o"
    assert config.max_steps == 20
    assert config.json_mode is True
    assert config.screenshot_dir == Path("temp/vision_tasks")


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("AGENT_VISION_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("AGENT_MAX_STEPS", "5")
    monkeypatch.setenv("AGENT_SETTLE_DELAY", "0.1")
    monkeypatch.setenv("AGENT_JSON_MODE", "off")
    monkeypatch.setenv("AGENT_SCREENSHOT_DIR", "")

    config = AgentConfig.from_env(tmp_path / "missing.env")

    assert config.api_key == "sk-test"
    assert config.effective_vision_model == "gpt-4o-mini"
    assert config.max_steps == 5
    assert config.settle_delay == 0.1
    assert config.json_mode is False
    assert config.screenshot_dir is None


def test_env_file_is_loaded(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("OPENAI_API_KEY=from-file\nAGENT_MODEL=gpt-4.1\n", encoding="utf-8")

    config = AgentConfig.from_env(env_file)

    assert config.api_key == "from-file"
    assert config.model == "gpt-4.1"
