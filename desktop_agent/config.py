"""配置：从环境变量 / .env 文件读取"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# 使用的模型名称
DEFAULT_MODEL = "gpt-4o"

# 防止无限循环的最大步骤数
MAX_STEPS = 20


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


@dataclass
class AgentConfig:
    """Agent 运行参数（时间单位均为秒）"""
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: str = DEFAULT_MODEL
    vision_model: Optional[str] = None
    json_mode: bool = True
    request_timeout: float = 60.0

    max_steps: int = MAX_STEPS
    settle_delay: float = 0.5     # 动作后等待 UI 刷新
    recovery_delay: float = 2.0   # 失败后恢复等待
    launch_delay: float = 2.0     # 启动应用后等待窗口出现
    focus_delay: float = 0.2      # 点击输入框后等待获取焦点
    keystroke_interval: float = 0.03
    probe_delay: float = 0.5      # 位置探测点击后等待

    max_context_elements: int = 15
    history_steps: int = 5        # 提示词中保留的最近步骤数
    include_system_elements: bool = True
    screenshot_dir: Optional[Path] = Path("temp/vision_tasks")

    @property
    def effective_vision_model(self) -> str:
        return self.vision_model or self.model

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "AgentConfig":
        """加载 .env 后从环境变量构造配置"""
        load_dotenv(env_file)
        screenshot_dir = os.getenv("AGENT_SCREENSHOT_DIR", "temp/vision_tasks")
        return cls(
            api_key=os.getenv("OPENAI_API_KEY"),
            base_url=os.getenv("OPENAI_BASE_URL") or None,
            model=os.getenv("AGENT_MODEL", DEFAULT_MODEL),
            vision_model=os.getenv("AGENT_VISION_MODEL") or None,
            json_mode=_env_bool("AGENT_JSON_MODE", True),
            max_steps=int(os.getenv("AGENT_MAX_STEPS", str(MAX_STEPS))),
            settle_delay=_env_float("AGENT_SETTLE_DELAY", 0.5),
            recovery_delay=_env_float("AGENT_RECOVERY_DELAY", 2.0),
            launch_delay=_env_float("AGENT_LAUNCH_DELAY", 2.0),
            screenshot_dir=Path(screenshot_dir) if screenshot_dir else None,
        )
