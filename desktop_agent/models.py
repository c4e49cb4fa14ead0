"""数据模型定义"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

DEFAULT_WAIT_MS = 1000


@dataclass(frozen=True)
class UIElement:
    """屏幕上的一个 UI 区域（每次截屏重新生成，不跨步骤保留身份）"""
    x: int
    y: int
    width: int
    height: int
    type: str = ""
    text: str = ""
    description: str = ""
    confidence: float = 0.0

    @property
    def center(self) -> Tuple[int, int]:
        return self.x + self.width // 2, self.y + self.height // 2

    @property
    def area(self) -> int:
        return self.width * self.height

    def to_dict(self) -> Dict:
        return {
            "type": self.type,
            "text": self.text,
            "description": self.description,
            "bbox": [self.x, self.y, self.x + self.width, self.y + self.height],
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class ScreenState:
    """某一时刻的屏幕快照"""
    elements: Tuple[UIElement, ...] = ()
    window_title: str = ""
    application_name: str = ""
    overall_description: str = ""
    captured_at: float = field(default_factory=time.time)
    screen_size: Tuple[int, int] = (1920, 1080)
    screenshot_path: Optional[str] = None

    def changed_from(self, other: "ScreenState") -> bool:
        """元素数量、窗口标题或应用名任一不同即视为屏幕发生变化"""
        return (
            len(self.elements) != len(other.elements)
            or self.window_title != other.window_title
            or self.application_name != other.application_name
        )

    def summary(self) -> Dict:
        return {
            "application": self.application_name,
            "window_title": self.window_title,
            "element_count": len(self.elements),
            "captured_at": self.captured_at,
            "screenshot": self.screenshot_path,
        }


class ActionType(str, Enum):
    CLICK = "click"
    TYPE = "type"
    SCROLL = "scroll"
    WAIT = "wait"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Action:
    """规划器输出的规范化动作"""
    action_type: ActionType
    target_description: str = ""
    value: str = ""  # 输入文本 / 滚动方向 / 等待毫秒数
    explanation: str = ""
    confidence: float = 0.5

    @property
    def wait_ms(self) -> int:
        """Wait 的毫秒数；空值、非整数或负数一律按 1000ms 处理"""
        try:
            ms = int(str(self.value).strip())
        except ValueError:
            return DEFAULT_WAIT_MS
        return ms if ms >= 0 else DEFAULT_WAIT_MS

    def to_dict(self) -> Dict:
        return {
            "action_type": self.action_type.value,
            "target_description": self.target_description,
            "value": self.value,
            "explanation": self.explanation,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class ExecutionStep:
    """循环中一次迭代的记录"""
    action: Action
    before: ScreenState
    after: ScreenState
    success: bool
    error_message: Optional[str] = None
    elapsed: float = 0.0

    @property
    def description(self) -> str:
        return self.action.explanation or self.action.action_type.value

    def to_dict(self) -> Dict:
        return {
            "description": self.description,
            "action": self.action.to_dict(),
            "before": self.before.summary(),
            "after": self.after.summary(),
            "success": self.success,
            "error_message": self.error_message,
            "elapsed": self.elapsed,
        }


class LoopState(Enum):
    PLANNING = "planning"
    EXECUTING = "executing"
    VERIFYING = "verifying"
    STEP_FAILED = "step_failed"
    RECOVERING = "recovering"
    SUCCESS = "success"
    ABORTED = "aborted"


@dataclass
class ExecutionTrace:
    """单个目标的执行轨迹，只增不改"""
    goal: str
    steps: List[ExecutionStep] = field(default_factory=list)
    overall_success: bool = False
    final_result: str = ""
    total_time: float = 0.0
    final_state: LoopState = LoopState.PLANNING

    def to_dict(self) -> Dict:
        return {
            "goal": self.goal,
            "steps": [s.to_dict() for s in self.steps],
            "overall_success": self.overall_success,
            "final_result": self.final_result,
            "total_time": self.total_time,
            "final_state": self.final_state.value,
        }
