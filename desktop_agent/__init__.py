"""Desktop UI Agent 包

包含各个模块：
- models: 数据模型
- perception: 感知模块（截屏 + 视觉服务）
- resolver: 元素定位
- planner: 规划模块
- controller: 执行模块
- verification: 验证与恢复
- memory: 执行轨迹
- core: 主循环
"""

from .config import AgentConfig
from .controller import ActionExecutor
from .core import ExecutionLoop
from .errors import AgentError, InjectionFailure, PlanningFailure, ResolutionFailure, VerificationFailure
from .memory import Memory
from .models import Action, ActionType, ExecutionStep, ExecutionTrace, LoopState, ScreenState, UIElement
from .perception import ScreenObserver
from .planner import ActionPlanner
from .resolver import ElementResolver
from .verification import RecoveryManager, VerificationEngine

__all__ = [
    "AgentConfig",
    "ActionExecutor",
    "ExecutionLoop",
    "AgentError",
    "InjectionFailure",
    "PlanningFailure",
    "ResolutionFailure",
    "VerificationFailure",
    "Memory",
    "Action",
    "ActionType",
    "ExecutionStep",
    "ExecutionTrace",
    "LoopState",
    "ScreenState",
    "UIElement",
    "ScreenObserver",
    "ActionPlanner",
    "ElementResolver",
    "RecoveryManager",
    "VerificationEngine",
]
