"""错误类型"""


class AgentError(Exception):
    """所有 Agent 内部错误的基类"""


class PlanningFailure(AgentError):
    """决策服务不可达或返回内容无法解析"""


class ResolutionFailure(AgentError):
    """找不到与目标描述匹配的 UI 元素"""

    def __init__(self, target: str, detail: str = ""):
        self.target = target
        message = f"找不到匹配的元素: '{target}'"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class InjectionFailure(AgentError):
    """输入注入或外部命令执行失败"""


class VerificationFailure(AgentError):
    """动作执行后未观察到屏幕变化"""

    def __init__(self, action_desc: str):
        super().__init__(f"执行后未检测到屏幕变化: {action_desc}")
