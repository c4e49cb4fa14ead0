"""规划模块：调用外部决策服务决定下一步动作"""

import json
import logging
from typing import Optional, Sequence

from .memory import format_history
from .models import Action, ActionType, ExecutionStep, ScreenState
from .oracle import DecisionOracle

logger = logging.getLogger(__name__)

FALLBACK_WAIT_MS = "2000"
FALLBACK_CONFIDENCE = 0.1
DEFAULT_CONFIDENCE = 0.5

SYSTEM_PROMPT = (
    "你是一个 Windows 桌面 UI 自动化智能体。\n"
    "你将根据用户目标、当前屏幕状态和可见 UI 元素列表决定下一步操作，每次只输出一个动作。\n"
    "【极其重要的规则】：\n"
    "1. 如果观察当前屏幕发现目标已经达成，立即设置 action_type='complete'。\n"
    "2. 不要重复已经失败的操作，参考历史步骤。\n"
    "3. 需要启动应用时，使用 action_type='click'、target_description='powershell_launch'，"
    "value 为可执行文件名（例如 notepad.exe）。\n"
    "4. 输入文字时优先选择应用的主编辑区，避免任务栏和搜索框。\n"
    "你必须且只能输出 JSON 字符串，格式如下：\n"
    "{\n"
    "  \"action_type\": \"click|type|scroll|wait|complete\",\n"
    "  \"target_description\": \"要操作的元素\",\n"
    "  \"value\": \"要输入的文字 / 滚动方向 up|down / 等待毫秒数\",\n"
    "  \"explanation\": \"简短说明为什么这样做\",\n"
    "  \"confidence\": 0.8\n"
    "}"
)


def extract_json_object(text: str) -> Optional[dict]:
    """
    从模型回复中取出 JSON 对象。
    先整体解析；失败则依次寻找最外层配对的 {...} 片段（忽略字符串内的括号），
    返回第一个能解析成 dict 的片段。
    """
    if not text:
        return None
    try:
        data = json.loads(text)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass

    start = text.find("{")
    while start != -1:
        end = _matching_brace(text, start)
        if end == -1:
            # 未闭合的 { 只是说明文字，从下一个 { 继续找
            start = text.find("{", start + 1)
            continue
        try:
            data = json.loads(text[start:end + 1])
            if isinstance(data, dict):
                return data
        except json.JSONDecodeError:
            pass
        start = text.find("{", end + 1)
    return None


def _matching_brace(text: str, start: int) -> int:
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == "\"":
                in_string = False
        elif ch == "\"":
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def action_from_dict(data: dict) -> Action:
    """把决策服务返回的 dict 规范化为 Action；未知动作类型按 wait 处理"""
    raw_type = _as_text(data.get("action_type")).strip().lower()
    try:
        action_type = ActionType(raw_type)
    except ValueError:
        logger.warning(f"⚠ 未知 action_type '{raw_type}'，按 wait 处理")
        action_type = ActionType.WAIT

    try:
        confidence = float(data.get("confidence", DEFAULT_CONFIDENCE))
    except (TypeError, ValueError):
        confidence = DEFAULT_CONFIDENCE

    return Action(
        action_type=action_type,
        target_description=_as_text(data.get("target_description")),
        value=_as_text(data.get("value")),
        explanation=_as_text(data.get("explanation")) or "AI-generated action",
        confidence=min(max(confidence, 0.0), 1.0),
    )


def fallback_action(reason: str) -> Action:
    return Action(
        action_type=ActionType.WAIT,
        value=FALLBACK_WAIT_MS,
        explanation=reason,
        confidence=FALLBACK_CONFIDENCE,
    )


class ActionPlanner:
    """规划模块：构造上下文 → 请求决策服务 → 解析为规范化 Action"""

    def __init__(self, oracle: DecisionOracle, max_context_elements: int = 15, history_steps: int = 5):
        self.oracle = oracle
        self.max_context_elements = max_context_elements
        self.history_steps = history_steps

    def build_context(self, goal: str, state: ScreenState, prior_steps: Sequence[ExecutionStep]) -> str:
        lines = [
            f"TASK: {goal}",
            "",
            "CURRENT SCREEN STATE:",
            f"Application: {state.application_name}",
            f"Window Title: {state.window_title}",
            f"Description: {state.overall_description}",
            "",
            "AVAILABLE UI ELEMENTS:",
        ]
        for i, el in enumerate(state.elements[:self.max_context_elements], start=1):
            text_str = f" (text: \"{el.text}\")" if el.text else ""
            lines.append(f"{i}. {el.description}{text_str} [{el.type}]")

        if prior_steps:
            lines.append("")
            lines.append("PREVIOUS STEPS:")
            lines.append(format_history(prior_steps, last_n=self.history_steps))

        lines.append("")
        lines.append("请给出下一步操作，重点关注当前应用的主内容区域。")
        return "\n".join(lines)

    async def plan_next(self, goal: str, state: ScreenState, prior_steps: Sequence[ExecutionStep]) -> Action:
        """
        返回下一步 Action，从不抛出异常。
        决策服务调用失败或回复无法使用时，降级为低置信度的 2 秒等待。
        """
        context = self.build_context(goal, state, prior_steps)
        try:
            reply = await self.oracle.complete(SYSTEM_PROMPT, context)
        except Exception as e:
            logger.warning(f"❌ 决策服务调用失败: {e}")
            return fallback_action(f"规划失败: {e}")

        data = extract_json_object(reply)
        if data is None or "action_type" not in data:
            logger.warning(f"❌ 决策服务回复中没有可用的动作，原始输出: {reply!r}")
            return fallback_action("决策服务回复缺少 action_type，等待")

        action = action_from_dict(data)
        logger.info(f"思考: {action.explanation}")
        logger.info(f"动作: {action.action_type.value} target='{action.target_description}' value='{action.value}'")
        return action
