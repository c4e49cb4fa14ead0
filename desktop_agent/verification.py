"""验证与恢复"""

import asyncio
import logging

from .errors import VerificationFailure
from .models import Action, ExecutionStep, ScreenState

logger = logging.getLogger(__name__)


class VerificationEngine:
    """
    只判断屏幕是否“有变化”（元素数量、窗口标题、应用名），
    无法确认发生的正是预期的那个变化。
    """

    def verify(self, action: Action, before: ScreenState, after: ScreenState) -> bool:
        return after.changed_from(before)

    def check(self, action: Action, before: ScreenState, after: ScreenState) -> None:
        if not self.verify(action, before, after):
            raise VerificationFailure(f"{action.action_type.value} '{action.target_description}'")


class RecoveryManager:
    """默认策略：等待一段时间让界面稳定，然后总是报告成功"""

    def __init__(self, delay: float = 2.0):
        self.delay = delay

    async def recover(self, failed_step: ExecutionStep) -> bool:
        logger.info(f"🔄 尝试从失败步骤恢复，等待 {self.delay}s ...")
        await asyncio.sleep(self.delay)
        return True
