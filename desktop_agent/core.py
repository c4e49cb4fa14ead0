"""桌面 UI 自动化智能体核心循环"""

import asyncio
import logging
import time
from typing import Optional

from .config import AgentConfig
from .controller import ActionExecutor
from .errors import VerificationFailure
from .memory import Memory
from .models import ActionType, ExecutionStep, ExecutionTrace, LoopState
from .perception import ScreenObserver
from .planner import ActionPlanner
from .verification import RecoveryManager, VerificationEngine

logger = logging.getLogger(__name__)


class ExecutionLoop:
    """
    感知 → 决策 → 执行 → 验证 → 恢复 的主循环。

    只有规划器返回 complete 时才算成功；步数预算是总工作量的唯一上限。
    """

    def __init__(
        self,
        observer: ScreenObserver,
        planner: ActionPlanner,
        executor: ActionExecutor,
        verifier: Optional[VerificationEngine] = None,
        recovery: Optional[RecoveryManager] = None,
        max_steps: int = 20,
        settle_delay: float = 0.5,
    ):
        self.observer = observer
        self.planner = planner
        self.executor = executor
        self.verifier = verifier or VerificationEngine()
        self.recovery = recovery or RecoveryManager()
        self.max_steps = max_steps
        self.settle_delay = settle_delay
        self.state = LoopState.PLANNING
        self.memory: Optional[Memory] = None

    @classmethod
    def from_config(cls, config: AgentConfig) -> "ExecutionLoop":
        """用 Windows 桌面和 OpenAI 兼容服务组装默认循环"""
        from openai import AsyncOpenAI

        from .oracle import OpenAIDecisionOracle, OpenAIVisionOracle
        from .windows import WindowsDesktop

        client = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url, timeout=config.request_timeout)
        desktop = WindowsDesktop()
        observer = ScreenObserver(
            desktop,
            OpenAIVisionOracle(client, config.effective_vision_model),
            screenshot_dir=config.screenshot_dir,
            include_system_elements=config.include_system_elements,
        )
        planner = ActionPlanner(
            OpenAIDecisionOracle(client, config.model, json_mode=config.json_mode),
            max_context_elements=config.max_context_elements,
            history_steps=config.history_steps,
        )
        executor = ActionExecutor(
            desktop,
            observer,
            launch_delay=config.launch_delay,
            focus_delay=config.focus_delay,
            keystroke_interval=config.keystroke_interval,
            probe_delay=config.probe_delay,
        )
        return cls(
            observer,
            planner,
            executor,
            recovery=RecoveryManager(config.recovery_delay),
            max_steps=config.max_steps,
            settle_delay=config.settle_delay,
        )

    def _transition(self, state: LoopState):
        logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state

    async def run(self, goal: str) -> ExecutionTrace:
        """
        执行任务的主循环。
        """
        if not goal or not goal.strip():
            raise ValueError("goal 不能为空")

        self.state = LoopState.PLANNING
        self.memory = memory = Memory(goal)
        logger.info(f"🎯 开始任务: {goal}")

        try:
            return await self._run(goal, memory)
        except Exception as e:
            logger.exception(f"💥 任务执行异常: {e}")
            self._transition(LoopState.ABORTED)
            return memory.finish(False, LoopState.ABORTED, f"Exception: {e}")

    async def _run(self, goal: str, memory: Memory) -> ExecutionTrace:
        for step_num in range(1, self.max_steps + 1):
            logger.info(f"{'=' * 60}")
            logger.info(f"Step {step_num}/{self.max_steps}")

            # 1. 感知 + 2. 规划
            self._transition(LoopState.PLANNING)
            before = await self.observer.observe()
            action = await self.planner.plan_next(goal, before, memory.steps)

            # 3. 判断是否完成
            if action.action_type == ActionType.COMPLETE:
                self._transition(LoopState.SUCCESS)
                logger.info("✓✓✓ 任务完成 ✓✓✓")
                return memory.finish(
                    True, LoopState.SUCCESS,
                    f"任务在 {len(memory.steps)} 步内成功完成",
                )

            # 4. 执行
            self._transition(LoopState.EXECUTING)
            started = time.monotonic()
            try:
                success, error = await self.executor.execute(action, before)
            except Exception as e:
                logger.exception(f"❌ 执行动作时发生异常: {e}")
                success, error = False, f"执行异常: {e}"
            elapsed = time.monotonic() - started

            await asyncio.sleep(self.settle_delay)
            after = await self.observer.observe()

            # 5. 验证
            self._transition(LoopState.VERIFYING)
            if success:
                try:
                    self.verifier.check(action, before, after)
                except VerificationFailure as e:
                    success, error = False, str(e)

            step = ExecutionStep(
                action=action,
                before=before,
                after=after,
                success=success,
                error_message=error,
                elapsed=elapsed,
            )
            memory.record(step)

            if success:
                logger.info(f"✓ Step {step_num} 成功: {step.description}")
                continue

            # 6. 失败后恢复一次
            self._transition(LoopState.STEP_FAILED)
            logger.info(f"❌ Step {step_num} 失败: {error}")
            self._transition(LoopState.RECOVERING)
            if not await self.recovery.recover(step):
                self._transition(LoopState.ABORTED)
                logger.info("💥 恢复失败，终止任务")
                return memory.finish(
                    False, LoopState.ABORTED,
                    f"任务在 {len(memory.steps)} 步后终止: {error}",
                )

        logger.info(f"⚠ 已达到最大步数 {self.max_steps}，任务可能未完成")
        self._transition(LoopState.ABORTED)
        return memory.finish(
            False, LoopState.ABORTED,
            f"任务在 {len(memory.steps)} 步后失败: 已用尽步数预算 ({self.max_steps})",
        )
