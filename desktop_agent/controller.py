"""执行模块：把 Action 转换为鼠标 / 键盘 / 进程操作"""

import asyncio
import logging
from typing import Optional, Tuple

from .desktop import LAUNCH_TARGET, SCROLL_DIRECTIONS, Desktop
from .errors import AgentError, InjectionFailure, ResolutionFailure
from .keymap import char_to_keystroke
from .models import Action, ActionType, ScreenState, UIElement
from .perception import ScreenObserver
from .resolver import ElementResolver, Probe

logger = logging.getLogger(__name__)


class ActionExecutor:
    """执行模块：执行规划器决定的动作，返回 (是否成功, 错误信息)"""

    def __init__(
        self,
        desktop: Desktop,
        observer: ScreenObserver,
        resolver: Optional[ElementResolver] = None,
        launch_delay: float = 2.0,
        focus_delay: float = 0.2,
        keystroke_interval: float = 0.03,
        probe_delay: float = 0.5,
    ):
        self.desktop = desktop
        self.observer = observer
        self.resolver = resolver or ElementResolver()
        self.launch_delay = launch_delay
        self.focus_delay = focus_delay
        self.keystroke_interval = keystroke_interval
        self.probe_delay = probe_delay

    async def execute(self, action: Action, before: ScreenState) -> Tuple[bool, Optional[str]]:
        kind = action.action_type
        try:
            if kind == ActionType.CLICK:
                if action.target_description == LAUNCH_TARGET:
                    await self._launch(action.value)
                else:
                    await self._click(action.target_description, before)
            elif kind == ActionType.TYPE:
                await self._type(action.target_description, action.value, before)
            elif kind == ActionType.SCROLL:
                self._scroll(action.value)
            elif kind == ActionType.WAIT:
                await self._wait(action.wait_ms)
            elif kind == ActionType.COMPLETE:
                logger.info("✓ 任务完成")
        except AgentError as e:
            logger.warning(f"❌ {e}")
            return False, str(e)
        return True, None

    async def _launch(self, executable: str):
        """通过 PowerShell 启动应用"""
        executable = (executable or "").strip()
        if not executable:
            raise InjectionFailure("启动应用时未指定可执行文件")

        logger.info(f"🚀 启动 {executable}")
        exit_code = await asyncio.to_thread(self.desktop.launch, executable)
        if exit_code != 0:
            raise InjectionFailure(f"通过 PowerShell 启动 {executable} 失败 (exit={exit_code})")
        await asyncio.sleep(self.launch_delay)
        logger.info(f"✓ 已启动 {executable}")

    async def _click(self, target: str, before: ScreenState):
        """点击元素"""
        element = self.resolver.resolve(target, before)
        if element is not None:
            await self._click_element(element)
            return

        for probe in self.resolver.fallback_probes(target, before):
            if await self._try_probe(probe, before):
                return

        self._log_available(before)
        raise ResolutionFailure(target)

    async def _type(self, target: str, text: str, before: ScreenState):
        """定位输入区域，点击获取焦点后逐字输入"""
        element = self.resolver.resolve(target, before, want_input=True)
        if element is not None:
            await self._click_element(element)
            await asyncio.sleep(self.focus_delay)
            await self._type_text(text)
            logger.info(f"✓ 输入 [{element.type}] '{element.text}' = '{text}'")
            return

        for probe in self.resolver.fallback_probes(target, before, typing=True):
            if await self._try_probe(probe, before, text=text):
                return

        self._log_available(before)
        raise ResolutionFailure(target, "没有合适的输入区域")

    def _scroll(self, direction: str):
        """滚动"""
        key = (direction or "").strip().lower()
        if key not in SCROLL_DIRECTIONS:
            raise InjectionFailure(f"不支持的滚动方向: '{direction}'")
        self.desktop.scroll(SCROLL_DIRECTIONS[key])
        logger.info(f"✓ 滚动 {key}")

    async def _wait(self, wait_ms: int):
        """等待"""
        await asyncio.sleep(wait_ms / 1000)
        logger.info(f"✓ 等待 {wait_ms}ms")

    async def _click_element(self, element: UIElement):
        x, y = element.center
        await asyncio.to_thread(self.desktop.click, x, y)
        logger.info(f"✓ 点击 '{element.text}' [{element.type}] at ({x},{y})")

    async def _type_text(self, text: str):
        for ch in text:
            keystroke = char_to_keystroke(ch)
            if keystroke is None:
                logger.warning(f"⚠ 无法映射字符 {ch!r}，已跳过")
                continue
            self.desktop.press_key(keystroke.key, shift=keystroke.shift)
            if self.keystroke_interval:
                await asyncio.sleep(self.keystroke_interval)

    async def _try_probe(self, probe: Probe, before: ScreenState, text: Optional[str] = None) -> bool:
        if probe.hotkey:
            logger.info(f"🔍 尝试快捷键 {'+'.join(probe.hotkey)}")
            self.desktop.hotkey(*probe.hotkey)
        else:
            x, y = probe.point
            logger.info(f"🎯 尝试位置 ({x},{y})")
            await asyncio.to_thread(self.desktop.click, x, y)
        await asyncio.sleep(self.probe_delay)

        if text:
            await self._type_text(text)

        if not probe.verify:
            return True

        after = await self.observer.observe()
        if after.changed_from(before):
            logger.info("✓ 位置探测后屏幕发生变化")
            return True
        return False

    def _log_available(self, state: ScreenState):
        logger.info("📝 屏幕上的元素:")
        for el in state.elements[:5]:
            logger.info(f"  - {el.type}: \"{el.text}\" at ({el.x},{el.y})")
