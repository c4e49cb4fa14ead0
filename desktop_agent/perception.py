"""感知模块：截屏 + 前台窗口 + 视觉服务，生成 ScreenState"""

import asyncio
import json
import logging
import time
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image

from .desktop import Desktop
from .models import ScreenState, UIElement
from .oracle import ELEMENTS_END, ELEMENTS_START, VisionOracle

logger = logging.getLogger(__name__)

DEFAULT_ELEMENT_CONFIDENCE = 0.8

# 摘要中最多列出的元素数
SUMMARY_ELEMENTS = 10


def _element_from_item(item) -> Optional[UIElement]:
    if not isinstance(item, dict):
        return None
    bbox = item.get("bbox")
    if not isinstance(bbox, (list, tuple)) or len(bbox) != 4:
        return None
    try:
        x1, y1, x2, y2 = (int(round(float(v))) for v in bbox)
        confidence = float(item.get("confidence", DEFAULT_ELEMENT_CONFIDENCE))
    except (TypeError, ValueError):
        return None
    if x2 <= x1 or y2 <= y1:
        return None
    return UIElement(
        x=x1,
        y=y1,
        width=x2 - x1,
        height=y2 - y1,
        type=str(item.get("type") or ""),
        text=str(item.get("text") or ""),
        description=str(item.get("description") or ""),
        confidence=min(max(confidence, 0.0), 1.0),
    )


def parse_vision_reply(reply: str) -> Tuple[str, List[UIElement]]:
    """
    拆分视觉服务的回复：标记块外的文字是场景描述，
    标记块内的 JSON 数组是元素列表。格式错误的条目直接丢弃。
    """
    if not reply:
        return "", []

    start = reply.find(ELEMENTS_START)
    end = reply.find(ELEMENTS_END, start + len(ELEMENTS_START)) if start != -1 else -1
    if start == -1 or end == -1:
        return reply.strip(), []

    description = (reply[:start] + reply[end + len(ELEMENTS_END):]).strip()
    block = reply[start + len(ELEMENTS_START):end].strip()
    try:
        items = json.loads(block)
    except json.JSONDecodeError as e:
        logger.warning(f"⚠ 元素列表 JSON 解析失败: {e}")
        return description, []
    if not isinstance(items, list):
        return description, []

    elements = []
    for item in items:
        element = _element_from_item(item)
        if element is None:
            logger.debug(f"跳过格式错误的元素: {item!r}")
            continue
        elements.append(element)
    return description, elements


def system_elements(screen_width: int, screen_height: int) -> List[UIElement]:
    """任务栏区域的固定系统元素：开始按钮、搜索框、任务栏本身"""
    return [
        UIElement(
            x=0, y=screen_height - 40, width=50, height=40,
            type="button", text="Start Button",
            description="Windows Start Menu Button", confidence=0.9,
        ),
        UIElement(
            x=60, y=screen_height - 35, width=300, height=30,
            type="text_field", text="Search Box",
            description="Windows Search Box", confidence=0.9,
        ),
        UIElement(
            x=0, y=screen_height - 40, width=screen_width, height=40,
            type="container", text="Taskbar",
            description="Windows Taskbar", confidence=0.95,
        ),
    ]


def generate_summary(state: ScreenState) -> str:
    """生成屏幕文本摘要（视觉服务不可用时代替场景描述）"""
    lines = [
        f"Application: {state.application_name}",
        f"Window Title: {state.window_title}",
        f"UI Elements Found: {len(state.elements)}",
    ]
    for el in state.elements[:SUMMARY_ELEMENTS]:
        text_str = f" text: \"{el.text}\"" if el.text else ""
        lines.append(f"- {el.type} at ({el.x},{el.y}) size {el.width}x{el.height}{text_str}")
    if len(state.elements) > SUMMARY_ELEMENTS:
        lines.append(f"... and {len(state.elements) - SUMMARY_ELEMENTS} more elements")
    return "\n".join(lines)


class ScreenObserver:
    """
    感知模块：每次调用都重新截屏并生成全新的 ScreenState。

    元素来自外部视觉服务；服务失败时仍返回窗口信息和本地摘要，
    不让一次识别失败中断主循环。
    """

    def __init__(
        self,
        desktop: Desktop,
        vision: VisionOracle,
        screenshot_dir: Optional[Path] = None,
        include_system_elements: bool = True,
    ):
        self.desktop = desktop
        self.vision = vision
        self.screenshot_dir = screenshot_dir
        self.include_system_elements = include_system_elements
        if screenshot_dir is not None:
            screenshot_dir.mkdir(parents=True, exist_ok=True)

    async def observe(self) -> ScreenState:
        # 截屏可能耗时较长，放到线程里执行
        image = await asyncio.to_thread(self.desktop.screenshot)
        width, height = self.desktop.screen_size()
        window_title, application_name = self.desktop.foreground_window()
        screenshot_path = self._save_screenshot(image)

        try:
            reply = await self.vision.describe(image)
            description, elements = parse_vision_reply(reply)
        except Exception as e:
            logger.warning(f"⚠ 视觉服务调用失败，仅使用窗口信息: {e}")
            description, elements = "", []

        if self.include_system_elements:
            elements.extend(system_elements(width, height))

        state = ScreenState(
            elements=tuple(elements),
            window_title=window_title,
            application_name=application_name,
            overall_description=description,
            captured_at=time.time(),
            screen_size=(width, height),
            screenshot_path=screenshot_path,
        )
        if not description:
            state = replace(state, overall_description=generate_summary(state))

        logger.info(f"📸 {application_name} - \"{window_title}\"，识别到 {len(state.elements)} 个元素")
        return state

    def _save_screenshot(self, image: Image.Image) -> Optional[str]:
        if self.screenshot_dir is None:
            return None
        name = f"screenshot_{datetime.now():%Y%m%d_%H%M%S_%f}.png"
        path = self.screenshot_dir / name
        image.save(path, format="PNG")
        return str(path)
