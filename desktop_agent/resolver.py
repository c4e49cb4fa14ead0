"""元素定位：把自然语言的目标描述映射到屏幕上的一个 UI 元素"""

import logging
import math
import re
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .models import ScreenState, UIElement

logger = logging.getLogger(__name__)

# 排除规则：容器、工具栏、状态栏、图标以及系统外壳元素
EXCLUDED_TYPE_WORDS = ("container", "taskbar", "toolbar", "menubar", "statusbar", "status bar", "image", "icon")
EXCLUDED_TEXTS = ("taskbar", "start", "start button")

STRONG_INPUT_TYPES = ("edit", "textbox", "textarea", "text field", "input field")
WEAK_INPUT_TYPES = ("text", "input")
INPUT_LIKE_TYPES = ("text", "input", "edit", "field", "box")
SEARCH_WORDS = ("search", "find")

# 评分权重
STRONG_INPUT_BONUS = 1.5
WEAK_INPUT_BONUS = 0.5
BUTTON_LABEL_PENALTY = 0.5
SEARCH_PENALTY = 2.0
AREA_BANDS = ((50000, 0.8), (10000, 0.4), (1000, 0.2))
CENTER_BONUS = 0.3
EMPTY_TEXT_BONUS = 0.5
CONFIDENCE_WEIGHT = 0.3

SCORE_SCALE = 3.0
MIN_INPUT_CONFIDENCE = 0.3

# 任务栏区域（距屏幕底部的像素 / 距左边的像素）
TASKBAR_BAND = 100
TASKBAR_LEFT = 200


def is_excluded(element: UIElement) -> bool:
    type_lower = element.type.lower()
    text_lower = element.text.strip().lower()
    if any(word in type_lower for word in EXCLUDED_TYPE_WORDS):
        return True
    return text_lower in EXCLUDED_TEXTS


def is_search_like(element: UIElement) -> bool:
    text_lower = element.text.lower()
    desc_lower = element.description.lower()
    return any(word in text_lower or word in desc_lower for word in SEARCH_WORDS)


def is_input_like(element: UIElement) -> bool:
    type_lower = element.type.lower()
    return any(word in type_lower for word in INPUT_LIKE_TYPES)


def _keywords(target: str) -> List[str]:
    return [w for w in re.split(r"[\s_\-]+", target.lower()) if len(w) > 1]


@dataclass(frozen=True)
class Probe:
    """
    位置兜底的一次尝试：点击某个元素 / 坐标，或按下全局快捷键。
    verify 为 True 时，执行者必须重新观察屏幕并确认发生变化才算成功。
    """
    x: int = 0
    y: int = 0
    element: Optional[UIElement] = None
    hotkey: Tuple[str, ...] = ()
    verify: bool = True

    @property
    def point(self) -> Tuple[int, int]:
        if self.element is not None:
            return self.element.center
        return self.x, self.y


class ElementResolver:
    """
    分层定位，命中即停：
      1. 精确匹配元素 text
      2. 模糊匹配（忽略大小写，text / description / type 双向包含）
      3. 打分排序（输入框评分；点击目标按关键词重合度）
      4. 位置兜底（fallback_probes，由执行者逐个尝试并验证）
    """

    def resolve(self, target: str, state: ScreenState, want_input: bool = False) -> Optional[UIElement]:
        target = (target or "").strip()
        if target:
            element = self.find_exact(target, state)
            if element is not None:
                logger.info(f"✓ 精确匹配: '{element.text}' [{element.type}]")
                return element

            element = self.find_fuzzy(target, state, want_input=want_input)
            if element is not None:
                logger.info(f"✓ 模糊匹配: '{element.text}' [{element.type}]")
                return element

        if want_input:
            element = self.find_best_text_input(state)
        else:
            element = self.find_by_keywords(target, state)
        if element is not None:
            logger.info(f"✓ 评分匹配: '{element.text}' [{element.type}] conf={element.confidence:.2f}")
        return element

    def find_exact(self, target: str, state: ScreenState) -> Optional[UIElement]:
        """文字完全相等优先，其次是文字包含目标"""
        if not target:
            return None
        for element in state.elements:
            if element.text == target:
                return element
        for element in state.elements:
            if target in element.text:
                return element
        return None

    def find_fuzzy(self, target: str, state: ScreenState, want_input: bool = False) -> Optional[UIElement]:
        target_lower = target.lower()
        if not target_lower:
            return None

        for element in state.elements:
            if want_input and (not is_input_like(element) or is_search_like(element) or is_excluded(element)):
                continue

            text_lower = element.text.lower()
            desc_lower = element.description.lower()
            type_lower = element.type.lower()

            if (
                (text_lower and target_lower in text_lower)
                or (desc_lower and target_lower in desc_lower)
                or (type_lower and target_lower in type_lower)
                or (text_lower and text_lower in target_lower)
                or (desc_lower and desc_lower in target_lower)
                or (type_lower and type_lower in target_lower)
            ):
                return element
        return None

    def score_text_input(self, element: UIElement, screen_size: Tuple[int, int]) -> float:
        """输入区域评分；调用方需先执行排除规则"""
        type_lower = element.type.lower()
        score = 0.0

        if any(word in type_lower for word in STRONG_INPUT_TYPES):
            score += STRONG_INPUT_BONUS
        elif any(word in type_lower for word in WEAK_INPUT_TYPES):
            score += WEAK_INPUT_BONUS

        if "button" in type_lower or "label" in type_lower:
            score -= BUTTON_LABEL_PENALTY

        search_like = is_search_like(element)
        if search_like:
            score -= SEARCH_PENALTY

        if score > 0:
            for min_area, bonus in AREA_BANDS:
                if element.area > min_area:
                    score += bonus
                    break

        if score > 0 and not search_like:
            width, height = screen_size
            cx, cy = element.center
            dx = abs(cx - width / 2.0) / (width / 2.0)
            dy = abs(cy - height / 2.0) / (height / 2.0)
            score += CENTER_BONUS * (1.0 - min(math.hypot(dx, dy), 1.0))

        if score > 0 and not element.text.strip():
            score += EMPTY_TEXT_BONUS

        score += element.confidence * CONFIDENCE_WEIGHT
        return score

    def find_best_text_input(self, state: ScreenState) -> Optional[UIElement]:
        best: Optional[UIElement] = None
        best_score = -math.inf

        for element in state.elements:
            if is_excluded(element):
                continue
            score = self.score_text_input(element, state.screen_size)
            logger.debug(f"  '{element.text}' [{element.type}] area={element.area} score={score:.2f}")
            if score > best_score:
                best, best_score = element, score

        if best is None:
            logger.info("⚠ 没有可用的输入区域候选")
            return None

        confidence = min(max(best_score / SCORE_SCALE, 0.0), 1.0)
        if confidence <= MIN_INPUT_CONFIDENCE:
            logger.info(f"⚠ 最佳输入区域置信度过低: '{best.text}' conf={confidence:.2f}")
            return None
        return replace(best, confidence=confidence)

    def find_by_keywords(self, target: str, state: ScreenState) -> Optional[UIElement]:
        keywords = _keywords(target)
        if not keywords:
            return None

        best: Optional[UIElement] = None
        best_score = 0
        for element in state.elements:
            if is_excluded(element):
                continue
            haystack = f"{element.text} {element.description} {element.type}".lower()
            score = sum(1 for word in keywords if word in haystack)
            if score > best_score:
                best, best_score = element, score
        return best

    def fallback_probes(self, target: str, state: ScreenState, typing: bool = False) -> List[Probe]:
        target_lower = (target or "").lower()
        width, height = state.screen_size
        probes: List[Probe] = []

        if "search" in target_lower:
            # 系统全局搜索：按 Win 键，不做屏幕验证
            probes.append(Probe(hotkey=("win",), verify=False))
            return probes

        if typing:
            if "address" in target_lower or "url" in target_lower:
                probes.append(Probe(width // 2, 50))
                probes.append(Probe(width // 2, 100))
            else:
                probes.append(Probe(width // 2, height // 2))
                probes.append(Probe(width // 2, height // 3))
                probes.append(Probe(width // 2, 200))
            return probes

        if "start" in target_lower or "menu" in target_lower:
            for element in state.elements:
                if element.y > height - TASKBAR_BAND and element.x < TASKBAR_LEFT:
                    probes.append(Probe(element=element))
            probes.append(Probe(20, height - 20))
            probes.append(Probe(50, height - 50))
            probes.append(Probe(10, height - 40))
        return probes
