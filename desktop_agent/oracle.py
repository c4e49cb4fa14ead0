"""外部决策 / 视觉服务的接口与 OpenAI 兼容实现"""

import base64
import io
from typing import Protocol

from openai import AsyncOpenAI
from PIL import Image

from .errors import PlanningFailure

ELEMENTS_START = "<<ELEMENTS>>"
ELEMENTS_END = "<<END_ELEMENTS>>"


class DecisionOracle(Protocol):
    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        ...


class VisionOracle(Protocol):
    async def describe(self, image: Image.Image) -> str:
        ...


def encode_image_data_url(image: Image.Image) -> str:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


class OpenAIDecisionOracle:
    """决策服务：调用 Chat Completions 接口，返回模型的原始文本"""

    def __init__(self, client: AsyncOpenAI, model: str, json_mode: bool = True):
        self.client = client
        self.model = model
        self.json_mode = json_mode

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        kwargs = {}
        if self.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self.client.chat.completions.create(
            model=self.model,
            temperature=0,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            **kwargs,
        )

        if not response.choices:
            raise PlanningFailure("决策服务返回了空的 choices")
        return response.choices[0].message.content or ""


VISION_PROMPT = (
    "你是一个 Windows 屏幕分析助手。\n"
    "请先用几句话描述当前屏幕：前台应用、窗口内容、可交互区域。\n"
    "然后列出所有可见的 UI 元素，放在下面两个标记之间，格式为 JSON 数组：\n"
    f"{ELEMENTS_START}\n"
    "[{\"type\": \"button|edit|text|icon|container|...\", \"text\": \"元素文字\", "
    "\"description\": \"简短描述\", \"bbox\": [x1, y1, x2, y2], \"confidence\": 0.9}]\n"
    f"{ELEMENTS_END}\n"
    "坐标使用截图的像素坐标。没有元素时输出空数组 []。"
)


class OpenAIVisionOracle:
    """视觉服务：把截图发给多模态模型，返回描述文本（含元素标记块）"""

    def __init__(self, client: AsyncOpenAI, model: str):
        self.client = client
        self.model = model

    async def describe(self, image: Image.Image) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            temperature=0,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": VISION_PROMPT},
                        {"type": "image_url", "image_url": {"url": encode_image_data_url(image)}},
                    ],
                },
            ],
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
