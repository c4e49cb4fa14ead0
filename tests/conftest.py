import json

import pytest
from PIL import Image

from desktop_agent.controller import ActionExecutor
from desktop_agent.core import ExecutionLoop
from desktop_agent.models import ScreenState, UIElement
from desktop_agent.oracle import ELEMENTS_END, ELEMENTS_START
from desktop_agent.perception import ScreenObserver
from desktop_agent.planner import ActionPlanner
from desktop_agent.verification import RecoveryManager


def vision_reply(description, items):
    return f"{description}\n{ELEMENTS_START}\n{json.dumps(items)}\n{ELEMENTS_END}"


DESKTOP_REPLY = vision_reply(
    "Windows desktop with a few icons.",
    [{"type": "icon", "text": "Recycle Bin", "bbox": [10, 10, 80, 80], "confidence": 0.9}],
)

NOTEPAD_REPLY = vision_reply(
    "Notepad is open with an empty document.",
    [
        {"type": "menubar", "text": "File Edit View", "bbox": [0, 30, 1920, 60], "confidence": 0.9},
        {"type": "text_field", "text": "Search", "description": "search field",
         "bbox": [1500, 5, 1900, 28], "confidence": 0.95},
        {"type": "edit", "text": "", "description": "main document text area",
         "bbox": [0, 60, 1920, 1000], "confidence": 0.9},
        {"type": "button", "text": "Close", "bbox": [1880, 0, 1920, 30], "confidence": 0.9},
    ],
)


class FakeDesktop:
    """内存中的桌面：记录所有注入的输入"""

    def __init__(self, size=(1920, 1080), title="Program Manager", app="explorer.exe"):
        self.size = size
        self.title = title
        self.app = app
        self.launch_exit_code = 0
        self.clicks = []
        self.keys = []
        self.hotkeys = []
        self.scrolls = []
        self.launched = []
        self.on_click = None

    def screen_size(self):
        return self.size

    def screenshot(self):
        return Image.new("RGB", (16, 9))

    def foreground_window(self):
        return self.title, self.app

    def click(self, x, y):
        self.clicks.append((x, y))
        if self.on_click is not None:
            self.on_click(self, x, y)

    def press_key(self, key, shift=False):
        self.keys.append((key, shift))
        if self.app == "notepad.exe" and not self.title.startswith("*"):
            self.title = "*" + self.title

    def hotkey(self, *keys):
        self.hotkeys.append(keys)

    def scroll(self, clicks):
        self.scrolls.append(clicks)

    def launch(self, executable):
        self.launched.append(executable)
        if self.launch_exit_code == 0:
            self.title = "Untitled - Notepad"
            self.app = executable
        return self.launch_exit_code

    @property
    def typed_text(self):
        chars = []
        for key, shift in self.keys:
            if key == "space":
                chars.append(" ")
            elif key == "enter":
                chars.append("\n")
            else:
                chars.append(key.upper() if shift else key)
        return "".join(chars)


class FakeVision:
    """按前台应用返回预设回复的视觉服务"""

    def __init__(self, desktop, replies=None, error=None):
        self.desktop = desktop
        self.replies = replies if replies is not None else {
            "explorer.exe": DESKTOP_REPLY,
            "notepad.exe": NOTEPAD_REPLY,
        }
        self.error = error
        self.calls = 0

    async def describe(self, image):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.replies.get(self.desktop.app, "")


class FakeDecisionOracle:
    """依次返回预设回复；用完后重复最后一个。回复可以是异常对象。"""

    def __init__(self, replies):
        self.replies = list(replies)
        self.prompts = []

    async def complete(self, system_prompt, user_prompt):
        self.prompts.append(user_prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


@pytest.fixture
def desktop():
    return FakeDesktop()


@pytest.fixture
def observer(desktop):
    return ScreenObserver(desktop, FakeVision(desktop), screenshot_dir=None)


@pytest.fixture
def executor(desktop, observer):
    return ActionExecutor(
        desktop,
        observer,
        launch_delay=0,
        focus_delay=0,
        keystroke_interval=0,
        probe_delay=0,
    )


@pytest.fixture
def make_loop(desktop, observer, executor):
    def _make(replies, max_steps=20, recovery=None, executor_override=None):
        return ExecutionLoop(
            observer,
            ActionPlanner(FakeDecisionOracle(replies)),
            executor_override or executor,
            recovery=recovery or RecoveryManager(delay=0),
            max_steps=max_steps,
            settle_delay=0,
        )
    return _make


def make_state(elements=(), title="Window", app="app.exe", size=(1920, 1080)):
    return ScreenState(
        elements=tuple(elements),
        window_title=title,
        application_name=app,
        overall_description="",
        screen_size=size,
    )


def el(x, y, w, h, type="", text="", description="", confidence=0.8):
    return UIElement(x, y, w, h, type=type, text=text, description=description, confidence=confidence)
