"""Windows 桌面实现：pyautogui 注入输入，Win32 + psutil 读取前台窗口"""

import ctypes
import ctypes.wintypes
import logging
import subprocess
import time
from typing import Tuple

import psutil
import pyautogui
from PIL import Image

from .desktop import start_process_command

logger = logging.getLogger(__name__)

WHEEL_CLICKS = 120


class WindowsDesktop:
    """当前登录会话的桌面（同一时刻只应有一个循环在注入输入）"""

    def __init__(self, click_pause: float = 0.05):
        self.click_pause = click_pause
        pyautogui.FAILSAFE = True
        pyautogui.PAUSE = 0.05
        self._set_dpi_awareness()

    @staticmethod
    def _set_dpi_awareness() -> None:
        try:
            ctypes.windll.shcore.SetProcessDpiAwareness(2)
        except (AttributeError, OSError):
            ctypes.windll.user32.SetProcessDPIAware()

    def screen_size(self) -> Tuple[int, int]:
        size = pyautogui.size()
        return size.width, size.height

    def screenshot(self) -> Image.Image:
        return pyautogui.screenshot()

    def foreground_window(self) -> Tuple[str, str]:
        user32 = ctypes.windll.user32
        hwnd = user32.GetForegroundWindow()
        if not hwnd:
            return "", ""

        length = user32.GetWindowTextLengthW(hwnd)
        buf = ctypes.create_unicode_buffer(length + 1)
        user32.GetWindowTextW(hwnd, buf, length + 1)

        pid = ctypes.wintypes.DWORD()
        user32.GetWindowThreadProcessId(hwnd, ctypes.byref(pid))
        try:
            app_name = psutil.Process(pid.value).name()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            app_name = "Unknown"
        return buf.value, app_name

    def click(self, x: int, y: int) -> None:
        pyautogui.moveTo(x, y)
        time.sleep(0.1)
        pyautogui.mouseDown()
        time.sleep(self.click_pause)
        pyautogui.mouseUp()

    def press_key(self, key: str, shift: bool = False) -> None:
        if shift:
            pyautogui.keyDown("shift")
        try:
            pyautogui.keyDown(key)
            pyautogui.keyUp(key)
        finally:
            if shift:
                pyautogui.keyUp("shift")

    def hotkey(self, *keys: str) -> None:
        pyautogui.hotkey(*keys)

    def scroll(self, clicks: int) -> None:
        pyautogui.scroll(clicks * WHEEL_CLICKS)

    def launch(self, executable: str) -> int:
        command = start_process_command(executable)
        logger.info(f"🚀 powershell.exe -Command \"{command}\"")
        result = subprocess.run(
            ["powershell.exe", "-Command", command],
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            logger.warning(f"❌ PowerShell 退出码 {result.returncode}: {result.stderr.strip()}")
        return result.returncode
