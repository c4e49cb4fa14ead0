"""桌面平台接口：截屏、前台窗口、鼠标 / 键盘注入、启动进程"""

from typing import Protocol, Tuple

from PIL import Image

# 启动应用时使用的特殊目标描述
LAUNCH_TARGET = "powershell_launch"

# 滚轮方向 -> 滚动格数（正数向上）
SCROLL_DIRECTIONS = {
    "up": 1,
    "down": -1,
}


class Desktop(Protocol):
    """一个桌面会话的全部外部副作用都经过这里"""

    def screen_size(self) -> Tuple[int, int]:
        ...

    def screenshot(self) -> Image.Image:
        ...

    def foreground_window(self) -> Tuple[str, str]:
        """返回 (窗口标题, 可执行文件名)"""
        ...

    def click(self, x: int, y: int) -> None:
        ...

    def press_key(self, key: str, shift: bool = False) -> None:
        ...

    def hotkey(self, *keys: str) -> None:
        ...

    def scroll(self, clicks: int) -> None:
        ...

    def launch(self, executable: str) -> int:
        """通过系统命令解释器启动程序，返回退出码"""
        ...


def start_process_command(executable: str) -> str:
    """PowerShell 启动命令；路径放进单引号字符串，内部的单引号成对转义"""
    quoted = executable.replace("'", "''")
    return f"Start-Process -FilePath '{quoted}'"
