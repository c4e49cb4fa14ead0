"""字符到按键（虚拟键 + Shift 状态）的转换，按美式键盘布局"""

import string
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Keystroke:
    key: str
    shift: bool = False


# 需要 Shift 的符号 -> 基础键
SHIFTED_SYMBOLS = {
    "!": "1", "@": "2", "#": "3", "$": "4", "%": "5",
    "^": "6", "&": "7", "*": "8", "(": "9", ")": "0",
    "_": "-", "+": "=", "{": "[", "}": "]", "|": "\\",
    ":": ";", "\"": "'", "<": ",", ">": ".", "?": "/", "~": "`",
}

PLAIN_SYMBOLS = set("-=[]\\;',./`")

SPECIAL_KEYS = {
    " ": "space",
    "\n": "enter",
    "\r": "enter",
    "\t": "tab",
}


def char_to_keystroke(ch: str) -> Optional[Keystroke]:
    """把单个字符映射为一次按键；无法映射时返回 None"""
    if len(ch) != 1:
        return None
    if ch in SPECIAL_KEYS:
        return Keystroke(SPECIAL_KEYS[ch])
    if ch in string.ascii_lowercase or ch in string.digits or ch in PLAIN_SYMBOLS:
        return Keystroke(ch)
    if ch in string.ascii_uppercase:
        return Keystroke(ch.lower(), shift=True)
    if ch in SHIFTED_SYMBOLS:
        return Keystroke(SHIFTED_SYMBOLS[ch], shift=True)
    return None
