"""
BuffKeeper — Win32 Input Backend

Sends keyboard and pointer input to the game window.

Keyboard: PostMessage(hwnd, WM_KEYDOWN/WM_KEYUP) — sends directly to the
  game window handle, doesn't require focus.
Pointer: SetCursorPos / GetCursorPos in absolute screen coordinates.

Windows only. Run as Administrator when the game runs elevated.

Usage:
    from buffkeeper.bot.input import GameWindow, InputController
    from buffkeeper.bot.keys import VK
    win = GameWindow(title="Path of Exile 2")
    win.find()
    inp = InputController(win)
    inp.key_down(VK.Q); inp.key_up(VK.Q)
    inp.set_pointer(960, 540)
"""

from __future__ import annotations

import ctypes
import ctypes.wintypes as wt
from dataclasses import dataclass

from buffkeeper.bot.keys import make_lparam

# ---- Win32 constants ----

WM_KEYDOWN = 0x0100
WM_KEYUP = 0x0101

DEFAULT_WINDOW_TITLE = "Path of Exile 2"


# ---- Win32 API bindings ----

user32 = ctypes.windll.user32

FindWindowW = user32.FindWindowW
FindWindowW.argtypes = [wt.LPCWSTR, wt.LPCWSTR]
FindWindowW.restype = wt.HWND

GetWindowRect = user32.GetWindowRect
GetWindowRect.argtypes = [wt.HWND, ctypes.POINTER(wt.RECT)]
GetWindowRect.restype = wt.BOOL

GetForegroundWindow = user32.GetForegroundWindow
GetForegroundWindow.restype = wt.HWND

PostMessageW = user32.PostMessageW
PostMessageW.argtypes = [wt.HWND, wt.UINT, wt.WPARAM, wt.LPARAM]
PostMessageW.restype = wt.BOOL

SetCursorPos = user32.SetCursorPos
SetCursorPos.argtypes = [ctypes.c_int, ctypes.c_int]
SetCursorPos.restype = wt.BOOL

GetCursorPos = user32.GetCursorPos
GetCursorPos.argtypes = [ctypes.POINTER(wt.POINT)]
GetCursorPos.restype = wt.BOOL

IsUserAnAdmin = ctypes.windll.shell32.IsUserAnAdmin
IsUserAnAdmin.restype = wt.BOOL


# ---- Game Window ----

@dataclass
class WindowRect:
    """Screen coordinates of a window."""
    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top


class GameWindow:
    """Finds and tracks the game window."""

    def __init__(self, title: str = DEFAULT_WINDOW_TITLE, hwnd: int = 0):
        self.title = title
        self._hwnd: int = hwnd

    @property
    def hwnd(self) -> int:
        return self._hwnd

    @property
    def found(self) -> bool:
        return self._hwnd != 0

    def find(self) -> bool:
        """Find the game window by title. Returns True if found."""
        self._hwnd = FindWindowW(None, self.title) or 0
        return self._hwnd != 0

    def get_rect(self) -> WindowRect | None:
        if not self._hwnd:
            return None
        rect = wt.RECT()
        if GetWindowRect(self._hwnd, ctypes.byref(rect)):
            return WindowRect(
                left=rect.left, top=rect.top,
                right=rect.right, bottom=rect.bottom,
            )
        return None

    def is_foreground(self) -> bool:
        return self._hwnd != 0 and GetForegroundWindow() == self._hwnd


# ---- Input Controller ----

class InputController:
    """InputEffector over the Win32 API.

    Failed calls raise OSError; the action executor turns that into an
    InputError result.
    """

    def __init__(self, window: GameWindow | None = None):
        self.window = window or GameWindow()

    @staticmethod
    def is_admin() -> bool:
        return bool(IsUserAnAdmin())

    def ensure_window(self) -> bool:
        if self.window.found:
            return True
        return self.window.find()

    # ---- Keyboard (PostMessage to hwnd) ----

    def _post_key(self, msg: int, vk: int, lparam: int) -> None:
        if not self.ensure_window():
            raise OSError(f"game window '{self.window.title}' not found")
        if not PostMessageW(self.window.hwnd, msg, vk, lparam):
            raise ctypes.WinError()

    def key_down(self, vk: int) -> None:
        self._post_key(WM_KEYDOWN, vk, make_lparam(vk, up=False))

    def key_up(self, vk: int) -> None:
        self._post_key(WM_KEYUP, vk, make_lparam(vk, up=True))

    # ---- Pointer ----

    def set_pointer(self, x: int, y: int) -> None:
        if not SetCursorPos(int(x), int(y)):
            raise ctypes.WinError()

    def get_pointer(self) -> tuple[int, int]:
        pt = wt.POINT()
        if not GetCursorPos(ctypes.byref(pt)):
            raise ctypes.WinError()
        return pt.x, pt.y
