"""
BuffKeeper — Virtual Key Codes

Win32 virtual key codes for the bindings the rotation uses, plus name
parsing for configuration and the CLI ("X", "q", "F1", "space").
"""

from __future__ import annotations

from enum import IntEnum


class VK(IntEnum):
    """Virtual key codes."""
    # Modifiers
    SHIFT = 0x10
    CTRL = 0x11
    ALT = 0x12

    # Control
    TAB = 0x09
    ESCAPE = 0x1B
    SPACE = 0x20

    # Digits
    D0 = 0x30
    D1 = 0x31
    D2 = 0x32
    D3 = 0x33
    D4 = 0x34
    D5 = 0x35
    D6 = 0x36
    D7 = 0x37
    D8 = 0x38
    D9 = 0x39

    # Letters
    A = 0x41
    B = 0x42
    C = 0x43
    D = 0x44
    E = 0x45
    F = 0x46
    G = 0x47
    H = 0x48
    I = 0x49
    J = 0x4A
    K = 0x4B
    L = 0x4C
    M = 0x4D
    N = 0x4E
    O = 0x4F
    P = 0x50
    Q = 0x51
    R = 0x52
    S = 0x53
    T = 0x54
    U = 0x55
    V = 0x56
    W = 0x57
    X = 0x58
    Y = 0x59
    Z = 0x5A

    # Function keys
    F1 = 0x70
    F2 = 0x71
    F3 = 0x72
    F4 = 0x73
    F5 = 0x74
    F6 = 0x75
    F7 = 0x76
    F8 = 0x77
    F9 = 0x78
    F10 = 0x79
    F11 = 0x7A
    F12 = 0x7B


# Scan codes used in the WM_KEYDOWN/WM_KEYUP lParam
SCAN_CODES: dict[int, int] = {
    VK.SPACE: 0x39,
    VK.ESCAPE: 0x01,
    VK.TAB: 0x0F,
    VK.CTRL: 0x1D,
    VK.SHIFT: 0x2A,
    VK.ALT: 0x38,
    VK.D1: 0x02, VK.D2: 0x03, VK.D3: 0x04, VK.D4: 0x05, VK.D5: 0x06,
    VK.D6: 0x07, VK.D7: 0x08, VK.D8: 0x09, VK.D9: 0x0A, VK.D0: 0x0B,
    VK.F1: 0x3B, VK.F2: 0x3C, VK.F3: 0x3D, VK.F4: 0x3E,
    VK.F5: 0x3F, VK.F6: 0x40, VK.F7: 0x41, VK.F8: 0x42,
    VK.F9: 0x43, VK.F10: 0x44, VK.F11: 0x57, VK.F12: 0x58,
    VK.A: 0x1E, VK.B: 0x30, VK.C: 0x2E, VK.D: 0x20,
    VK.E: 0x12, VK.F: 0x21, VK.G: 0x22, VK.H: 0x23,
    VK.I: 0x17, VK.J: 0x24, VK.K: 0x25, VK.L: 0x26,
    VK.M: 0x32, VK.N: 0x31, VK.O: 0x18, VK.P: 0x19,
    VK.Q: 0x10, VK.R: 0x13, VK.S: 0x1F, VK.T: 0x14,
    VK.U: 0x16, VK.V: 0x2F, VK.W: 0x11, VK.X: 0x2D,
    VK.Y: 0x15, VK.Z: 0x2C,
}


def parse_key(name: str | int) -> VK:
    """Resolve a key binding from its name ("x", "F1", "space") or code.

    Single digits map to the top-row digit keys.
    """
    if isinstance(name, int):
        return VK(name)
    key = name.strip().upper()
    if len(key) == 1 and key.isdigit():
        key = f"D{key}"
    try:
        return VK[key]
    except KeyError:
        raise ValueError(f"unknown key binding: {name!r}") from None


def make_lparam(vk: int, up: bool = False) -> int:
    """Build lParam for WM_KEYDOWN/WM_KEYUP message.

    Bits 0-15:  repeat count (1)
    Bits 16-23: scan code
    Bit 30:     previous key state (0 for down, 1 for up)
    Bit 31:     transition state (0 for down, 1 for up)
    """
    scan = SCAN_CODES.get(vk, 0)
    lparam = 1 | (scan << 16)
    if up:
        lparam |= (1 << 30) | (1 << 31)
    return lparam
