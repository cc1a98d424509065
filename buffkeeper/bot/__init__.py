"""
BuffKeeper — Bot Module

Drives the rotation against the game.

Components:
    controller.py — tick loop (snapshot → gate → state machine)
    effector.py   — input backend interface + dry-run recorder
    humanizer.py  — jittered pointer paths
    input.py      — Win32 input (PostMessage keyboard + SetCursorPos), Windows only
    keys.py       — virtual key codes
    main.py       — CLI entry point
"""
