"""
BuffKeeper — Rotation Core

Components:
    gate.py      — eligibility predicate (why the rotation may not run)
    selector.py  — nearest matching target
    tracker.py   — buff presence + active weapon set
    executor.py  — aim / cast / weapon swap against the input backend
    machine.py   — the state machine tying them together
    config.py    — RotationConfig + ConfigError
    types.py     — state, context and result types
    timing.py    — Clock + Stopwatch
"""
