from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_int(key: str, default: int) -> int:
    v = os.getenv(key)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_str(key: str, default: str) -> str:
    v = os.getenv(key)
    return v if v not in (None, "") else default


@dataclass(frozen=True)
class AlertConfig:
    # Bars requested when testing a single formula
    test_bar_count: int = field(default_factory=lambda: _env_int("TDX_TEST_BAR_COUNT", 200))
    # Bars requested per rule during a "check all enabled rules" sweep
    sweep_bar_count: int = field(default_factory=lambda: _env_int("TDX_SWEEP_BAR_COUNT", 50))
    # 1 = sequential sweep
    sweep_max_workers: int = field(default_factory=lambda: _env_int("TDX_SWEEP_MAX_WORKERS", 1))

    log_level: str = field(default_factory=lambda: _env_str("TDX_LOG_LEVEL", "INFO"))


def load_config() -> AlertConfig:
    """Read configuration from the environment at call time."""
    return AlertConfig()
