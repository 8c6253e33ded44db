"""
loop_config.py
--------------
Read-only level loop configuration, loaded once at startup.

Responsibilities
----------------
- Value sets for normal play, editor testing and quick testing
- Origin scene → value set mapping, with a default set
- Overlay names, leave effect, debug suppression, reset event name
- Optional hooks (callables or "package.module:attribute" strings)
"""

import importlib
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from level_loop.core.debug.debug_logger import DebugLogger, LoggerConfig
from level_loop.core.runtime.game_settings import Debug, Loop
from level_loop.core.services.config_manager import load_config


HOOK_NAMES = (
    "before_entering",
    "add_things",
    "on_decode",
    "cleanup",
    "reset_level",
    "on_init",
    "new_group",
)

VALUE_SETS = ("normal", "testing", "quick_test")


# ===========================================================
# Value Sets
# ===========================================================

@dataclass(frozen=True)
class LoopValues:
    """Values in effect for one way of entering a level."""
    kind: str
    return_to: Union[str, Callable, None] = None
    wait_to_end: float = 0.0

    @classmethod
    def from_dict(cls, kind: str, data: Optional[Dict[str, Any]]) -> "LoopValues":
        data = data or {}
        return cls(
            kind=kind,
            return_to=_resolve_ref(data.get("return_to"), f"{kind}_values.return_to"),
            wait_to_end=float(data.get("wait_to_end", 0.0) or 0.0),
        )


# ===========================================================
# Hook Helpers
# ===========================================================

def call_hook(func: Optional[Callable], *args):
    """Call func(*args) if it is set; a missing hook is a no-op."""
    if func is not None:
        return func(*args)
    return None


def _resolve_ref(value, label: str):
    """Turn a "package.module:attribute" string into the object it names."""
    if not isinstance(value, str) or ":" not in value:
        return value

    module_name, _, attr = value.partition(":")
    try:
        module = importlib.import_module(module_name)
        target = module
        for part in attr.split("."):
            target = getattr(target, part)
    except (ImportError, AttributeError) as e:
        raise ValueError(f"Cannot resolve {label} = '{value}': {e}") from e
    return target


# ===========================================================
# Loop Config
# ===========================================================

@dataclass(frozen=True)
class LoopConfig:
    """Everything the loop controller reads from configuration."""

    normal_values: LoopValues = LoopValues("normal")
    testing_values: LoopValues = LoopValues("testing")
    quick_test_values: LoopValues = LoopValues("quick_test")

    coming_from_normal: Optional[str] = None
    coming_from_testing: Optional[str] = None
    coming_from_quick_test: Optional[str] = None
    default_values: str = "normal"

    start_overlay: Optional[str] = None
    win_overlay: Optional[str] = None
    lost_overlay: Optional[str] = None
    leave_effect: Any = None

    suppress_overlays: bool = Debug.SUPPRESS_OVERLAYS
    reset_event: str = Loop.RESET_EVENT

    before_entering: Optional[Callable] = None
    add_things: Optional[Callable] = None
    on_decode: Optional[Callable] = None
    cleanup: Optional[Callable] = None
    reset_level: Optional[Callable] = None
    on_init: Optional[Callable] = None
    new_group: Optional[Callable] = None

    def __post_init__(self):
        if self.default_values not in VALUE_SETS:
            raise ValueError(
                f"default_values must be one of {VALUE_SETS}, got '{self.default_values}'"
            )
        for name in HOOK_NAMES:
            hook = getattr(self, name)
            if hook is not None and not callable(hook):
                raise ValueError(f"Hook '{name}' is not callable: {hook!r}")

    # ===========================================================
    # Construction
    # ===========================================================

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoopConfig":
        """
        Build a config from a plain dict (as returned by load_config).

        Nested "debug" settings are accepted as {"debug": {"suppress_overlays": true}}.
        """
        data = dict(data or {})
        debug = data.pop("debug", {}) or {}
        data.pop("logging", None)

        kwargs = {}
        for kind in VALUE_SETS:
            kwargs[f"{kind}_values"] = LoopValues.from_dict(kind, data.pop(f"{kind}_values", None))

        for name in HOOK_NAMES:
            if name in data:
                kwargs[name] = _resolve_ref(data.pop(name), name)

        if "suppress_overlays" in debug:
            kwargs["suppress_overlays"] = bool(debug["suppress_overlays"])

        known = set(cls.__dataclass_fields__)
        for key, value in data.items():
            if key in known:
                kwargs[key] = value
            else:
                DebugLogger.warn(f"Unknown game loop config key '{key}' - ignored", category="loading")

        return cls(**kwargs)

    @classmethod
    def load(cls, filename: str = Loop.CONFIG_FILE) -> "LoopConfig":
        """
        Load and build the config from a .yaml / .json / .py file.

        The file's "logging" section, if any, is applied to LoggerConfig.
        """
        data = load_config(filename, {})
        LoggerConfig.configure(data.get("logging"))
        return cls.from_dict(data)

    # ===========================================================
    # Value Set Selection
    # ===========================================================

    def values_for(self, coming_from: Optional[str]) -> LoopValues:
        """
        Value set for the scene a level was launched from.

        Quick-test origin wins over testing, which wins over normal; an
        unrecognized origin gets the default set.
        """
        if coming_from is not None:
            if coming_from == self.coming_from_quick_test:
                return self.quick_test_values
            if coming_from == self.coming_from_testing:
                return self.testing_values
            if coming_from == self.coming_from_normal:
                return self.normal_values
        return getattr(self, f"{self.default_values}_values")

    def overlay_for(self, why: str) -> Optional[str]:
        """Overlay played on unload: won / lost get one, quit does not."""
        return {"won": self.win_overlay, "lost": self.lost_overlay}.get(why)
