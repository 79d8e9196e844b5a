from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Final, Mapping, Optional

from pydantic import BaseModel, ValidationError

from .logger import logger

CONFIG_ENV_VAR: Final[str] = "APPLY_PATCH_CONFIG"
CONFIG_DIR_NAME: Final[str] = ".apply_patch"
CONFIG_FILE_NAME: Final[str] = "config.json"

DEFAULT_REFUSE_MESSAGE: Final[str] = """NOTE TO LLM:
You just ran `apply_patch` as a shell command, not as a model-native editing tool.
This environment is configured to refuse shell-based patching, so nothing was changed.

Use your native editing tool (your built-in patch/editor tool) to apply this change now, and do not run `apply_patch` in the shell for future changes."""

DEFAULT_WARN_MESSAGE: Final[str] = """NOTE TO LLM:
The patch was applied by a shell `apply_patch` wrapper.
For future changes, use your native editing tool instead of running `apply_patch` in the shell."""


class Mode(str, Enum):
    apply = "apply"
    refuse = "refuse"
    warn = "warn"


class LogLevel(str, Enum):
    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"
    critical = "critical"


class Config(BaseModel):
    """
    Persisted command line policy.
    - mode: apply the patch, apply and print the warn banner, or refuse
    - refuse_message / warn_message: custom banners; None selects the default
    """

    mode: Mode = Mode.apply
    refuse_message: Optional[str] = None
    warn_message: Optional[str] = None

    @property
    def effective_refuse_message(self) -> str:
        return self.refuse_message if self.refuse_message is not None else DEFAULT_REFUSE_MESSAGE

    @property
    def effective_warn_message(self) -> str:
        return self.warn_message if self.warn_message is not None else DEFAULT_WARN_MESSAGE


def config_path(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """
    Resolve the config file location:
    $APPLY_PATCH_CONFIG, else $XDG_CONFIG_HOME/.apply_patch/config.json,
    else $HOME/.apply_patch/config.json. None when none of them is set.
    """
    env = os.environ if environ is None else environ
    override = env.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    base = env.get("XDG_CONFIG_HOME") or env.get("HOME")
    if not base:
        return None
    return Path(base) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def load_config(path: Path) -> Config:
    """Read path; a missing, unreadable or invalid file yields the defaults."""
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return Config()
    except OSError as e:
        logger.warning("Cannot read config, using defaults", path=str(path), err=str(e))
        return Config()
    try:
        return Config.model_validate_json(data)
    except ValidationError as e:
        logger.warning(
            "Invalid config, using defaults", path=str(path), errors=e.error_count()
        )
        return Config()


def save_config(path: Path, cfg: Config) -> None:
    """Write cfg as pretty JSON, replacing path atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(cfg.model_dump_json(indent=2), encoding="utf-8")
    os.replace(tmp, path)
