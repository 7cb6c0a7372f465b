import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from bcm_bridge.errors import ConfigError

DEFAULT_API_BASE = "https://bcm-demo.onrender.com"
DEFAULT_TIMEOUT_MS = 12000
CONFIG_PATH = Path.home() / ".bcm-bridge.toml"


# ========== Outcome ==========
@dataclass(frozen=True)
class Success:
    data: Any

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    error: str
    # Set only for non-2xx responses; the decoded body itself is not kept.
    status_code: Optional[int] = None
    body_discarded: bool = False

    @property
    def ok(self) -> bool:
        return False


Outcome = Union[Success, Failure]


# ========== Config ==========
def load_config_file(path: Optional[Path] = None) -> dict:
    path = path or Path(os.environ.get("BCM_CONFIG", CONFIG_PATH))
    if not path.exists():
        return {}
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e


def _timeout_from(value, source: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid timeout in {source}: {value!r}")


@dataclass
class Config:
    base_url: str = DEFAULT_API_BASE
    admin_key: Optional[str] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    verify_tls: bool = True
    debug: bool = False

    @classmethod
    def init_from_args(cls, args) -> "Config":
        """CLI options win over environment, environment over the config file."""
        stored = load_config_file()

        base_url = (
            getattr(args, "base_url", None)
            or os.environ.get("BCM_API_BASE")
            or stored.get("api_base")
            or DEFAULT_API_BASE
        )
        admin_key = (
            getattr(args, "admin_key", None)
            or os.environ.get("BCM_ADMIN_KEY")
            or stored.get("admin_key")
            or None
        )
        timeout_ms = getattr(args, "timeout", None)
        if timeout_ms is None:
            timeout_ms = _timeout_from(os.environ.get("BCM_TIMEOUT_MS"), "BCM_TIMEOUT_MS")
        if timeout_ms is None:
            timeout_ms = _timeout_from(stored.get("timeout_ms"), "config file")
        if timeout_ms is None:
            timeout_ms = DEFAULT_TIMEOUT_MS

        return cls(
            base_url=str(base_url),
            admin_key=admin_key,
            timeout_ms=timeout_ms,
            verify_tls=not getattr(args, "insecure", False),
            debug=bool(getattr(args, "debug", False)),
        )
