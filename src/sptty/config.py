"""Where sptty keeps its files, and how it reads its config.

Layout on Linux and the BSDs follows the XDG base directories::

    $XDG_CONFIG_HOME/sptty/config.toml   (~/.config/sptty/config.toml)
    $XDG_CACHE_HOME/sptty/token          (~/.cache/sptty/token)
    $XDG_DATA_HOME/sptty/logs/           (~/.local/share/sptty/logs/)

Everywhere else everything lives under ``~/.sptty/``. ``SPTTY_CONFIG_DIR``
relocates the config directory and ``SPTTY_API_ENDPOINT`` replaces the Web
API origin.

``config.toml`` holds the fields of
:class:`~sptty.models.AuthorizationConfig`::

    client_id = "0123456789abcdef"
    redirect_uri = "http://127.0.0.1:4381/callback"
    # authorization_endpoint and token_endpoint default to Spotify's
"""

from __future__ import annotations

import os
import platform
import tempfile
import tomllib
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from sptty.exceptions import ConfigError
from sptty.models import DEFAULT_API_ENDPOINT, AuthorizationConfig, Environment

_APP_NAME = "sptty"


# --- Directories ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _home_dir(*parts: str) -> Path:
    """``~/.sptty/<parts>``, used on platforms without XDG."""
    return Path.home().joinpath(f".{_APP_NAME}", *parts)


def _xdg_dir(env_var: str, *default: str) -> Path:
    """``$<env_var>/sptty``, or ``~/<default>/sptty`` when the variable is unset."""
    base = os.environ.get(env_var) or Path.home().joinpath(*default)
    return Path(base) / _APP_NAME


def _ensure(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.toml``. Never created: sptty only reads it."""
    override = os.environ.get("SPTTY_CONFIG_DIR")
    if override:
        return Path(override)
    return _xdg_dir("XDG_CONFIG_HOME", ".config") if _is_xdg_platform() else _home_dir()


def get_cache_dir() -> Path:
    """Directory holding the token cache; created on demand."""
    return _ensure(_xdg_dir("XDG_CACHE_HOME", ".cache") if _is_xdg_platform() else _home_dir("cache"))


def get_data_dir() -> Path:
    """Directory for crash logs; created on demand."""
    if _is_xdg_platform():
        return _ensure(_xdg_dir("XDG_DATA_HOME", ".local", "share"))
    return _ensure(_home_dir("data"))


def config_file_path() -> Path:
    return get_config_dir() / "config.toml"


def token_cache_path() -> Path:
    return get_cache_dir() / "token"


# --- Writing ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Replace *path* with *data* so readers see the old or the new file, never half of one.

    The content goes to a sibling temp file which is fsynced and then moved
    over *path* with :func:`os.replace`. *mode*, when given, is applied to
    the temp file before anything is written to it.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            if mode is not None:
                os.chmod(tmp_path, mode)
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


# --- Reading ---


def load_authorization_config(path: Optional[Path] = None) -> AuthorizationConfig:
    """Read ``config.toml`` into an :class:`~sptty.models.AuthorizationConfig`.

    Args:
        path: Config file to read. Defaults to :func:`config_file_path`.

    Raises:
        ConfigError: If the file is missing, unreadable, not TOML, or does
            not describe a valid configuration.
    """
    path = path or config_file_path()
    if not path.is_file():
        raise ConfigError(
            f"Config file not found at {path}. "
            "Create it with client_id and redirect_uri."
        )

    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc

    try:
        return AuthorizationConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def load_environment(path: Optional[Path] = None) -> Environment:
    """Combine ``config.toml`` with the ``SPTTY_API_ENDPOINT`` override."""
    return Environment(
        auth_config=load_authorization_config(path),
        api_endpoint=os.environ.get("SPTTY_API_ENDPOINT") or DEFAULT_API_ENDPOINT,
    )
