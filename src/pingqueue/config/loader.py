"""Configuration loader for pingqueue.

An uploader reads at most one YAML file and overlays ``PINGQUEUE_*``
environment variables on top of it.  Both sources are merged as raw
mappings and validated once, so an environment variable can also set a
field back to its default value.

Discovery order for :meth:`ConfigLoader.load_auto`:

1. ``pingqueue.yaml`` / ``pingqueue.yml`` in the search directory (cwd).
2. ``$XDG_CONFIG_HOME/pingqueue/config.yaml`` (``~/.config`` when unset).

A relative ``data_dir`` in a file is resolved against that file's
directory, not the process working directory, so the same file works
from a cron job and from a shell.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from pingqueue.config.defaults import DEFAULT_CONFIG
from pingqueue.config.schema import validate_config
from pingqueue.schema.config import ENV_PREFIX, UploaderConfig, env_overrides
from pingqueue.schema.errors import ConfigurationError

logger = logging.getLogger(__name__)

LOCAL_CONFIG_NAMES: tuple[str, ...] = ("pingqueue.yaml", "pingqueue.yml")


def user_config_path() -> Path:
    """Return the per-user config file location (which may not exist)."""
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "pingqueue" / "config.yaml"


class ConfigLoader:
    """Resolve an ``UploaderConfig`` from a YAML file and the environment.

    Parameters
    ----------
    env_prefix:
        Prefix of the environment variables overlaid on file values.

    Examples
    --------
    >>> loader = ConfigLoader(env_prefix="PINGQUEUE_DOCTEST_")
    >>> loader.load_env().log_pings
    False
    """

    def __init__(self, env_prefix: str = ENV_PREFIX) -> None:
        self._env_prefix = env_prefix

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def discover(self, search_dir: str | Path | None = None) -> Path | None:
        """Return the first config file that exists, or ``None``."""
        base_dir = Path(search_dir) if search_dir is not None else Path.cwd()
        candidates = [base_dir / name for name in LOCAL_CONFIG_NAMES]
        candidates.append(user_config_path())
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        return None

    def read_file(self, path: str | Path) -> dict[str, object]:
        """Parse *path* into an unvalidated mapping.

        An empty file yields ``{}``.  A relative ``data_dir`` is made
        absolute against the file's directory.

        Raises
        ------
        ConfigurationError
            If the file is missing, unreadable, not YAML, or its top level
            is not a mapping.
        """
        resolved = Path(path)
        try:
            with resolved.open(encoding="utf-8") as fh:
                raw: object = yaml.safe_load(fh)
        except FileNotFoundError as exc:
            raise ConfigurationError(
                f"Config file not found: {resolved}",
                context={"path": str(resolved)},
            ) from exc
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(
                f"Failed to parse config file {resolved}: {exc}",
                context={"path": str(resolved)},
            ) from exc

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Config file {resolved} must contain a mapping, "
                f"got {type(raw).__name__}",
                context={"path": str(resolved)},
            )

        data: dict[str, object] = dict(raw)
        data_dir = data.get("data_dir")
        if isinstance(data_dir, str) and data_dir:
            expanded = Path(data_dir).expanduser()
            if not expanded.is_absolute():
                data["data_dir"] = resolved.parent.resolve() / expanded
        return data

    def load_file(self, path: str | Path) -> UploaderConfig:
        """Load and validate a single config file, ignoring the environment."""
        config = validate_config(self.read_file(path))
        logger.debug("Loaded config from %s", path)
        return config

    # ------------------------------------------------------------------
    # Environment and layering
    # ------------------------------------------------------------------

    def load_env(self) -> UploaderConfig:
        """Build configuration from environment variables only.

        Raises
        ------
        ConfigurationError
            If an environment value fails validation.
        """
        return validate_config(env_overrides(self._env_prefix))

    def load(self, path: str | Path | None) -> UploaderConfig:
        """Load *path* (if given) with the environment overlaid on top."""
        data: dict[str, object] = self.read_file(path) if path is not None else {}
        overrides = env_overrides(self._env_prefix)
        if overrides:
            logger.debug("Environment overrides: %s", sorted(overrides))
        data.update(overrides)
        if not data:
            return DEFAULT_CONFIG
        return validate_config(data)

    def load_auto(self, search_dir: str | Path | None = None) -> UploaderConfig:
        """Discover a config file and load it with the environment overlay.

        A discovered file that fails to load raises; it is never skipped in
        favour of defaults that would point the uploader elsewhere.
        """
        path = self.discover(search_dir)
        if path is None:
            logger.debug("No config file found; using defaults.")
        else:
            logger.info("Using pingqueue config %s", path)
        return self.load(path)
