"""Configuration I/O for the service defaults cascade.

Reads shell-style defaults files (`KEY=value` lines, as found under
/etc/default) and merges them with built-in defaults and the environment
into a ServiceConfig.

Config loading priority (highest to lowest):
1. Environment variables (non-empty values only)
2. Service defaults file: /etc/default/<name>
3. Init framework verbosity file: /etc/default/rcS (VERBOSE only)
4. Built-in defaults
"""

import logging
import os
import shlex
from collections.abc import Mapping
from pathlib import Path

from proxyctl.domain.config import (
    DEFAULT_SERVICE_NAME,
    ServiceConfig,
    ServiceIdentity,
)
from proxyctl.domain.exceptions import ConfigurationError
from proxyctl.domain.value_objects import StopSchedule, parse_signal

logger = logging.getLogger(__name__)

# Keys understood in defaults files and the environment
CONFIG_KEYS: tuple[str, ...] = (
    "DESC",
    "DAEMON",
    "DAEMON_ARGS",
    "PIDFILE",
    "LOCKFILE",
    "VERBOSE",
    "STOP_SCHEDULE",
    "RELOAD_SIGNAL",
    "RESTART_DELAY",
    "SUPERVISOR",
)

# The init framework's verbosity file only propagates VERBOSE
RCS_KEYS: tuple[str, ...] = ("VERBOSE",)

_FALSE_WORDS = frozenset({"no", "false", "0", "off"})


def get_service_name(env: Mapping[str, str]) -> str:
    """Return the managed service name (PROXYCTL_NAME or the default)."""
    return env.get("PROXYCTL_NAME", "") or DEFAULT_SERVICE_NAME


def get_defaults_file_path(name: str, env: Mapping[str, str]) -> Path:
    """Get the path to the service defaults file.

    Args:
        name: Service name
        env: Environment mapping (PROXYCTL_DEFAULTS_FILE overrides)

    Returns:
        Path to the defaults file (may not exist)
    """
    override = env.get("PROXYCTL_DEFAULTS_FILE", "")
    if override:
        return Path(override)
    return Path("/etc/default") / name


def get_rcs_file_path(env: Mapping[str, str]) -> Path:
    """Get the path to the init framework verbosity file."""
    override = env.get("PROXYCTL_RCS_FILE", "")
    if override:
        return Path(override)
    return Path("/etc/default/rcS")


def parse_defaults_text(text: str, source: str = "<string>") -> dict[str, str]:
    """Parse shell-style variable assignments.

    Supports `KEY=value`, quoted values, a leading `export` and `#`
    comments. Lines that are not a single plain assignment are skipped
    with a warning; no variable expansion is performed.

    Args:
        text: File contents
        source: Name used in warnings

    Returns:
        Mapping of variable names to values, later lines winning
    """
    values: dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        try:
            tokens = shlex.split(line, comments=True)
        except ValueError as e:
            logger.warning("%s:%d: cannot parse line (%s), skipping", source, lineno, e)
            continue

        if not tokens:
            continue
        if tokens[0] == "export":
            tokens = tokens[1:]

        if len(tokens) != 1 or "=" not in tokens[0]:
            logger.warning("%s:%d: not a variable assignment, skipping", source, lineno)
            continue

        key, _, value = tokens[0].partition("=")
        if not key.isidentifier():
            logger.warning("%s:%d: invalid variable name %r, skipping", source, lineno, key)
            continue
        values[key] = value
    return values


def load_defaults_data(path: Path) -> dict[str, str]:
    """Load raw variable assignments from a defaults file.

    Args:
        path: Path to the defaults file

    Returns:
        Dictionary of parsed assignments

    Raises:
        FileNotFoundError: If the file doesn't exist
        OSError: If the file can't be read
    """
    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    return parse_defaults_text(path.read_text(), source=str(path))


def _select(data: Mapping[str, str], keys: tuple[str, ...]) -> dict[str, str]:
    return {key: data[key] for key in keys if key in data}


def _env_layer(env: Mapping[str, str]) -> dict[str, str]:
    """Known keys set to a non-empty value in the environment."""
    return {key: env[key] for key in CONFIG_KEYS if env.get(key)}


def _load_layer(path: Path, keys: tuple[str, ...]) -> dict[str, str]:
    """Load one file layer of the cascade, tolerating a missing file."""
    try:
        data = load_defaults_data(path)
    except FileNotFoundError:
        logger.debug("No defaults file at %s", path)
        return {}
    except OSError as e:
        logger.warning("Failed to read %s: %s. Ignoring it.", path, e)
        return {}

    logger.debug("Loaded defaults from %s", path)
    return _select(data, keys)


def parse_verbose(value: str) -> bool:
    """Interpret a VERBOSE value; anything but no/false/0/off is verbose."""
    return value.strip().lower() not in _FALSE_WORDS


def _optional_path(value: str | None) -> Path | None:
    if value is None or not value.strip():
        return None
    return Path(value.strip())


def config_data_to_service_config(name: str, data: Mapping[str, str]) -> ServiceConfig:
    """Convert merged variable assignments to a ServiceConfig.

    Args:
        name: Service name
        data: Merged assignments (CONFIG_KEYS)

    Returns:
        Validated ServiceConfig

    Raises:
        ValueError: If any value is invalid
    """
    kwargs: dict = {"name": name}

    if data.get("DESC"):
        kwargs["description"] = data["DESC"]
    if "DAEMON" in data:
        kwargs["daemon"] = _optional_path(data["DAEMON"])
    if "DAEMON_ARGS" in data:
        kwargs["daemon_args"] = tuple(shlex.split(data["DAEMON_ARGS"]))
    if "PIDFILE" in data:
        kwargs["pid_file"] = _optional_path(data["PIDFILE"])
    if "LOCKFILE" in data:
        kwargs["lock_file"] = _optional_path(data["LOCKFILE"])
    if "VERBOSE" in data:
        kwargs["verbose"] = parse_verbose(data["VERBOSE"])
    if data.get("STOP_SCHEDULE"):
        kwargs["stop_schedule"] = StopSchedule.parse(data["STOP_SCHEDULE"])
    if data.get("RELOAD_SIGNAL"):
        kwargs["reload_signal"] = parse_signal(data["RELOAD_SIGNAL"])
    if data.get("RESTART_DELAY"):
        try:
            kwargs["restart_delay"] = float(data["RESTART_DELAY"])
        except ValueError:
            raise ValueError(
                f"RESTART_DELAY must be a number, got {data['RESTART_DELAY']!r}"
            ) from None
    if data.get("SUPERVISOR"):
        kwargs["supervisor"] = data["SUPERVISOR"]

    return ServiceConfig(**kwargs)


def load_service_config(env: Mapping[str, str] | None = None) -> ServiceConfig:
    """Load the service configuration cascade.

    Args:
        env: Environment mapping (default: os.environ)

    Returns:
        Frozen ServiceConfig

    Raises:
        ConfigurationError: If a value from any layer is invalid
    """
    env = os.environ if env is None else env
    name = get_service_name(env)
    defaults_path = get_defaults_file_path(name, env)

    data: dict[str, str] = {}
    data.update(_load_layer(get_rcs_file_path(env), RCS_KEYS))
    data.update(_load_layer(defaults_path, CONFIG_KEYS))
    data.update(_env_layer(env))

    try:
        return config_data_to_service_config(name, data)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid configuration for {name}: {e}",
            hint=f"Check {defaults_path} and the environment",
        ) from e


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def resolve_executable(config: ServiceConfig) -> ServiceIdentity:
    """Resolve the daemon executable for a service.

    An explicit DAEMON path is used as-is; otherwise each directory of the
    search path is tried in order for an executable named after the service.

    Args:
        config: Service configuration

    Returns:
        ServiceIdentity whose executable is None if nothing was found
    """
    if config.daemon is not None:
        candidates = [config.daemon]
    else:
        candidates = [directory / config.name for directory in config.search_path]

    for candidate in candidates:
        if _is_executable(candidate):
            resolved = candidate.absolute()
            logger.debug("Resolved %s to %s", config.name, resolved)
            return ServiceIdentity(name=config.name, executable=resolved)

    logger.debug("No executable found for %s in %s", config.name, candidates)
    return ServiceIdentity(name=config.name, executable=None)
