# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Load the cpupwr configuration from layered YAML files.

The system configuration file is loaded first, then the user configuration file, keys of the latter
override keys of the former. Missing files are ignored.

Example:

    idle_timeout: 120
    user_profiles_dir: /home/user/cpupwr-profiles
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import os
import typing
from pathlib import Path
from typing import Any, Iterable
from cpupwrlibs import IdleTimer, OpQueue
from cpupwrlibs.Authorization import DEFAULT_ACTION_ID, DEFAULT_AUTH_TIMEOUT
from cpupwrlibs.helperlibs import Logging, YAML
from cpupwrlibs.helperlibs.Exceptions import ErrorBadFormat

if typing.TYPE_CHECKING:
    from typing import TypedDict

    class ConfigTypedDict(TypedDict):
        """
        The cpupwr configuration.

        Attributes:
            idle_timeout: The helper idle timeout in seconds, 0 disables the idle timer.
            auth_timeout: The polkit authorization timeout in seconds.
            action_id: The polkit action ID guarding CPU setting changes.
            sysfs_base: The CPU sysfs directory, empty string for the default.
            system_profiles_dir: The system profiles directory, empty string for the default.
            user_profiles_dir: The user profiles directory, empty string for the default.
            call_timeout: The timeout of client helper calls in seconds.
        """

        idle_timeout: float
        auth_timeout: float
        action_id: str
        sysfs_base: str
        system_profiles_dir: str
        user_profiles_dir: str
        call_timeout: float

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

SYSTEM_CONFIG_PATH = Path("/etc/cpupwr/cpupwr.yaml")

# Configuration key -> (value type, default value).
_KEYS: dict[str, tuple[type | tuple[type, ...], Any]] = {
    "idle_timeout": ((int, float), IdleTimer.DEFAULT_IDLE_TIMEOUT),
    "auth_timeout": ((int, float), DEFAULT_AUTH_TIMEOUT),
    "action_id": (str, DEFAULT_ACTION_ID),
    "sysfs_base": (str, ""),
    "system_profiles_dir": (str, ""),
    "user_profiles_dir": (str, ""),
    "call_timeout": ((int, float), OpQueue.DEFAULT_CALL_TIMEOUT),
}

def get_user_config_path() -> Path:
    """Return the user configuration file path."""

    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "cpupwr" / "cpupwr.yaml"
    return Path.home() / ".config" / "cpupwr" / "cpupwr.yaml"

def get_defaults() -> ConfigTypedDict:
    """Return the default configuration."""

    return typing.cast("ConfigTypedDict", {key: val[1] for key, val in _KEYS.items()})

def _validate(path: Path, contents: dict[str, Any]):
    """Validate the contents of configuration file 'path'."""

    for key, val in contents.items():
        if key not in _KEYS:
            known = ", ".join(_KEYS)
            raise ErrorBadFormat(f"bad configuration file '{path}': unknown key '{key}', known "
                                 f"keys are: {known}")

        valtype = _KEYS[key][0]
        # 'bool' is a subclass of 'int', but "idle_timeout: yes" is a mistake.
        if isinstance(val, bool) or not isinstance(val, valtype):
            raise ErrorBadFormat(f"bad configuration file '{path}': bad value '{val}' of key "
                                 f"'{key}'")

        if valtype != str and val < 0:
            raise ErrorBadFormat(f"bad configuration file '{path}': key '{key}' cannot be "
                                 f"negative, got '{val}'")

def load(paths: Iterable[Path | str] | None = None) -> ConfigTypedDict:
    """
    Load the configuration.

    Args:
        paths: The configuration files to load, in order. Later files override earlier ones. By
               default, load the system and then the user configuration file.

    Returns:
        The configuration dictionary, with defaults for the keys not present in any file.

    Raises:
        ErrorBadFormat: If a configuration file is not valid YAML, contains an unknown key, or a
                        value of a wrong type.
    """

    if paths is None:
        paths = (SYSTEM_CONFIG_PATH, get_user_config_path())

    config = get_defaults()

    for path in paths:
        path = Path(path)
        if not path.is_file():
            _LOG.debug("configuration file '%s' does not exist", path)
            continue

        contents = YAML.load(path)
        _validate(path, contents)

        for key, val in contents.items():
            if key in _KEYS:
                config[key] = val # type: ignore[literal-required]

        _LOG.debug("loaded configuration file '%s'", path)

    return config
