#!/usr/bin/env python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Test for the 'Config' module.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

from pathlib import Path
import pytest
from cpupwrlibs import Config, IdleTimer, Profiles
from cpupwrlibs.Authorization import DEFAULT_ACTION_ID
from cpupwrlibs.helperlibs.Exceptions import ErrorBadFormat

def _write(path: Path, contents: str):
    """Write 'contents' to file 'path'."""

    with open(path, "w", encoding="utf-8") as fobj:
        fobj.write(contents)

def test_defaults(tmp_path: Path):
    """Test that missing configuration files result in the default configuration."""

    config = Config.load([tmp_path / "missing.yaml"])
    assert config == Config.get_defaults()
    assert config["idle_timeout"] == IdleTimer.DEFAULT_IDLE_TIMEOUT
    assert config["action_id"] == DEFAULT_ACTION_ID
    assert config["sysfs_base"] == ""

def test_layering(tmp_path: Path):
    """Test that later configuration files override earlier ones."""

    system = tmp_path / "system.yaml"
    user = tmp_path / "user.yaml"

    _write(system, "idle_timeout: 30\nauth_timeout: 10\n")
    _write(user, "idle_timeout: 0\ncall_timeout: 2.5\n")

    config = Config.load([system, str(user)])
    assert config["idle_timeout"] == 0
    assert config["auth_timeout"] == 10
    assert config["call_timeout"] == 2.5
    assert config["action_id"] == DEFAULT_ACTION_ID

@pytest.mark.parametrize("contents", ["unknown_key: 1\n",
                                      "idle_timeout: yes\n",
                                      "idle_timeout: fast\n",
                                      "auth_timeout: -1\n",
                                      "action_id: 5\n",
                                      "- idle_timeout\n"])
def test_bad_config(tmp_path: Path, contents: str):
    """Test that bad configuration files are rejected."""

    path = tmp_path / "bad.yaml"
    _write(path, contents)

    with pytest.raises(ErrorBadFormat):
        Config.load([path])

def test_user_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Test that the user configuration and profiles directories follow 'XDG_CONFIG_HOME'."""

    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert Config.get_user_config_path() == tmp_path / "cpupwr" / "cpupwr.yaml"
    assert Profiles.get_user_profiles_dir() == tmp_path / "cpupwr"

    monkeypatch.delenv("XDG_CONFIG_HOME")
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    assert Config.get_user_config_path() == tmp_path / "home" / ".config" / "cpupwr" / "cpupwr.yaml"
    assert Profiles.get_user_profiles_dir() == tmp_path / "home" / ".config" / "cpupwr"
