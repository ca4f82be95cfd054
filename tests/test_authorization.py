#!/usr/bin/env python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Test for the 'Authorization' module.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import common
from cpupwrlibs.Authorization import AuthGate, AuthKey, DEFAULT_ACTION_ID

def test_local_caller():
    """Test that local calls are always authorized without querying the authority."""

    authority = common.FakeAuthority(is_authorized=False)
    with AuthGate(authority) as gate:
        assert gate.authorize(None)
        assert not authority.queries
        assert not gate.cache

def test_cache():
    """Test that authorized non-challenge answers are cached."""

    authority = common.FakeAuthority()
    with AuthGate(authority) as gate:
        assert gate.authorize(":1.10")
        assert gate.authorize(":1.10")
        assert authority.queries == [(":1.10", DEFAULT_ACTION_ID)]
        assert AuthKey(":1.10", DEFAULT_ACTION_ID) in gate.cache

        # A different caller and a different action are different keys.
        assert gate.authorize(":1.11")
        assert gate.authorize(":1.10", action_id="io.github.cpupwr.other")
        assert len(authority.queries) == 3
        assert len(gate.cache) == 3

def test_denied():
    """Test that denials are never cached."""

    authority = common.FakeAuthority(is_authorized=False)
    with AuthGate(authority) as gate:
        assert not gate.authorize(":1.10")
        assert not gate.authorize(":1.10")
        assert len(authority.queries) == 2
        assert not gate.cache

def test_challenge():
    """Test that answers that involved a challenge are not cached."""

    authority = common.FakeAuthority(is_challenge=True)
    with AuthGate(authority) as gate:
        assert gate.authorize(":1.10")
        assert gate.authorize(":1.10")
        assert len(authority.queries) == 2
        assert not gate.cache

def test_authority_failure():
    """Test that authority failures and a missing authority are denials."""

    authority = common.FakeAuthority(fail=True)
    with AuthGate(authority) as gate:
        assert not gate.authorize(":1.10")
        assert not gate.cache

    with AuthGate(None) as gate:
        assert not gate.authorize(":1.10")
        assert gate.authorize(None)
