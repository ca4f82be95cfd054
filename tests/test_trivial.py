#!/usr/bin/env python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Test for the 'Trivial' module.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import pytest
from cpupwrlibs.helperlibs import Trivial
from cpupwrlibs.helperlibs.Exceptions import Error, ErrorBadFormat

def test_int_helpers():
    """Test 'str_to_int()' and 'is_int()'."""

    assert Trivial.str_to_int(" 12 ") == 12
    assert Trivial.str_to_int("0x10") == 16
    assert Trivial.str_to_int("10", base=16) == 16

    with pytest.raises(ErrorBadFormat, match="Bad CPU number 'x'"):
        Trivial.str_to_int("x", what="CPU number")

    assert Trivial.is_int("-5")
    assert not Trivial.is_int("0x10", base=10)
    assert not Trivial.is_int("")

def test_validate_range():
    """Test the 'validate_range()' function."""

    Trivial.validate_range(1, 1)
    Trivial.validate_range(800, 4000, min_limit=800, max_limit=4000)

    with pytest.raises(ErrorBadFormat):
        Trivial.validate_range(2, 1)
    with pytest.raises(ErrorBadFormat):
        Trivial.validate_range(700, 4000, min_limit=800, max_limit=4000)
    with pytest.raises(ErrorBadFormat):
        Trivial.validate_range(800, 4100, min_limit=800, max_limit=4000)

def test_csv_helpers():
    """Test the comma-separated values helpers."""

    assert Trivial.split_csv_line(" a, b,,c, ") == ["a", "b", "c"]
    assert Trivial.split_csv_line("a,b,a", dedup=True) == ["a", "b"]
    assert Trivial.split_csv_line("") == []

    assert Trivial.split_csv_line_int("0,2-4,7") == [0, 2, 3, 4, 7]
    assert Trivial.split_csv_line_int("3,1-3", dedup=True) == [3, 1, 2]

    for bad in ("1-", "3-1", "1-2-3", "a"):
        with pytest.raises(ErrorBadFormat):
            Trivial.split_csv_line_int(bad)

def test_list_helpers():
    """Test 'list_dedup()' and 'rangify()'."""

    assert Trivial.list_dedup([3, 1, 3, 2, 1]) == [3, 1, 2]
    assert Trivial.list_dedup([]) == []

    assert Trivial.rangify([0, 1, 2, 3, 5]) == "0-3,5"
    assert Trivial.rangify([5, 0, 1, 7, 8]) == "0,1,5,7,8"
    assert Trivial.rangify({2: None, 3: None, 4: None}) == "2-4"
    assert Trivial.rangify([]) == ""

    with pytest.raises(Error):
        Trivial.rangify(["a"])
