# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Common trivial helpers.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from itertools import groupby
from cpupwrlibs.helperlibs.Exceptions import Error, ErrorBadFormat

if typing.TYPE_CHECKING:
    from typing import Iterable

def str_to_int(snum: str | int, base: int = 0, what: str = "") -> int:
    """
    Convert a string to an integer value.

    Args:
        snum: The value to convert to 'int'.
        base: Base of 'snum'. Defaults to auto-detect based on the prefix.
        what: A string describing the value to convert, for the possible error message.

    Returns:
        The converted integer value.

    Raises:
        ErrorBadFormat: If 'snum' cannot be converted to an integer.
    """

    try:
        return int(str(snum).strip(), base)
    except (ValueError, TypeError):
        if not what:
            what = "value"
        if base:
            errmsg = f"a base {base} integer"
        else:
            errmsg = "an integer"
        raise ErrorBadFormat(f"Bad {what} '{snum}': should be {errmsg}") from None

def is_int(value: str | int, base: int = 0) -> bool:
    """
    Check if 'value' can be converted to 'int' type.

    Args:
        value: The value to check.
        base: Base of the value. Defaults to auto-detect based on the prefix.

    Returns:
        True if 'value' can be converted to 'int' type, False otherwise.
    """

    try:
        int(str(value), base)
    except (ValueError, TypeError):
        return False
    return True

def validate_range(minval: int, maxval: int, min_limit: int | None = None,
                   max_limit: int | None = None, what: str = ""):
    """
    Validate range ['minval', 'maxval'].

    Args:
        minval: The minimum value (first number in the range).
        maxval: The maximum value (second number in the range).
        min_limit: The minimum allowed value for 'minval'.
        max_limit: The maximum allowed value for 'maxval'.
        what: A string describing the range, for the possible error messages.

    Raises:
        ErrorBadFormat: If the range is invalid.
    """

    if not what:
        what = "range"
    pfx = f"Bad {what} '[{minval},{maxval}]'"

    if minval > maxval:
        raise ErrorBadFormat(f"{pfx}: min. value '{minval}' should not be greater than max. value "
                             f"'{maxval}'")

    if min_limit is not None and minval < min_limit:
        raise ErrorBadFormat(f"{pfx}: should be within '[{min_limit},{max_limit}]'")

    if max_limit is not None and maxval > max_limit:
        raise ErrorBadFormat(f"{pfx}: should be within '[{min_limit},{max_limit}]'")

def list_dedup(elts: Iterable) -> list:
    """
    Return a list of unique elements in 'elts', preserving the order.

    Args:
        elts: The elements.

    Returns:
        A list of unique elements.
    """

    return list(dict.fromkeys(elts))

def split_csv_line(csv_line: str, sep: str = ",", dedup: bool = False) -> list[str]:
    """
    Split a comma-separated values line and return the list of non-empty values.

    Args:
        csv_line: The comma-separated line to split.
        sep: The separator character.
        dedup: If True, remove duplicated elements from the returned list.

    Returns:
        The list of values.
    """

    result = []
    for val in csv_line.strip().strip(sep).split(sep):
        val = val.strip()
        if val:
            result.append(val)

    if dedup:
        return list_dedup(result)
    return result

def split_csv_line_int(csv_line: str, sep: str = ",", dedup: bool = False,
                       what: str = "") -> list[int]:
    """
    Split a comma-separated line of integers and inclusive integer ranges, and return the list of
    integers.

    Args:
        csv_line: The comma-separated line to split.
        sep: The separator character.
        dedup: If True, remove duplicated elements from the returned list.
        what: A string describing the values in 'csv_line', for the possible error message.

    Returns:
        The list of integers.

    Raises:
        ErrorBadFormat: If 'csv_line' cannot be converted to a list of integers.

    Example:
        Input: csv_line = "0,1-3,7"
        Output: [0, 1, 2, 3, 7].
    """

    if not what:
        what = "value"

    result: list[int] = []
    for val in split_csv_line(csv_line, sep=sep):
        if "-" not in val:
            result.append(str_to_int(val, base=10, what=what))
            continue

        range_vals = [range_val for range_val in val.split("-") if range_val]
        if len(range_vals) != 2:
            raise ErrorBadFormat(f"Bad {what} '{csv_line}': error in '{val}': should be two "
                                 f"integers separated by '-'")

        rvals = [str_to_int(rval, base=10, what=what) for rval in range_vals]
        if rvals[0] > rvals[1]:
            raise ErrorBadFormat(f"Bad {what} '{csv_line}': error in range '{val}': the first "
                                 f"number should be smaller than the second")

        result += range(rvals[0], rvals[1] + 1)

    if dedup:
        return list_dedup(result)
    return result

def rangify(numbers: Iterable[int]) -> str:
    """
    Convert numbers into a comma-separated string of ranges, e.g., [0, 1, 2, 3, 5] -> "0-3,5".

    Args:
        numbers: The numbers to convert.

    Returns:
        The comma-separated string of numbers and ranges.
    """

    try:
        numbers_int = sorted(int(number) for number in numbers)
    except (ValueError, TypeError) as err:
        raise Error(f"failed to translate numbers to ranges, expected list of numbers, got "
                    f"'{numbers}'") from err

    range_strs = []
    for _, pairs in groupby(enumerate(numbers_int), lambda x: x[0] - x[1]):
        nums = [val for _, val in pairs]
        if len(nums) > 2:
            range_strs.append(f"{nums[0]}-{nums[-1]}")
        else:
            range_strs += [str(num) for num in nums]

    return ",".join(range_strs)
