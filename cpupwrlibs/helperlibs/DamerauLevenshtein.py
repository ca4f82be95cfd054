# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Jan-Kristian Herring

"""
Damerau-Levenshtein distance helpers, used for suggesting the closest command line argument.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

from typing import Iterable

def osa_distance(first: str, second: str) -> int:
    """Return the optimal string alignment distance between 'first' and 'second'."""

    rows = [[idx] for idx in range(len(first) + 1)]
    rows[0] = list(range(len(second) + 1))

    for fdx in range(1, len(first) + 1):
        for sdx in range(1, len(second) + 1):
            cost = 0 if first[fdx-1] == second[sdx-1] else 1

            rows[fdx].append(min(rows[fdx-1][sdx] + 1,          # Deletion.
                                 rows[fdx][sdx-1] + 1,          # Insertion.
                                 rows[fdx-1][sdx-1] + cost))    # Substitution.

            if fdx > 1 and sdx > 1 and first[fdx-1] == second[sdx-2] and \
               first[fdx-2] == second[sdx-1]: # Transposition.
                rows[fdx][sdx] = min(rows[fdx][sdx], rows[fdx-2][sdx-2] + cost)

    return rows[len(first)][len(second)]

def closest_match(string: str,
                  strings: Iterable[str],
                  max_distance: int = 2,
                  case_sensitive: bool = False) -> str | None:
    """
    Find the string closest to 'string' among 'strings'.

    Args:
        string: The string to find a match for.
        strings: The candidate strings.
        max_distance: The maximum allowed distance. Candidates further away are not matched.
        case_sensitive: Whether to take the letter case into account.

    Returns:
        The closest candidate or 'None' if no candidate is close enough.
    """

    if case_sensitive:
        candidates = {cand: cand for cand in strings}
    else:
        candidates = {cand.lower(): cand for cand in strings}
        string = string.lower()

    best_score = max_distance + 1
    best: str | None = None
    for cand in candidates:
        score = osa_distance(string, cand)
        if score < best_score:
            best_score = score
            best = cand

    if best is None:
        return None
    return candidates[best]
