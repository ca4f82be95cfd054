# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Provide the authorization gate of the privileged helper: decide whether a D-Bus caller is allowed
to perform an action by asking an external authority (polkit), and cache positive answers.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from typing import NamedTuple
from cpupwrlibs.helperlibs import Logging, ClassHelpers
from cpupwrlibs.helperlibs.Exceptions import Error

if typing.TYPE_CHECKING:
    from typing import Protocol

    class AuthorityType(Protocol):
        """The external authority interface, implemented by 'PolkitAuthority'."""

        def check_authorization(self, caller: str, action_id: str,
                                timeout: float) -> tuple[bool, bool, dict[str, str]]:
            """Return the '(is_authorized, is_challenge, details)' answer for 'caller'."""

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

# The action ID of applying CPU settings at run-time.
DEFAULT_ACTION_ID = "io.github.cpupwr.apply-runtime"

# How long to wait for the authority answer, in seconds. The answer may require user interaction
# (typing the password), so the timeout is long.
DEFAULT_AUTH_TIMEOUT = 120

class AuthKey(NamedTuple):
    """
    The authorization cache key.

    Attributes:
        caller: The unique D-Bus name of the caller.
        action_id: The polkit action ID.
    """

    caller: str
    action_id: str

class AuthCache:
    """
    The authorization cache. It only stores positive answers, and entries never expire: the cache
    lives as long as the service instance that owns it.
    """

    def __init__(self):
        """Initialize a class instance."""

        self._authorized: set[AuthKey] = set()

    def __contains__(self, key: AuthKey) -> bool:
        """Return 'True' if 'key' is cached as authorized."""

        return key in self._authorized

    def __len__(self) -> int:
        """Return the number of cached entries."""

        return len(self._authorized)

    def add(self, key: AuthKey):
        """Cache 'key' as authorized."""

        self._authorized.add(key)

    def clear(self):
        """Drop all cached entries."""

        self._authorized.clear()

class AuthGate(ClassHelpers.SimpleCloseContext):
    """
    Decide whether callers are authorized to perform actions.

    Calls that do not come through the D-Bus boundary ('caller' is 'None') are always authorized.
    For other calls, the cache is consulted first, then the authority is queried. Only answers that
    are authorized and did not involve a challenge are cached. Authority failures are denials.
    """

    def __init__(self,
                 authority: AuthorityType | None,
                 action_id: str = DEFAULT_ACTION_ID,
                 timeout: float = DEFAULT_AUTH_TIMEOUT):
        """
        Initialize a class instance.

        Args:
            authority: The external authority object (e.g., 'PolkitAuthority'). 'None' if no
                       authority is available, in which case all D-Bus callers are denied.
            action_id: The default action ID.
            timeout: The authority query timeout in seconds.
        """

        self._authority = authority
        self.action_id = action_id
        self.timeout = timeout

        self.cache = AuthCache()

    def close(self):
        """Uninitialize the class object."""

        self.cache.clear()
        ClassHelpers.close(self, unref_attrs=("_authority",))

    def authorize(self, caller: str | None, action_id: str | None = None) -> bool:
        """
        Check if 'caller' is authorized to perform action 'action_id'.

        Args:
            caller: The unique D-Bus name of the caller, 'None' for local calls.
            action_id: The action ID. Defaults to the action ID passed to the constructor.

        Returns:
            'True' if the caller is authorized, 'False' otherwise.
        """

        if caller is None:
            return True

        if action_id is None:
            action_id = self.action_id

        key = AuthKey(caller, action_id)
        if key in self.cache:
            _LOG.debug("'%s' is authorized for '%s' (cached)", caller, action_id)
            return True

        if not self._authority:
            _LOG.warning("no authority available, denying '%s' for '%s'", caller, action_id)
            return False

        try:
            is_authorized, is_challenge, _ = self._authority.check_authorization(caller, action_id,
                                                                                self.timeout)
        except Error as err:
            _LOG.warning("authorization check for '%s' failed:\n%s", caller, err.indent(2))
            return False

        _LOG.debug("authorization result for '%s', action '%s': authorized=%s, challenge=%s",
                   caller, action_id, is_authorized, is_challenge)

        if is_authorized and not is_challenge:
            self.cache.add(key)

        return bool(is_authorized)
