# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Provide the idle timer of the privileged helper: a cancellable, re-armable single-shot task that
requests a shutdown when the helper has not been called for a while.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from typing import Any, Callable
from cpupwrlibs.helperlibs import Logging, ClassHelpers

if typing.TYPE_CHECKING:
    from typing import Protocol

    class SchedulerType(Protocol):
        """
        The scheduler interface. The GLib main loop scheduler is used in production, tests use a
        fake one.
        """

        def schedule(self, seconds: float, callback: Callable[[], None]) -> Any:
            """Call 'callback' once after 'seconds' seconds, return a handle for 'cancel()'."""

        def cancel(self, handle: Any):
            """Cancel a scheduled call."""

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

# The default idle timeout in seconds.
DEFAULT_IDLE_TIMEOUT = 60

class IdleTimer(ClassHelpers.SimpleCloseContext):
    """
    Call the expiry callback when 'reset()' has not been called for 'timeout' seconds. A zero
    timeout disables the timer.
    """

    def __init__(self, timeout: float, on_expire: Callable[[], None], scheduler: SchedulerType):
        """
        Initialize a class instance. The timer is not armed until 'start()' is called.

        Args:
            timeout: The idle timeout in seconds, 0 to disable the timer.
            on_expire: The function to call when the timer expires.
            scheduler: The scheduler to arm the timer with.
        """

        self._timeout = timeout
        self._on_expire = on_expire
        self._scheduler = scheduler
        self._handle: Any = None

    def close(self):
        """Uninitialize the class object."""

        self.stop()
        ClassHelpers.close(self, unref_attrs=("_on_expire", "_scheduler"))

    @property
    def timeout(self) -> float:
        """The idle timeout in seconds."""

        return self._timeout

    def set_timeout(self, timeout: float):
        """Change the idle timeout to 'timeout' seconds and re-arm the timer, 0 disables it."""

        self._timeout = timeout
        if timeout > 0:
            self.reset()
        else:
            self.stop()

    def is_armed(self) -> bool:
        """Return 'True' if the timer is currently armed."""

        return self._handle is not None

    def _expired(self):
        """The scheduler callback."""

        self._handle = None
        _LOG.info("Idle timeout of %s seconds reached", self._timeout)
        self._on_expire()

    def stop(self):
        """Disarm the timer."""

        if self._handle is not None:
            self._scheduler.cancel(self._handle)
            self._handle = None

    def reset(self):
        """(Re-)arm the timer for the full timeout, unless the timer is disabled."""

        self.stop()
        if self._timeout > 0:
            self._handle = self._scheduler.schedule(self._timeout, self._expired)

    def start(self):
        """Arm the timer. Same as 'reset()'."""

        self.reset()
