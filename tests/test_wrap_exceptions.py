# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Tests for the 'ClassHelpers.WrapExceptions' class.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import errno
import typing
from typing import cast
import pytest
from cpupwrlibs.helperlibs import ClassHelpers
from cpupwrlibs.helperlibs.Exceptions import Error, ErrorPermissionDenied, ErrorNotFound

if typing.TYPE_CHECKING:
    from typing import Any, Final

_TEST_VALUE: Final[int] = 42

class _TestClass:
    """
    A test class for testing the functionality of the 'WrapExceptions' class.
    """

    def __init__(self):
        """Initialize the test class."""

        self.attr = _TEST_VALUE

    def no_exceptions(self) -> int:
        """No exceptions are raised."""

        return _TEST_VALUE

    def raise_value_error(self):
        """Raise a 'ValueError' exception."""

        raise ValueError("Test 'ValueError' exception")

    def raise_permission_error(self):
        """Raise a 'PermissionError' exception."""

        raise PermissionError(errno.EACCES, "Test 'PermissionError' exception")

    def raise_file_not_found_error(self):
        """Raise a 'FileNotFoundError' exception."""

        raise FileNotFoundError("Test 'FileNotFoundError' exception")

    def raise_error(self):
        """Raise an 'Error' exception."""

        raise ErrorNotFound("Test 'ErrorNotFound' exception")

    def __enter__(self) -> _TestClass:
        """Enter the runtime context."""

        return self

    def __exit__(self, *_: Any) -> None:
        """Exit the runtime context."""

        raise OSError("Test 'OSError' exception.")

def test_base_functionality():
    """Test the 'WrapExceptions' class base functionality."""

    test_obj = _TestClass()
    wrapped_obj = cast(_TestClass, ClassHelpers.WrapExceptions(test_obj))

    assert wrapped_obj.no_exceptions() == _TEST_VALUE, \
           f"Expected no exceptions to be raised and return {_TEST_VALUE}."
    assert wrapped_obj.attr == _TEST_VALUE

    with pytest.raises(Error, match="raise_value_error"):
        wrapped_obj.raise_value_error()

    with pytest.raises(ErrorPermissionDenied) as excinfo:
        wrapped_obj.raise_permission_error()
    assert getattr(excinfo.value, "errno") == errno.EACCES

    with pytest.raises(ErrorNotFound):
        wrapped_obj.raise_file_not_found_error()

    # Exceptions derived from 'Error' are not wrapped.
    with pytest.raises(ErrorNotFound, match="^Test 'ErrorNotFound' exception$"):
        wrapped_obj.raise_error()

def test_err_prefix():
    """Test the custom exception message prefix."""

    def _get_err_prefix(obj: Any, method: str) -> str:
        """Return the exception message prefix."""

        return f"{type(obj).__name__}.{method} says"

    wrapped_obj = cast(_TestClass, ClassHelpers.WrapExceptions(_TestClass(),
                                                               get_err_prefix=_get_err_prefix))

    with pytest.raises(Error, match="_TestClass.raise_value_error says"):
        wrapped_obj.raise_value_error()

def test_context():
    """Test that 'WrapExceptions' class wraps exceptions from context managers."""

    test_obj = _TestClass()
    wrapped_obj = cast(_TestClass, ClassHelpers.WrapExceptions(test_obj))

    try:
        with wrapped_obj:
            pass
    except Error:
        pass
    except Exception as err: # pylint: disable=broad-except
        assert False, f"Expected an 'Error' exception, but got {type(err)}."
    else:
        assert False, "Expected an 'Error' exception, but no exception was raised."
