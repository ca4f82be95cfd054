# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Miscellaneous common helpers for class objects.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

from typing import Any, Callable
from cpupwrlibs.helperlibs import Logging
from cpupwrlibs.helperlibs.Exceptions import Error, ErrorPermissionDenied, ErrorNotFound

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

class SimpleCloseContext:
    """
    A context manager implementation for classes that have a 'close()' method. Subclass it to get
    '__enter__()' and '__exit__()' for free.
    """

    def close(self):
        """Uninitialize the class object. Supposed to be implemented by the subclass."""

    def __enter__(self):
        """Enter the run-time context."""
        return self

    def __exit__(self, *_: Any):
        """Exit from the runtime context."""

        self.close()

class WrapExceptions:
    """
    Wrap an object and translate exceptions raised by its public methods into cpupwr exceptions:
        - PermissionError -> ErrorPermissionDenied
        - FileNotFoundError -> ErrorNotFound
        - Other exceptions derived from 'Exception' -> Error
    Exceptions already derived from 'Error' and exceptions not derived from 'Exception' pass
    through unchanged.
    """

    def __init__(self, obj: Any, get_err_prefix: Callable[[Any, str], str] | None = None):
        """
        Initialize a class instance.

        Args:
            obj: The object to wrap.
            get_err_prefix: A callable returning the exception message prefix. Called with the
                            wrapped object and the name of the method that raised.
        """

        self._obj = obj
        self._get_err_prefix = get_err_prefix

    def _format_exception(self, name: str, err: Exception, exc_type: type[Error]) -> Error:
        """Build an exception of type 'exc_type' for exception 'err' raised by method 'name'."""

        errmsg = Error(str(err)).indent(2)
        if self._get_err_prefix:
            msg = f"{self._get_err_prefix(self._obj, name)}:\n{errmsg}"
        else:
            msg = f"method '{name}()' failed:\n{errmsg}"

        kwargs: dict[str, Any] = {}
        if hasattr(err, "errno"):
            kwargs["errno"] = getattr(err, "errno")

        return exc_type(msg, **kwargs)

    def _get_wrapper(self, name: str, method: Callable) -> Callable:
        """Return a version of 'method' with translated exceptions."""

        def wrapper(*args: Any, **kwargs: Any) -> Any:
            """Translate the exceptions."""

            try:
                return method(*args, **kwargs)
            except Error:
                raise
            except PermissionError as err:
                raise self._format_exception(name, err, ErrorPermissionDenied) from err
            except FileNotFoundError as err:
                raise self._format_exception(name, err, ErrorNotFound) from err
            except Exception as err: # pylint: disable=broad-except
                raise self._format_exception(name, err, Error) from err

        return wrapper

    def __getattr__(self, name: str) -> Any:
        """Return attribute 'name' of the wrapped object, wrapping public methods."""

        attr = getattr(self._obj, name)

        if name.startswith("_") or not callable(attr):
            return attr

        return self._get_wrapper(name, attr)

    def __enter__(self):
        """Enter the run-time context."""

        self._get_wrapper("__enter__", self._obj.__enter__)()
        return self

    def __exit__(self, *args: Any):
        """Exit from the runtime context."""

        return self._get_wrapper("__exit__", self._obj.__exit__)(*args)

def close(cls_obj: Any,
          close_attrs: list[str] | tuple[str, ...] = tuple(),
          unref_attrs: list[str] | tuple[str, ...] = tuple()):
    """
    Uninitialize a class object by closing and dropping objects referred to by its attributes.

    Args:
        cls_obj: The class object to uninitialize.
        close_attrs: Attribute names referring to objects that should be closed: their 'close()'
                     method is called, and the attribute is set to 'None'. If the class object has
                     a '_close_{attr}' attribute (or '_close{attr}' for private attributes), it
                     decides whether 'close()' is called.
        unref_attrs: Attribute names referring to objects that should only be set to 'None'.
    """

    for attr in close_attrs:
        if not hasattr(cls_obj, attr):
            _LOG.warning("close(close_attrs=<attrs>): non-existing attribute '%s' in '%s'",
                         attr, cls_obj)

        obj = getattr(cls_obj, attr, None)
        if not obj:
            continue

        if attr.startswith("_"):
            name = f"_close{attr}"
        else:
            name = f"_close_{attr}"

        run_close = True
        if hasattr(cls_obj, name):
            run_close = getattr(cls_obj, name)
            if run_close not in (True, False):
                _LOG.warning("Bad value of attribute '%s' in '%s'", name, cls_obj)
                _LOG.debug_print_stacktrace()
                setattr(cls_obj, attr, None)
                continue

        if run_close:
            if hasattr(obj, "close"):
                obj.close()
            else:
                _LOG.debug("No 'close()' method in '%s'", obj)

        setattr(cls_obj, attr, None)

    for attr in unref_attrs:
        if not hasattr(cls_obj, attr):
            _LOG.warning("close(unref_attrs=<attrs>): non-existing attribute '%s' in '%s'",
                         attr, cls_obj)

        if getattr(cls_obj, attr, None):
            setattr(cls_obj, attr, None)
