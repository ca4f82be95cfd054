# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Load YAML files with support for the "include" statement.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

from pathlib import Path
from typing import Any, IO, cast
import yaml
from cpupwrlibs.helperlibs import Logging
from cpupwrlibs.helperlibs.Exceptions import Error, ErrorBadFormat

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

class _Loader(yaml.SafeLoader): # pylint: disable=too-many-ancestors
    """The safe YAML loader with the "include" key renaming mapping constructor."""

def _dict_constructor(loader: yaml.SafeLoader, node: yaml.MappingNode) -> dict[Any, Any]:
    """
    Construct a dictionary from a YAML mapping node, renaming "include" keys to "__include_<N>" so
    that multiple "include" statements in one mapping do not overwrite each other.
    """

    includes = 0
    pairs = loader.construct_pairs(node)
    for idx, pair in enumerate(pairs):
        if pair[0] == "include":
            pairs[idx] = (f"__include_{includes}", pair[1])
            includes += 1
        elif str(pair[0]).startswith("__include_"):
            raise ErrorBadFormat(f"illegal key '{pair[0]}', keys beginning with '__include_' are "
                                 f"reserved")
    return dict(pairs)

_Loader.add_constructor(yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _dict_constructor)

def _load(path: Path | IO[str], included: dict[Path, Path]) -> dict[str, Any]:
    """
    Load and parse a YAML file, recursively loading the included files.

    Args:
        path: Path to the YAML file or a file-like object to read from.
        included: Files that were already included, used for detecting circular includes.

    Returns:
        The loaded YAML contents.
    """

    fobj: IO[str]
    is_fobj = hasattr(path, "read")

    if is_fobj:
        fobj = cast(IO[str], path)
    else:
        try:
            # pylint: disable-next=consider-using-with
            fobj = open(cast(Path, path), "r", encoding="utf-8")
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"failed to open YAML file '{path}':\n{msg}") from None

    try:
        loaded = yaml.load(fobj, Loader=_Loader) # nosec
    except (TypeError, ValueError, yaml.YAMLError) as err:
        msg = Error(str(err)).indent(2)
        raise ErrorBadFormat(f"failed to parse YAML file '{path}':\n{msg}") from None
    except OSError as err:
        msg = Error(str(err)).indent(2)
        raise Error(f"failed to read YAML file '{path}':\n{msg}") from None
    finally:
        if not is_fobj:
            fobj.close()

    if not loaded:
        return {}

    if not isinstance(loaded, dict):
        raise ErrorBadFormat(f"bad YAML file '{path}': the top-level element should be a mapping, "
                             f"got '{type(loaded).__name__}'")

    result: dict[str, Any] = {}

    for key, value in loaded.items():
        if not str(key).startswith("__include_"):
            result[key] = value
            continue

        if is_fobj:
            raise Error("file-like objects are not supported for YAML files that contain the "
                        "'include' statement, provide the path instead")
        path = cast(Path, path)

        try:
            value = Path(value)
        except TypeError as err:
            msg = Error(str(err)).indent(2)
            raise ErrorBadFormat(f"bad 'include' statement in YAML file '{path}':\n{msg}") from None

        if not value.is_absolute():
            value = path.parent / value

        if value in included:
            raise Error(f"circular include: path '{value}' in YAML file '{path}' was already "
                        f"included from '{included[value]}'")

        included[value] = path
        result.update(_load(value, included))

    if not is_fobj:
        _LOG.debug("loaded YAML file '%s'", path)

    return result

def load(path: str | Path | IO[str]) -> dict[str, Any]:
    """
    Load a YAML file. On top of the standard safe loader, support the 'include' statement, which
    includes the contents of another YAML file (relative paths are relative to the including file).

    Args:
        path: Path to the YAML file to load or a file-like object to read the YAML contents from.

    Returns:
        A dictionary with the contents of the loaded YAML file.

    Raises:
        ErrorBadFormat: If the file is not valid YAML or the top-level element is not a mapping.
    """

    if isinstance(path, str):
        path = Path(path)

    return _load(path, {})
