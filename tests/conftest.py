#!/usr/bin/env python
#
# Copyright (C) 2022-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Author: Antti Laakso <antti.laakso@linux.intel.com>
#         Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""This configuration file adds the custom '--dataset' option for the tests."""

import pytest
import common

def pytest_addoption(parser):
    """Add custom pytest options."""

    text = """The emulated CPU sysfs dataset to run the tests with. By default, all datasets are
              used. The datasets are defined in 'common.py'."""
    parser.addoption("-D", "--dataset", dest="dataset", default="all", help=text)

def pytest_generate_tests(metafunc):
    """Parametrize the tests that use the 'dataset' argument with the emulated datasets."""

    if "dataset" not in metafunc.fixturenames:
        return

    dataset = metafunc.config.getoption("dataset")
    if dataset == "all":
        params = common.get_datasets()
    else:
        params = [dataset]

    metafunc.parametrize("dataset", params)

def pytest_configure(config):
    """Verify the existence of requested dataset."""

    dataset = config.getoption("dataset")
    if dataset != "all" and dataset not in common.get_datasets():
        raise pytest.exit(f"Did not find dataset '{dataset}'.")

    print(f"Test parameters: dataset: '{dataset}'")
