# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import logging

import pytest

from tplnav_core import logconfig


def _reset_loggers():
    for name in logconfig.LOGGER_NAMES:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
    logconfig._handlers.clear()
    logconfig.AnalysisContext.clear()


@pytest.fixture(autouse=True)
def reset_loggers():
    """Start and end every test with unconfigured tplnav loggers."""
    _reset_loggers()
    yield
    _reset_loggers()
