import logging

import pytest
from pythonjsonlogger.json import JsonFormatter

from lib.logs import make_formatter, ColorFormatter, UnknownLogStyle, WithLogger


def test_formatters():
    assert isinstance(make_formatter('json'), JsonFormatter)
    assert isinstance(make_formatter('colorful'), ColorFormatter)
    assert type(make_formatter('normal')) is logging.Formatter

    with pytest.raises(UnknownLogStyle):
        make_formatter('fancy')


class Prefixed(WithLogger):
    @property
    def logger_prefix(self):
        return '[bsc] '


def test_class_logger_name():
    assert Prefixed().logger.name == '[bsc] Prefixed'
