import os

import pytest

from core.config import Settings
from misc.utils import instance_info, parse_int_param


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("250", 250),
        ("0", 0),
        (" 7 ", 7),
        ("abc", 100),
        ("1.5", 100),
        ("-3", 100),
        ("", 100),
        (None, 100),
    ],
)
def test_parse_int_param(raw, expected):
    assert parse_int_param(raw, 100) == expected


def test_instance_info_uses_given_settings():
    info = instance_info(Settings(HOSTNAME="box-7"))

    assert info["instance_id"] == "box-7"
    assert info["pid"] == os.getpid()
