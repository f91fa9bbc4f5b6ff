import pytest

from nadir.key import key_name


@pytest.mark.parametrize(
    "code, name",
    [
        (9, "ESCAPE"),
        (36, "ENTER"),
        (65, "SPACE"),
        (95, "F11"),
        (108, "ALT GR"),
        (165, "SUPER"),
    ],
)
def test_known_keys(code, name):
    assert key_name(code, "?") == name


def test_unknown_key_returns_default():
    assert key_name(38, "a") == "a"


def test_unknown_key_without_default():
    assert key_name(1000) is None