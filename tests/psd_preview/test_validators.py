import math

import attr
import pytest

from psd_preview.validators import finite_or, in_, range_


@attr.s
class Sample(object):
    count = attr.ib(validator=range_(0, 10))
    kind = attr.ib(default="a", validator=in_(("a", "b")))
    value = attr.ib(default=1.0, converter=finite_or(1.0))


@pytest.mark.parametrize("count", [0, 5, 10])
def test_range(count):
    assert Sample(count).count == count


@pytest.mark.parametrize("count", [-1, 11, "x", None])
def test_range_invalid(count):
    with pytest.raises(ValueError):
        Sample(count)


def test_range_unbounded():
    assert repr(range_(0)) == "<range_ validator with [0, inf]>"


def test_in():
    with pytest.raises(ValueError):
        Sample(1, kind="c")


@pytest.mark.parametrize(
    "value, expected",
    [(0.25, 0.25), ("0.5", 0.5), (math.nan, 1.0), (-math.inf, 1.0), (None, 1.0), ([], 1.0)],
)
def test_finite_or(value, expected):
    assert Sample(1, value=value).value == expected
