import numpy as np
import pytest

from naRGCCA.exceptions import InvalidScheme
from naRGCCA.scheme import Centroid, Custom, Factorial, Horst, check_scheme


x = np.array([-2.0, -0.5, 0.5, 3.0])


@pytest.mark.parametrize(
    "name, cls, g, dg",
    [
        ("horst", Horst, x, np.ones(4)),
        ("factorial", Factorial, x ** 2, 2 * x),
        ("centroid", Centroid, np.abs(x), np.sign(x)),
    ],
)
def test_builtin_schemes(name, cls, g, dg):
    scheme = check_scheme(name)
    assert isinstance(scheme, cls)
    assert scheme.name == name
    assert np.allclose(scheme.g(x), g)
    assert np.allclose(scheme.dg(x), dg)


def test_scheme_instance_is_kept():
    scheme = Factorial()
    assert check_scheme(scheme) is scheme


@pytest.mark.parametrize("scheme", ["pls", "Horst", 3, None])
def test_invalid_scheme(scheme):
    with pytest.raises(InvalidScheme):
        check_scheme(scheme)


def test_invalid_scheme_is_a_value_error():
    with pytest.raises(ValueError):
        check_scheme("pls")


class TestCustom:

    def test_callable_is_wrapped(self):
        scheme = check_scheme(lambda t: t ** 4)
        assert isinstance(scheme, Custom)
        assert np.allclose(scheme.g(x), x ** 4)

    def test_numerical_derivative(self):
        scheme = Custom(lambda t: t ** 4)
        assert np.allclose(scheme.dg(x), 4 * x ** 3, rtol=1e-6)

    def test_numerical_derivative_keeps_shape_and_nan(self):
        scheme = Custom(lambda t: t ** 2)
        values = np.array([[1.0, np.nan], [0.5, -1.0]])
        df = scheme.dg(values)
        assert df.shape == (2, 2)
        assert np.isnan(df[0, 1])
        assert np.allclose(df[[0, 1, 1], [0, 0, 1]], [2.0, 1.0, -2.0], rtol=1e-6)

    def test_supplied_derivative_is_used(self):
        scheme = Custom(lambda t: t ** 4, lambda t: 4 * t ** 3)
        assert np.array_equal(scheme.dg(x), 4 * x ** 3)

    def test_derivative_must_be_callable(self):
        with pytest.raises(InvalidScheme):
            Custom(lambda t: t ** 4, dg="4x^3")
