import numpy as np

from scipy.differentiate import derivative

from .exceptions import InvalidScheme


class Scheme:
    """Convex differentiable function g applied to the block covariances.

    Subclasses provide `g` and its first derivative `dg`, both evaluated
    elementwise on arrays.
    """

    name = None

    def g(self, x):
        raise NotImplementedError

    def dg(self, x):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}()"


class Horst(Scheme):
    name = "horst"

    def g(self, x):
        return np.asarray(x, dtype=float)

    def dg(self, x):
        return np.ones_like(x, dtype=float)


class Factorial(Scheme):
    name = "factorial"

    def g(self, x):
        return np.asarray(x, dtype=float) ** 2

    def dg(self, x):
        return 2 * np.asarray(x, dtype=float)


class Centroid(Scheme):
    name = "centroid"

    def g(self, x):
        return np.abs(x)

    def dg(self, x):
        return np.sign(x)


class Custom(Scheme):
    """User designed scheme function.

    Parameters
    ----------
    g : callable
        Convex function, vectorized over numpy arrays.

    dg : callable, default=None
        First derivative of `g`. When omitted, the derivative is evaluated
        numerically with `scipy.differentiate.derivative`.
    """

    name = "custom"

    def __init__(self, g, dg=None):
        if not callable(g) or (dg is not None and not callable(dg)):
            raise InvalidScheme("A custom scheme needs callable g and dg.")
        self._g = g
        self._dg = dg

    def g(self, x):
        return self._g(x)

    def dg(self, x):
        if self._dg is not None:
            return self._dg(x)
        x = np.asarray(x, dtype=float)
        flat = x.ravel()
        df = np.full(flat.shape, np.nan)
        finite = np.isfinite(flat)
        if finite.any():
            df[finite] = derivative(self._g, flat[finite]).df
        return df.reshape(x.shape)

    def __repr__(self):
        return f"Custom(g={self._g!r}, dg={self._dg!r})"


SCHEMES = {"horst": Horst, "factorial": Factorial, "centroid": Centroid}


def check_scheme(scheme):
    """Resolve a scheme name, Scheme instance or callable into a Scheme."""
    if isinstance(scheme, Scheme):
        return scheme
    if isinstance(scheme, str):
        if scheme not in SCHEMES:
            raise InvalidScheme(
                f"scheme = {scheme!r} should be 'horst', 'factorial', 'centroid' or a convex function."
            )
        return SCHEMES[scheme]()
    if callable(scheme):
        return Custom(scheme)
    raise InvalidScheme(
        f"scheme = {scheme!r} should be 'horst', 'factorial', 'centroid' or a convex function."
    )
