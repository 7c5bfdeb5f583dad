import numpy as np

from numpy.linalg import LinAlgError
from scipy.linalg import pinv

from .exceptions import SingularMetric
from .utils import pm, pairwise_count, initsvd


def classify_blocks(n, pjs):
    """Primal regime when a block has no more variables than observations."""
    return ["primal" if n >= p else "dual" for p in pjs]


def pseudo_inverse(M):
    """Generalized inverse of a regularized metric.

    Rows and columns holding flagged (NaN) entries are kept out of the
    inversion and stay NaN in the returned matrix.
    """
    defined = ~np.isnan(M).any(axis=0)
    Minv = np.full_like(M, np.nan)
    if not defined.any():
        return Minv
    sub = np.ix_(defined, defined)
    try:
        Minv[sub] = pinv(M[sub])
    except (LinAlgError, ValueError) as e:
        raise SingularMetric(f"The regularized metric could not be inverted: {e}") from e
    if not np.all(np.isfinite(Minv[sub])):
        raise SingularMetric("The generalized inverse of the regularized metric is not finite.")
    return Minv


class PrimalBlock:
    """Block updated in the variable space (outer weight vector a of size p).

    With tau < 1, `metric` is tau * I_p + (1 - tau) * X'X / N where every
    entry of X'X is divided by its own count of jointly observed rows, and
    `metric_inv` is its generalized inverse.
    """

    regime = "primal"

    def __init__(self, X, tau, bias=True, na_rm=True):
        self.X = X
        self.tau = tau
        self.na_rm = na_rm
        self.metric = None
        self.metric_inv = None
        self.a = None

        if tau != 1:
            p = X.shape[1]
            cross = pm(X.T, X, na_rm=na_rm)
            self.metric = tau * np.eye(p) + (1 - tau) * cross / pairwise_count(X.T, X, bias=bias)
            self.metric_inv = pseudo_inverse(self.metric)

    def quadratic_form(self, a):
        if self.tau == 1:
            return pm(a, a, na_rm=self.na_rm)
        return pm(a, pm(self.metric, a, na_rm=self.na_rm), na_rm=self.na_rm)

    def initialize(self, init, random_state):
        if init == "svd":
            a = initsvd(self.X, dual=False)
        else:
            a = random_state.normal(size=self.X.shape[1])
        self.a = a / np.sqrt(self.quadratic_form(a))
        return self.a

    def update(self, z):
        xz = pm(self.X.T, z, na_rm=self.na_rm)
        if self.tau == 1:
            self.a = xz / np.sqrt(pm(xz, xz, na_rm=self.na_rm))
        else:
            w = pm(self.metric_inv, xz, na_rm=self.na_rm)
            self.a = w / np.sqrt(pm(xz, w, na_rm=self.na_rm))
        return self.a

    def component(self):
        return pm(self.X, self.a, na_rm=self.na_rm)


class DualBlock:
    """Block updated in the observation space (dual weight vector alpha of size n).

    The outer weight vector is recovered as a = X' alpha. The kernel K = XX'
    replaces the p x p covariance: with tau < 1, `metric` is
    tau * I_n + (1 - tau) * K / N and `metric_inv` its generalized inverse.
    """

    regime = "dual"

    def __init__(self, X, tau, bias=True, na_rm=True):
        self.X = X
        self.tau = tau
        self.na_rm = na_rm
        self.metric = None
        self.metric_inv = None
        self.alpha = None
        self.a = None

        self.kernel = pm(X, X.T, na_rm=na_rm)
        if tau != 1:
            n, p = X.shape
            N = n if bias else n - 1
            # rows observed on every variable are scaled by N, like X'X in the
            # primal regime; partially observed pairs by their observed share
            count = N * pairwise_count(X, X.T) / p
            self.metric = tau * np.eye(n) + (1 - tau) * self.kernel / count
            self.metric_inv = pseudo_inverse(self.metric)

    def quadratic_form(self, alpha):
        Ka = pm(self.kernel, alpha, na_rm=self.na_rm)
        if self.tau == 1:
            return pm(alpha, Ka, na_rm=self.na_rm)
        return pm(alpha, pm(self.metric, Ka, na_rm=self.na_rm), na_rm=self.na_rm)

    def initialize(self, init, random_state):
        if init == "svd":
            alpha = initsvd(self.X, dual=True)
        else:
            alpha = random_state.normal(size=self.X.shape[0])
        self.alpha = alpha / np.sqrt(self.quadratic_form(alpha))
        self.a = pm(self.X.T, self.alpha, na_rm=self.na_rm)
        return self.a

    def update(self, z):
        Kz = pm(self.kernel, z, na_rm=self.na_rm)
        if self.tau == 1:
            self.alpha = z / np.sqrt(pm(z, Kz, na_rm=self.na_rm))
        else:
            w = pm(self.metric_inv, z, na_rm=self.na_rm)
            self.alpha = w / np.sqrt(pm(Kz, w, na_rm=self.na_rm))
        self.a = pm(self.X.T, self.alpha, na_rm=self.na_rm)
        return self.a

    def component(self):
        return pm(self.X, self.a, na_rm=self.na_rm)


def make_block(X, tau, regime, bias=True, na_rm=True):
    if regime == "primal":
        return PrimalBlock(X, tau, bias=bias, na_rm=na_rm)
    if regime == "dual":
        return DualBlock(X, tau, bias=bias, na_rm=na_rm)
    raise ValueError(f"regime = {regime!r} should be 'primal' or 'dual'.")
