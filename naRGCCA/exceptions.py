from numpy.linalg import LinAlgError
from sklearn.exceptions import ConvergenceWarning


class InvalidScheme(ValueError):
    """Raised when the scheme is neither a known name nor a callable."""


class InvalidInit(ValueError):
    """Raised when the initialization mode is neither "svd" nor "random"."""


class SingularMetric(LinAlgError):
    """Raised when a regularized metric cannot be pseudo-inverted."""


class NonConvergenceWarning(ConvergenceWarning):
    """Issued when the RGCCA algorithm reaches `max_iter` without converging."""
