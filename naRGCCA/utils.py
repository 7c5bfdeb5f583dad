import numpy as np

from numpy.linalg import svd


def pm(A, B, na_rm=True):
    """Matrix product ignoring the pairs with a missing operand.

    Every scalar product sum_k A[i,k] * B[k,j] only runs over the k where both
    A[i,k] and B[k,j] are observed. Entries for which no such k exists are NaN.
    With `na_rm=False` this is the plain product `A @ B`.
    """
    A = np.asarray(A, dtype=float)
    B = np.asarray(B, dtype=float)
    if not na_rm:
        return A @ B
    A_obs, B_obs = ~np.isnan(A), ~np.isnan(B)
    product = np.where(A_obs, A, 0) @ np.where(B_obs, B, 0)
    if A_obs.all() and B_obs.all():
        return product
    count = A_obs.astype(float) @ B_obs.astype(float)
    return np.where(count > 0, product, np.nan)


def pairwise_count(A, B, bias=True):
    """Number of jointly observed pairs behind each entry of `pm(A, B)`.

    One is subtracted from every count when `bias` is False (unbiased
    estimator). Counts that end up non-positive are flagged as NaN.
    """
    A_obs = ~np.isnan(np.asarray(A, dtype=float))
    B_obs = ~np.isnan(np.asarray(B, dtype=float))
    count = A_obs.astype(float) @ B_obs.astype(float)
    if not bias:
        count = count - 1
    return np.where(count > 0, count, np.nan)


def _as_columns(x):
    x = np.asarray(x, dtype=float)
    return x.reshape(-1, 1) if x.ndim == 1 else x


def _pairwise_moments(X, Y):
    # counts, centered cross-products and sums of squares over the rows where
    # both columns of each (X, Y) pair are observed
    X_obs, Y_obs = ~np.isnan(X), ~np.isnan(Y)
    X0, Y0 = np.where(X_obs, X, 0), np.where(Y_obs, Y, 0)
    Xm, Ym = X_obs.astype(float), Y_obs.astype(float)
    with np.errstate(divide="ignore", invalid="ignore"):
        count = Xm.T @ Ym
        sx, sy = X0.T @ Ym, Xm.T @ Y0
        sxy = X0.T @ Y0 - sx * sy / count
        sxx = (X0 ** 2).T @ Ym - sx ** 2 / count
        syy = Xm.T @ (Y0 ** 2) - sy ** 2 / count
    return count, sxy, sxx, syy


def cov2(x, Y=None, bias=True, na_rm=True):
    """Covariances between the columns of x and the columns of Y.

    With `na_rm`, each covariance is computed on the pairwise complete
    observations and is NaN when there are not enough of them. The biased
    estimator divides by the number of observations, the unbiased one by that
    number minus one. When x is a vector the result is the vector of its
    covariances with every column of Y.
    """
    X = _as_columns(x)
    Y = X if Y is None else _as_columns(Y)
    if na_rm:
        count, sxy, _, _ = _pairwise_moments(X, Y)
        denom = count if bias else count - 1
        with np.errstate(divide="ignore", invalid="ignore"):
            S = np.where(denom > 0, sxy / denom, np.nan)
    else:
        q = X.shape[1]
        S = np.atleast_2d(np.cov(np.column_stack([X, Y]), rowvar=False, bias=bias))[:q, q:]
    return S[0] if np.ndim(x) == 1 else S


def cor2(Y, na_rm=True):
    """Correlation matrix of the columns of Y (pairwise complete with `na_rm`)."""
    Y = _as_columns(Y)
    if not na_rm:
        return np.atleast_2d(np.corrcoef(Y, rowvar=False))
    _, sxy, sxx, syy = _pairwise_moments(Y, Y)
    with np.errstate(divide="ignore", invalid="ignore"):
        return sxy / np.sqrt(sxx * syy)


def initsvd(X, dual=None):
    """First right singular vector of X when n >= p, first left one otherwise.

    `dual` forces the left (True) or right (False) singular vector. Missing
    entries are read as zeros, i.e. at the mean of centered variables.
    """
    X = np.nan_to_num(np.asarray(X, dtype=float))
    n, p = X.shape
    if dual is None:
        dual = n < p
    U, _, Vt = svd(X, full_matrices=False)
    if dual:
        return U[:, 0]
    return Vt[0, :]


def tau_estimate(X):
    """Shrinkage intensity of Schafer and Strimmer (2005).

    The estimate targets the identity matrix on standardized variables, so
    that tau = 1 means no trust in the empirical correlations and tau = 0 full
    trust. Missing entries are set to the mean of their variable.
    """
    X = np.asarray(X, dtype=float)
    n, p = X.shape
    sd = np.nanstd(X, axis=0, ddof=1)
    sd[~(sd > 0)] = 1
    Xs = np.nan_to_num((X - np.nanmean(X, axis=0)) / sd)

    corm = Xs.T @ Xs / (n - 1)
    v = (n / (n - 1) ** 3) * ((Xs ** 2).T @ (Xs ** 2) - (Xs.T @ Xs) ** 2 / n)
    np.fill_diagonal(v, 0)
    d = (corm - np.eye(p)) ** 2
    np.fill_diagonal(d, 0)

    if np.sum(d) == 0:
        return 1.0
    tau = np.sum(v) / np.sum(d)
    return float(max(min(tau, 1), 0))
