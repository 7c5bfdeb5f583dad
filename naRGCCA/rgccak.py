import warnings
from collections import namedtuple

import matplotlib.pyplot as plt
import numpy as np

from sklearn.utils import Bunch, check_random_state

from .blocks import classify_blocks, make_block
from .exceptions import InvalidInit, NonConvergenceWarning
from .scheme import check_scheme
from .utils import cov2, cor2, tau_estimate

Iterate = namedtuple("Iterate", ["a", "crit", "n_iter"])


def check_tau(tau, A, shrinkage_estimator=tau_estimate):
    """Resolve the shrinkage parameters into a vector of J values in [0, 1].

    `tau` is a scalar, a sequence of J values, or "optimal" / "auto" to call
    `shrinkage_estimator` on every block.
    """
    J = len(A)
    if isinstance(tau, str):
        if tau not in ("optimal", "auto"):
            raise ValueError(f"tau = {tau!r} should be numeric, 'optimal' or 'auto'.")
        return np.clip(np.array([shrinkage_estimator(block) for block in A], dtype=float), 0, 1)

    tau = np.asarray(tau, dtype=float)
    if tau.ndim == 0:
        tau = np.full(J, float(tau))
    if tau.shape != (J,):
        raise ValueError(f"tau should contain one value per block ({J}), got shape {tau.shape}.")
    if not np.all((tau >= 0) & (tau <= 1)):
        raise ValueError(f"tau = {tau} should be in [0, 1] for each block.")
    return tau


def criterion(Y, C, scheme, bias=True, na_rm=True):
    G = C * scheme.g(cov2(Y, bias=bias, na_rm=na_rm))
    return float(np.nansum(G) if na_rm else np.sum(G))


def inner_component(Y, j, C, scheme, bias=True, na_rm=True):
    """Z_j = sum_k C[j,k] * dg(cov(Y_j, Y_k)) * Y_k"""
    dgx = scheme.dg(cov2(Y[:, j], Y, bias=bias, na_rm=na_rm))
    terms = C[j, :] * dgx * Y
    return np.nansum(terms, axis=1) if na_rm else np.sum(terms, axis=1)


def sweep(blocks, Y, C, scheme, bias=True, na_rm=True):
    """One pass of block updates over the blocks, in order.

    Each block sees the components already updated earlier in the same pass.
    """
    Y = Y.copy()
    for j, block in enumerate(blocks):
        block.update(inner_component(Y, j, C, scheme, bias=bias, na_rm=na_rm))
        Y[:, j] = block.component()
    return Y


def stopping_criteria(current, previous, na_rm=True):
    """Squared change of the concatenated weight vectors and change of the criterion."""
    diff = np.concatenate([a - a_old for a, a_old in zip(current.a, previous.a)])
    ss = np.nansum(diff ** 2) if na_rm else np.sum(diff ** 2)
    return np.array([ss, current.crit - previous.crit])


def has_converged(current, previous, tol, na_rm=True):
    return bool(np.any(stopping_criteria(current, previous, na_rm=na_rm) < tol))


def rgccak(
    A,
    C=None,
    tau=1,
    scheme="centroid",
    verbose=False,
    init="svd",
    bias=True,
    tol=1e-08,
    na_rm=True,
    max_iter=1000,
    random_state=None,
    shrinkage_estimator=tau_estimate,
    regime=None,
):
    """Compute the first RGCCA block components.

    Depending on the dimensions of each block, the primal (n >= p_j) or the
    dual (n < p_j) algorithm is used (Tenenhaus et al. 2015).

    Parameters
    ----------
    A : list of ndarray of shape (n_samples, n_features_j)
        The J blocks of variables, centered (and scaled) by the caller. They
        may hold NaN for missing values when `na_rm` is True.

    C : ndarray of shape (n_blocks, n_blocks), default=None
        Design matrix describing the connections between blocks. Defaults to
        the complete design.

    tau : float, list of shape (n_blocks,) or str, default=1
        Shrinkage parameters in [0, 1]. "optimal" (or "auto") estimates one
        value per block with `shrinkage_estimator`.

    scheme : {"horst", "factorial", "centroid"}, Scheme or callable, default="centroid"
        Convex differentiable scheme function g.

    verbose : bool, default=False
        Whether to report the progress of the algorithm and plot the criterion.

    init : {"svd", "random"}, default="svd"
        Initialization of the block weight vectors.

    bias : bool, default=True
        Whether to use the biased (divided by n) or unbiased (divided by n - 1)
        estimator of the covariances.

    tol : float, default=1e-08
        The algorithm stops as soon as the squared change of the weight
        vectors or the change of the criterion is below `tol`.

    na_rm : bool, default=True
        Whether every product and covariance is computed on the available
        (pairwise complete) data only.

    max_iter : int, default=1000
        Maximum number of iterations.

    random_state : int, RandomState instance or None, default=None
        Seed of the random initialization.

    shrinkage_estimator : callable, default=tau_estimate
        Function mapping a block to its shrinkage parameter, used when `tau`
        asks for an estimation.

    regime : list of {"primal", "dual"}, default=None
        Forces the algorithm used for each block instead of comparing n and p_j.

    Returns
    -------
    result : Bunch
        Y : ndarray of shape (n_samples, n_blocks), the block components.
        a : list of the outer weight vectors.
        crit : list of the criterion values, one per iteration.
        AVE_inner : the average variance explained by the inner model.
        C, tau, scheme : the design matrix, the resolved shrinkage parameters
            and the scheme.
        n_iter, converged : the number of iterations and whether the
            stopping test was met.
        blocks : the per-block states (metrics, kernels).
    """
    g = check_scheme(scheme)
    if init not in ("svd", "random"):
        raise InvalidInit(f"init = {init!r} should be either 'svd' or 'random'.")

    A = [np.asarray(block, dtype=float) for block in A]
    A = [block.reshape(-1, 1) if block.ndim == 1 else block for block in A]
    J = len(A) # Number of blocks
    n = A[0].shape[0] # Number of individuals
    pjs = [block.shape[1] for block in A] # Number of variables per block

    if any(block.shape[0] != n for block in A):
        raise ValueError("All blocks should have the same number of rows.")
    if not na_rm and any(np.isnan(block).any() for block in A):
        raise ValueError("Blocks contain missing values: use na_rm=True.")

    C = np.ones((J, J)) - np.eye(J) if C is None else np.asarray(C, dtype=float)
    if C.shape != (J, J):
        raise ValueError(f"C should be of shape ({J}, {J}), got {C.shape}.")

    tau = check_tau(tau, A, shrinkage_estimator)

    if regime is None:
        regime = classify_blocks(n, pjs)
    elif len(regime) != J:
        raise ValueError(f"regime should contain one value per block ({J}).")

    random_state = check_random_state(random_state)

    # Defining constraint matrices and initializing
    blocks = [make_block(A[j], tau[j], regime[j], bias=bias, na_rm=na_rm) for j in range(J)]
    Y = np.zeros((n, J))
    for j, block in enumerate(blocks):
        block.initialize(init, random_state)
        Y[:, j] = block.component()

    previous = Iterate(
        a=[block.a for block in blocks],
        crit=criterion(Y, C, g, bias=bias, na_rm=na_rm),
        n_iter=0,
    )
    crit = []

    while True:
        Y = sweep(blocks, Y, C, g, bias=bias, na_rm=na_rm)
        current = Iterate(
            a=[block.a for block in blocks],
            crit=criterion(Y, C, g, bias=bias, na_rm=na_rm),
            n_iter=previous.n_iter + 1,
        )
        crit.append(current.crit)

        if verbose:
            print(" Iter : {} Fit : {} Dif : {}".format(current.n_iter, current.crit, current.crit - previous.crit))

        converged = has_converged(current, previous, tol, na_rm=na_rm)
        previous = current
        if converged or current.n_iter >= max_iter:
            break

    if not converged:
        warnings.warn(
            f"The RGCCA algorithm did not converge after {current.n_iter} iterations.",
            NonConvergenceWarning,
            stacklevel=2,
        )
    elif verbose:
        print(f"The RGCCA algorithm converged to a stationary point after {current.n_iter} iterations")

    if verbose:
        plt.figure()
        plt.plot(range(1, len(crit) + 1), crit, "o")
        plt.xlabel("iteration")
        plt.ylabel("criteria")

    with np.errstate(divide="ignore", invalid="ignore"):
        AVE_inner = np.nansum(C * cor2(Y, na_rm=na_rm) ** 2 / 2) / (np.sum(C) / 2)

    return Bunch(
        Y=Y,
        a=current.a,
        crit=crit,
        AVE_inner=float(AVE_inner),
        C=C,
        tau=tau,
        scheme=scheme,
        n_iter=current.n_iter,
        converged=converged,
        blocks=blocks,
    )
