import numpy as np
import pandas as pd

from sklearn.base import TransformerMixin, BaseEstimator
from sklearn.utils.validation import check_is_fitted

from .rgccak import rgccak
from .utils import pm


class RGCCA(TransformerMixin, BaseEstimator):

    """Regularized Generalized Canonical Correlation Analysis (RGCCA)

    This class implements the block coordinate ascent (BCA) algorithm for
    computing the first component of each block in a multiblock context.
    Blocks may contain missing values (NaN): with `na_rm=True` every product
    and covariance is then computed on the available data only.

    Parameters
    ----------
    tau : list of shape (n_blocks,) or str, default=[1]*n_blocks
        Regularization parameters for each block. Should be in [0, 1]
        for each block, or "optimal" to estimate them.

    connection : ndarray of shape (n_blocks, n_blocks), default=np.ones((n_blocks, n_blocks))-np.eye(n_blocks)
        Design matrix of the multiblock framework. Should be symetric with positive elements.

    scale : bool, default=True
        Whether to scale the variables to unit variance. Variables are
        always centered.

    scale_block : bool, default=True
        Whether to scale the blocks (w.r.t. the number of variables per block).

    scheme : string or callable, default="factorial"
        The convex differentiable scheme function (g) to use for the criterion

    init : string, default="random"
        The initialization procedure for the block weight vectors.

    bias : bool, default=True
        Whether to use the biased estimator of the covariances.

    tol : float, default=1e-08
        The tolerance used as convergence criteria in BCA algorithm: the
        algorithm stops whenever the squared norm of `a_k - a_{k-1}` or
        `crit_k - crit_{k-1}` is less than `tol`, where `a` corresponds
        to the concatenated block weight vectors and `crit` to the criterion.

    max_iter : int, default=1000
        The maximum number of iterations in the BCA algorithm.

    na_rm : bool, default=True
        Whether to compute on the available data only when blocks hold NaN.

    random_state : int, RandomState instance or None, default=None
        Seed of the random initialization.

    verbose : bool, default=True
        Whether to show the details during the execution and a summary when finished

    Attributes
    ----------
    weights_ : list of ndarray of shape (n_features_j,)
        Outer weight vector of each block.

    scores_ : ndarray of shape (n_samples, n_blocks)
        Block components of the training data.

    crit_ : list of float
        Values of the criterion at each iteration.

    AVE_inner_ : float
        Average variance explained by the inner model.

    tau_ : ndarray of shape (n_blocks,)
        Shrinkage parameters actually used.

    n_iter_ : int
        Number of iterations run.

    converged_ : bool
        Whether the stopping test was met before `max_iter`.
    """
    def __init__(
        self,
        tau=None,
        connection=None,
        scale=True,
        scale_block=True,
        scheme='factorial',
        init='random',
        bias=True,
        tol=1e-08,
        max_iter=1000,
        na_rm=True,
        random_state=None,
        verbose=True
    ):

        self.tau = tau
        self.connection = connection
        self.scale = scale
        self.scale_block = scale_block
        self.scheme = scheme
        self.init = init
        self.bias = bias
        self.tol = tol
        self.max_iter = max_iter
        self.na_rm = na_rm
        self.random_state = random_state
        self.verbose = verbose

    def _preprocess(self, X):
        # copies, the blocks of the caller are left untouched
        X = [np.array(block, dtype=float) for block in X]
        X = [block.reshape(-1, 1) if block.ndim == 1 else block for block in X]
        for j in range(len(X)):
            X[j] = (X[j] - self._means[j]) / self._stds[j]
            if self.scale_block:
                X[j] /= np.sqrt(self.n_features_[j])
        return X

    def fit(self, X, y=None):

        J = len(X) # Number of blocks
        self.feature_names_in_ = [
            np.asarray(block.columns, dtype=object) if isinstance(block, pd.DataFrame) else None
            for block in X
        ]
        blocks = [np.array(block, dtype=float) for block in X]
        blocks = [block.reshape(-1, 1) if block.ndim == 1 else block for block in blocks]
        p = [block.shape[1] for block in blocks] # Number of variables per block
        self.n_features_ = p

        self._means = [np.nanmean(block, axis=0) for block in blocks]
        self._stds = [np.ones(p[j]) for j in range(J)]
        if self.scale:
            for j in range(J):
                std = np.nanstd(blocks[j], axis=0)
                std[~(std > 0)] = 1
                self._stds[j] = std

        C = np.ones((J, J)) - np.eye(J) if self.connection is None else self.connection
        tau = [1] * J if self.tau is None else self.tau

        result = rgccak(
            self._preprocess(blocks),
            C=C,
            tau=tau,
            scheme=self.scheme,
            verbose=self.verbose,
            init=self.init,
            bias=self.bias,
            tol=self.tol,
            na_rm=self.na_rm,
            max_iter=self.max_iter,
            random_state=self.random_state,
        )

        self.weights_ = result.a
        self.scores_ = result.Y
        self.crit_ = result.crit
        self.AVE_inner_ = result.AVE_inner
        self.tau_ = result.tau
        self.n_iter_ = result.n_iter
        self.converged_ = result.converged

        return self

    def transform(self, X, y=None):

        check_is_fitted(self, "weights_")
        if len(X) != len(self.n_features_):
            raise ValueError(f"X should contain {len(self.n_features_)} blocks, got {len(X)}.")

        X = self._preprocess(X)
        return np.column_stack([pm(X[j], self.weights_[j], na_rm=self.na_rm) for j in range(len(X))])

    def fit_transform(self, X, y=None):

        return self.fit(X, y).transform(X, y)
