import numpy as np
import pandas as pd
import pytest

from sklearn.base import clone
from sklearn.exceptions import NotFittedError

from naRGCCA.rgcca import RGCCA


@pytest.fixture
def blocks():
    rng = np.random.default_rng(0)
    latent = rng.normal(size=(25, 1))
    return [5 + latent @ rng.normal(size=(1, p)) + rng.normal(size=(25, p)) for p in (3, 2, 30)]


def test_fit(blocks):
    rgcca = RGCCA(tau=[1, 0.5, 0.5], init="svd", verbose=False)
    assert rgcca.fit(blocks) is rgcca
    assert rgcca.scores_.shape == (25, 3)
    assert [w.shape for w in rgcca.weights_] == [(3,), (2,), (30,)]
    assert rgcca.n_features_ == [3, 2, 30]
    assert rgcca.converged_
    assert len(rgcca.crit_) == rgcca.n_iter_
    assert np.array_equal(rgcca.tau_, [1, 0.5, 0.5])
    assert 0 <= rgcca.AVE_inner_ <= 1
    assert np.isclose(np.linalg.norm(rgcca.weights_[0]), 1)


def test_defaults(blocks):
    rgcca = RGCCA(random_state=0, verbose=False).fit(blocks)
    assert np.array_equal(rgcca.tau_, [1, 1, 1])
    for w in rgcca.weights_:
        assert np.isclose(np.linalg.norm(w), 1)


def test_transform_training_data_gives_scores(blocks):
    rgcca = RGCCA(init="svd", verbose=False).fit(blocks)
    assert np.allclose(rgcca.transform(blocks), rgcca.scores_)
    assert np.allclose(rgcca.fit_transform(blocks), rgcca.scores_)


def test_blocks_are_not_modified(blocks):
    copies = [block.copy() for block in blocks]
    rgcca = RGCCA(init="svd", verbose=False)
    rgcca.fit(blocks)
    rgcca.transform(blocks)
    assert all(np.array_equal(a, b) for a, b in zip(blocks, copies))


def test_scaling(blocks):
    rgcca = RGCCA(init="svd", verbose=False).fit(blocks)
    X = rgcca._preprocess(blocks)
    assert np.allclose(X[0].mean(axis=0), 0)
    assert np.allclose(X[2].std(axis=0), 1 / np.sqrt(30))

    unscaled = RGCCA(init="svd", scale=False, scale_block=False, verbose=False).fit(blocks)
    X = unscaled._preprocess(blocks)
    assert np.allclose(X[1], blocks[1] - blocks[1].mean(axis=0))


def test_dataframes(blocks):
    frames = [pd.DataFrame(block, columns=[f"v{j}_{k}" for k in range(block.shape[1])]) for j, block in enumerate(blocks)]
    rgcca = RGCCA(init="svd", verbose=False).fit(frames)
    assert list(rgcca.feature_names_in_[1]) == ["v1_0", "v1_1"]
    reference = RGCCA(init="svd", verbose=False).fit(blocks)
    assert reference.feature_names_in_ == [None, None, None]
    assert np.allclose(rgcca.scores_, reference.scores_)


def test_missing_values(blocks):
    blocks[0][np.random.default_rng(1).random(blocks[0].shape) < 0.2] = np.nan
    rgcca = RGCCA(tau="optimal", scheme="centroid", init="svd", verbose=False).fit(blocks)
    assert np.all((rgcca.tau_ >= 0) & (rgcca.tau_ <= 1))
    assert all(np.all(np.isfinite(w)) for w in rgcca.weights_)
    assert np.all(np.isfinite(rgcca.scores_[:, 1:]))


def test_params_and_clone():
    rgcca = RGCCA(tau=[1, 0.2], scheme="horst", tol=1e-6, verbose=False)
    params = rgcca.get_params()
    assert params["tol"] == 1e-6
    assert params["scheme"] == "horst"
    assert clone(rgcca).get_params()["tau"] == [1, 0.2]


def test_not_fitted(blocks):
    with pytest.raises(NotFittedError):
        RGCCA().transform(blocks)


def test_transform_wrong_number_of_blocks(blocks):
    rgcca = RGCCA(init="svd", verbose=False).fit(blocks)
    with pytest.raises(ValueError):
        rgcca.transform(blocks[:2])
