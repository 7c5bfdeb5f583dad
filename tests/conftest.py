import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest


def simulate_blocks(n, pjs, seed=0, noise=1.0):
    """Centered blocks sharing one latent variable."""
    rng = np.random.default_rng(seed)
    latent = rng.normal(size=(n, 1))
    blocks = []
    for p in pjs:
        block = latent @ rng.normal(size=(1, p)) + noise * rng.normal(size=(n, p))
        blocks.append(block - block.mean(axis=0))
    return blocks


@pytest.fixture
def make_blocks():
    return simulate_blocks


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")
