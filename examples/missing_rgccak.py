from naRGCCA.rgccak import rgccak

import numpy as np

rng = np.random.default_rng(0)
latent = rng.normal(size=(30, 1))
blocks = [latent @ rng.normal(size=(1, p)) + rng.normal(size=(30, p)) for p in (4, 6, 50)]
blocks = [(block - block.mean(axis=0)) / block.std(axis=0) for block in blocks]

# 20% of the second block goes missing
mask = rng.random(blocks[1].shape) < 0.2
blocks[1][mask] = np.nan

result = rgccak(
        blocks,
        C=np.ones((3,3))-np.eye(3),
        tau="optimal",
        scheme="centroid",
        init="svd",
        na_rm=True,
        verbose=True
        )

print(result.tau)
print([a.shape for a in result.a])
print(result.AVE_inner)
