from naRGCCA.rgcca import RGCCA

import pandas as pd
import numpy as np

rng = np.random.default_rng(42)
latent = rng.normal(size=(47, 1))
data = pd.DataFrame(
        latent @ rng.normal(size=(1, 11)) + rng.normal(size=(47, 11)),
        columns=["gini", "farm", "rent", "gnpr", "labo", "inst", "ecks",
                 "death", "demostab", "demoinst", "dictator"])
blocks = [data.iloc[:, :3],
        data.iloc[:, 3:5],
        data.iloc[:, 5:]]

rgcca = RGCCA(
        connection=np.ones((3,3))-np.eye(3),
        tau=[1]*3,
        init="svd",
        scheme="factorial"
        )

rgcca.fit(blocks)

print(rgcca.weights_)
print(rgcca.AVE_inner_)
