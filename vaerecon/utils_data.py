"""
Synthetic datasets for exercising reconstruction heads.
"""

import torch
import numpy as np


def heteroscedastic_regression(
    samples: int = 10_000,
    data_dim: int = 1,
    noise: float = 0.5,
    rng: np.random.Generator | None = None
):
    """
    Generate (Z, X) pairs whose noise level depends on Z.

    Each output dimension k follows

        X_k = sin((k + 1) * Z) + noise * (0.1 + |Z|) * ε ,   ε ∼ N(0, 1)

    so a Gaussian head has to learn both the mean and the variance.

    Parameters
    ----------
    samples : int
        Number of samples to draw.
    data_dim : int
        Dimensionality of X.
    noise : float
        Overall noise scale.
    rng : np.random.Generator | None
        Optional random generator for reproducibility.

    Returns
    -------
    Z : Tensor, shape (samples, 1)
        Inputs drawn uniformly from [-2, 2].
    X : Tensor, shape (samples, data_dim)
        Noisy targets.
    """
    if samples <= 0 or data_dim <= 0:
        raise ValueError("samples and data_dim must be positive.")

    rng = np.random.default_rng() if rng is None else rng
    z = rng.uniform(-2.0, 2.0, size=(samples, 1))
    freq = np.arange(1, data_dim + 1)[None, :]
    scale = noise * (0.1 + np.abs(z))
    x = np.sin(freq * z) + scale * rng.standard_normal((samples, data_dim))

    Z = torch.FloatTensor(z)
    X = torch.FloatTensor(x)

    return Z, X
