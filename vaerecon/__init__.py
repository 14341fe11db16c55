"""
vaerecon
========

Reconstruction distributions p(X | Z) for variational autoencoders, with
closed-form log-likelihoods and gradients w.r.t. the decoder's
pre-activation outputs.

Quick start
-----------
>>> import torch
>>> from vaerecon import GaussianReconstructionDistribution
>>>
>>> # --- decoder output: [mean | log-variance] -----------------------
>>> dist   = GaussianReconstructionDistribution("tanh")
>>> x      = torch.randn(4, 3)
>>> params = torch.randn(4, dist.distribution_input_size(3))
>>>
>>> # --- score and back-propagate ------------------------------------
>>> log_p = dist.log_probability(x, params, average=True)
>>> grad  = dist.gradient(x, params)        # same shape as params
"""

from __future__ import annotations

# ------------------------------------------------------------------ #
# Public API surface                                                 #
# ------------------------------------------------------------------ #
from .activations import (
    Activation,
    UnknownActivationError,
    available_activations,
    get_activation,
    register_activation,
)
from .distributions import (
    BaseReconstructionDistribution,
    GaussianReconstructionDistribution,
    BernoulliReconstructionDistribution,
    ExponentialReconstructionDistribution,
    ShapeMismatchError,
)
from .config import build_reconstruction_distribution
from .functional import reconstruction_log_prob
from .heads import ReconstructionHead
from .utils_training import train_reconstruction_head, evaluate_log_probability

__all__ = [
    # Distributions
    "BaseReconstructionDistribution",
    "GaussianReconstructionDistribution",
    "BernoulliReconstructionDistribution",
    "ExponentialReconstructionDistribution",
    "build_reconstruction_distribution",
    # Activations
    "Activation",
    "available_activations",
    "get_activation",
    "register_activation",
    # Errors
    "ShapeMismatchError",
    "UnknownActivationError",
    # Torch integration
    "reconstruction_log_prob",
    "ReconstructionHead",
    # Training utilities
    "train_reconstruction_head",
    "evaluate_log_probability",
]

__version__ = "0.1.0"
