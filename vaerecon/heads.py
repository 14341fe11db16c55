"""
Decoder head emitting packed reconstruction-distribution parameters.

    params = head(z)                       # [B, ..., width]
    log_p  = head.log_prob(params, x)      # differentiable 0-dim tensor

The width of the output layer is chosen by the distribution
(`2 * output_dim` for the Gaussian, `output_dim` for Bernoulli / Exponential).
"""

from __future__ import annotations
from typing import Optional

import torch
from torch import nn, Tensor

from .distributions import BaseReconstructionDistribution, GaussianReconstructionDistribution
from .functional import reconstruction_log_prob


class ReconstructionHead(nn.Module):
    """
    Decoder p(X | Z) parameterised by a reconstruction distribution.

    Parameters
    ----------
    core : nn.Module
        Feature extractor applied to the latent input.
    hidden_dim : int
        Width of the features produced by `core`.
    output_dim : int
        Dimensionality of the reconstructed data X.
    distribution : BaseReconstructionDistribution, optional
        Defaults to a Gaussian with identity activation.
    """

    def __init__(
        self,
        core: nn.Module,
        hidden_dim: int,
        output_dim: int,
        distribution: Optional[BaseReconstructionDistribution] = None,
    ):
        super().__init__()
        self.core = core
        self.output_dim = output_dim
        self.distribution = distribution or GaussianReconstructionDistribution()
        self.params_net = nn.Linear(
            hidden_dim, self.distribution.distribution_input_size(output_dim)
        )

    def forward(self, z: Tensor) -> Tensor:
        return self.params_net(self.core(z))

    def log_prob(self, params: Tensor, target: Tensor, average: bool = True) -> Tensor:
        # Leading dims are flattened into the batch axis
        params = params.reshape(-1, params.shape[-1])
        target = target.reshape(-1, target.shape[-1])
        return reconstruction_log_prob(self.distribution, target, params, average=average)

    @torch.no_grad()
    def gradient(self, params: Tensor, target: Tensor) -> Tensor:
        """Closed-form d log_p / d params (total over the batch), shaped like `params`."""
        grad = self.distribution.gradient(
            target.reshape(-1, target.shape[-1]), params.reshape(-1, params.shape[-1])
        )
        return grad.reshape(params.shape)

    def extra_repr(self) -> str:
        return f"output_dim={self.output_dim}, distribution={self.distribution!r}"
