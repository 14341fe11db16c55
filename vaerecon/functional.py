"""
Autograd bridge for reconstruction distributions.

`reconstruction_log_prob` returns the log-likelihood as a 0-dim tensor whose
backward pass uses the distribution's closed-form `gradient` instead of
tracing the arithmetic. This is how a decoder network trained with a
`torch.optim` optimizer consumes the analytic gradient.
"""

from __future__ import annotations

import torch
from torch import Tensor

from .distributions import BaseReconstructionDistribution


class _ReconstructionLogProb(torch.autograd.Function):

    @staticmethod
    def forward(ctx, params: Tensor, x: Tensor, distribution, average: bool) -> Tensor:
        ctx.distribution = distribution
        ctx.average = average
        ctx.save_for_backward(params, x)
        value = distribution.log_probability(x, params, average=average)
        return params.new_tensor(value)

    @staticmethod
    def backward(ctx, grad_output: Tensor):
        params, x = ctx.saved_tensors
        grad = ctx.distribution.gradient(x, params)
        if ctx.average:
            grad = grad / x.shape[0]
        # targets are data: no gradient w.r.t. x
        return grad_output * grad, None, None, None


def reconstruction_log_prob(
    distribution: BaseReconstructionDistribution,
    x: Tensor,
    params: Tensor,
    average: bool = False,
) -> Tensor:
    """
    Differentiable log-likelihood of `x` under `distribution(params)`.

    Parameters
    ----------
    distribution : BaseReconstructionDistribution
        Distribution scoring the targets.
    x : Tensor, shape [B, D]
        Targets.
    params : Tensor, shape [B, distribution.distribution_input_size(D)]
        Pre-activation distribution parameters, typically a network output.
    average : bool
        Divide by the batch size (the gradient is scaled accordingly).

    Returns
    -------
    Tensor
        0-dim tensor with the same dtype and device as `params`.
    """
    return _ReconstructionLogProb.apply(params, x, distribution, average)
