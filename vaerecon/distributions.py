"""
Reconstruction distributions for variational autoencoders.

A reconstruction distribution scores how well the packed output of a decoder
network explains the data. All classes inherit from
`BaseReconstructionDistribution`, which defines a common API:

    width  = dist.distribution_input_size(data_size)
    log_p  = dist.log_probability(x, params, average)   # python float
    grad   = dist.gradient(x, params)                   # d log_p / d params

`params` are *pre-activation* values of shape [B, width]; the configured
activation is applied elementwise before the distribution parameters are
read off. Targets `x` have shape [B, data_size]. Neither tensor is ever
modified: every method works on a detached duplicate.

The gradient is always taken with respect to the **total** (batch-summed)
log-probability. Callers optimising the averaged objective scale it by 1/B.

No epsilon guards are applied: a variance that underflows to zero, or a
Bernoulli probability saturating at 0 or 1, yields inf / nan exactly as the
closed-form expressions dictate.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Tuple, Union

import math
import torch
from torch import Tensor

from .activations import Activation, get_activation


NEG_HALF_LOG_2PI = -0.5 * math.log(2.0 * math.pi)


class ShapeMismatchError(ValueError):
    """Raised when targets and distribution parameters have incompatible shapes."""


# ==================================================================== #
#                          Abstract Base                               #
# ==================================================================== #

class BaseReconstructionDistribution(ABC):
    """
    Abstract base class for reconstruction distributions.

    Subclasses must implement:
        - distribution_input_size(d) ➜ number of packed parameters per example
        - log_probability(x, params, average) ➜ scalar log-likelihood
        - gradient(x, params) ➜ gradient w.r.t. pre-activation params

    Parameters
    ----------
    activation_fn : str | Activation, optional
        Activation applied to the packed params, `default_activation` when
        omitted. Names are resolved on use, so an unknown name raises
        `UnknownActivationError` only when the distribution is evaluated.
    """

    default_activation: str = "identity"

    def __init__(self, activation_fn: Union[str, Activation, None] = None):
        self.activation_fn = self.default_activation if activation_fn is None else activation_fn

    @property
    def activation(self) -> Activation:
        return get_activation(self.activation_fn)

    @property
    def activation_name(self) -> str:
        if isinstance(self.activation_fn, Activation):
            return self.activation_fn.name
        return str(self.activation_fn)

    @abstractmethod
    def distribution_input_size(self, data_size: int) -> int:
        ...

    @abstractmethod
    def log_probability(self, x: Tensor, params: Tensor, average: bool = False) -> float:
        ...

    @abstractmethod
    def gradient(self, x: Tensor, params: Tensor) -> Tensor:
        ...

    # ------------------------------------------------------------------ #
    def _activate(self, params: Tensor) -> Tuple[Tensor, bool]:
        """Return `(activated duplicate, is_identity)`; `params` stays untouched."""
        output = params.detach().clone()
        if self.activation_name == "identity":
            return output, True
        return self.activation.apply(output), False

    def _chain_activation(self, grad: Tensor, params: Tensor) -> Tensor:
        """Multiply a post-activation gradient by act'(params)."""
        return grad * self.activation.derivative(params.detach().clone())

    @staticmethod
    def _reduce(log_prob: float, batch_size: int, average: bool) -> float:
        """Total, or per-example mean (IEEE division: an empty batch gives nan)."""
        if not average:
            return log_prob
        return torch.tensor(log_prob, dtype=torch.float64).div(batch_size).item()

    def _check_shapes(self, x: Tensor, params: Tensor) -> None:
        if params.dim() != 2 or x.dim() != 2:
            raise ShapeMismatchError(
                f"Expected 2-D tensors [batch, features], got x {tuple(x.shape)} "
                f"and params {tuple(params.shape)}"
            )
        if x.shape[0] != params.shape[0]:
            raise ShapeMismatchError(
                f"Batch size mismatch: x has {x.shape[0]} rows, params has {params.shape[0]}"
            )
        expected = self.distribution_input_size(x.shape[1])
        if params.shape[1] != expected:
            raise ShapeMismatchError(
                f"{type(self).__name__} expects params of width {expected} for data of "
                f"width {x.shape[1]}, got {params.shape[1]}"
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(afn={self.activation_name})"


# ==================================================================== #
#                      Gaussian Reconstruction                         #
# ==================================================================== #

class GaussianReconstructionDistribution(BaseReconstructionDistribution):
    """
    Diagonal Gaussian with per-output mean and log-variance.

    The packed params are `[mean | log(sigma²)]` along the feature axis, so the
    network needs twice as many outputs as there are data dimensions. Modelling
    the log-variance lets the raw output live in (-inf, inf) with log(1) = 0.

    Identity and tanh are the usual activations; tanh bounds both mean and
    log-variance. Asymmetric activations (sigmoid, relu) are best avoided.
    """

    def distribution_input_size(self, data_size: int) -> int:
        return 2 * data_size

    def _split(self, x: Tensor, params: Tensor):
        self._check_shapes(x, params)
        output, is_identity = self._activate(params)
        size = output.shape[1] // 2
        mean = output[:, :size]
        log_var = output[:, size:2 * size]
        return mean, log_var, size, is_identity

    def log_probability(self, x: Tensor, params: Tensor, average: bool = False) -> float:
        mean, log_var, size, _ = self._split(x, params)
        batch_size = x.shape[0]

        variance = torch.exp(log_var)
        sq = (x.detach() - mean) ** 2
        quadratic = (sq / variance / 2).sum().item()
        log_det = log_var.sum().item()

        log_prob = batch_size * size * NEG_HALF_LOG_2PI - 0.5 * log_det - quadratic

        return self._reduce(log_prob, batch_size, average)

    def gradient(self, x: Tensor, params: Tensor) -> Tensor:
        mean, log_var, size, is_identity = self._split(x, params)

        variance = torch.exp(log_var)
        diff = x.detach() - mean
        diff_sq = diff * diff

        dl_dmean = diff / variance

        sigma = torch.sqrt(variance)
        sigma3 = variance.pow(1.5)

        dl_dsigma = -1.0 / sigma + diff_sq / sigma3
        dl_dlog_var = sigma / 2 * dl_dsigma   # d sigma / d log_var = sigma / 2

        grad = mean.new_empty((mean.shape[0], 2 * size))
        grad[:, :size] = dl_dmean
        grad[:, size:] = dl_dlog_var

        if not is_identity:
            grad = self._chain_activation(grad, params)
        return grad


# ==================================================================== #
#                      Bernoulli Reconstruction                        #
# ==================================================================== #

class BernoulliReconstructionDistribution(BaseReconstructionDistribution):
    """
    Independent Bernoulli per output, for binary (or [0, 1]) data.

    The activated params are the probabilities p, so the activation must map
    into (0, 1); sigmoid is the default.
    """

    default_activation = "sigmoid"

    def distribution_input_size(self, data_size: int) -> int:
        return data_size

    def log_probability(self, x: Tensor, params: Tensor, average: bool = False) -> float:
        self._check_shapes(x, params)
        p, _ = self._activate(params)
        x = x.detach()

        log_prob = (x * torch.log(p) + (1.0 - x) * torch.log(1.0 - p)).sum().item()

        return self._reduce(log_prob, x.shape[0], average)

    def gradient(self, x: Tensor, params: Tensor) -> Tensor:
        self._check_shapes(x, params)
        p, is_identity = self._activate(params)
        x = x.detach()

        grad = x / p - (1.0 - x) / (1.0 - p)
        if not is_identity:
            grad = self._chain_activation(grad, params)
        return grad


# ==================================================================== #
#                     Exponential Reconstruction                       #
# ==================================================================== #

class ExponentialReconstructionDistribution(BaseReconstructionDistribution):
    """
    Independent exponential distribution per output, for non-negative data.

    The activated params are gamma = log(lambda), so that
    log p(x) = gamma - x * exp(gamma).
    """

    def distribution_input_size(self, data_size: int) -> int:
        return data_size

    def log_probability(self, x: Tensor, params: Tensor, average: bool = False) -> float:
        self._check_shapes(x, params)
        gamma, _ = self._activate(params)
        lam = torch.exp(gamma)

        log_prob = gamma.sum().item() - (lam * x.detach()).sum().item()

        return self._reduce(log_prob, x.shape[0], average)

    def gradient(self, x: Tensor, params: Tensor) -> Tensor:
        self._check_shapes(x, params)
        gamma, is_identity = self._activate(params)
        lam = torch.exp(gamma)

        grad = 1.0 - x.detach() * lam
        if not is_identity:
            grad = self._chain_activation(grad, params)
        return grad
