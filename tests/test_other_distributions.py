import math

import pytest
import torch

from vaerecon import (
    BernoulliReconstructionDistribution,
    ExponentialReconstructionDistribution,
    ShapeMismatchError,
    UnknownActivationError,
)


def _binary(rng, batch, size):
    return (torch.rand(batch, size, generator=rng, dtype=torch.float64) > 0.5).to(torch.float64)


def _positive(rng, batch, size):
    return torch.rand(batch, size, generator=rng, dtype=torch.float64) * 2.0 + 0.1


# ==================================================================== #
#                               Bernoulli                              #
# ==================================================================== #

def test_bernoulli_defaults():
    dist = BernoulliReconstructionDistribution()
    assert dist.distribution_input_size(5) == 5
    assert repr(dist) == "BernoulliReconstructionDistribution(afn=sigmoid)"


@pytest.mark.parametrize("average", [True, False])
def test_bernoulli_matches_torch(rng, average):
    dist = BernoulliReconstructionDistribution()
    x = _binary(rng, 4, 3)
    params = torch.randn(4, 3, generator=rng, dtype=torch.float64)

    expected = torch.distributions.Bernoulli(logits=params).log_prob(x).sum().item()
    if average:
        expected /= 4

    assert dist.log_probability(x, params, average) == pytest.approx(expected, rel=1e-10)


@pytest.mark.parametrize("batch", [1, 4])
@pytest.mark.parametrize("size", [1, 3])
def test_bernoulli_gradient_matches_finite_difference(rng, finite_difference, batch, size):
    dist = BernoulliReconstructionDistribution()
    x = _binary(rng, batch, size)
    params = torch.randn(batch, size, generator=rng, dtype=torch.float64)

    grad = dist.gradient(x, params)

    # sigmoid activation: d/dz log p = x - sigmoid(z)
    torch.testing.assert_close(grad, x - torch.sigmoid(params))
    torch.testing.assert_close(grad, finite_difference(dist, x, params), atol=1e-4, rtol=1e-4)


def test_bernoulli_identity_activation_reads_probabilities(rng, finite_difference):
    dist = BernoulliReconstructionDistribution("identity")
    x = _binary(rng, 3, 2)
    p = torch.rand(3, 2, generator=rng, dtype=torch.float64) * 0.8 + 0.1

    expected = torch.distributions.Bernoulli(probs=p).log_prob(x).sum().item()

    assert dist.log_probability(x, p) == pytest.approx(expected)
    torch.testing.assert_close(dist.gradient(x, p), finite_difference(dist, x, p), atol=1e-4, rtol=1e-4)


def test_bernoulli_saturation_is_not_clamped():
    dist = BernoulliReconstructionDistribution("identity")
    x = torch.ones(1, 1, dtype=torch.float64)
    p = torch.zeros(1, 1, dtype=torch.float64)

    assert dist.log_probability(x, p) == float("-inf")


# ==================================================================== #
#                              Exponential                             #
# ==================================================================== #

def test_exponential_defaults():
    dist = ExponentialReconstructionDistribution()
    assert dist.distribution_input_size(5) == 5
    assert repr(dist) == "ExponentialReconstructionDistribution(afn=identity)"


@pytest.mark.parametrize("activation", ["identity", "tanh"])
def test_exponential_matches_torch(rng, activation):
    dist = ExponentialReconstructionDistribution(activation)
    x = _positive(rng, 4, 3)
    params = torch.randn(4, 3, generator=rng, dtype=torch.float64)
    gamma = params if activation == "identity" else torch.tanh(params)

    expected = torch.distributions.Exponential(rate=torch.exp(gamma)).log_prob(x).sum().item()

    assert dist.log_probability(x, params) == pytest.approx(expected, rel=1e-10)
    assert dist.log_probability(x, params, average=True) == pytest.approx(expected / 4, rel=1e-10)


@pytest.mark.parametrize("activation", ["identity", "tanh"])
@pytest.mark.parametrize("batch", [1, 4])
def test_exponential_gradient_matches_finite_difference(rng, finite_difference, activation, batch):
    dist = ExponentialReconstructionDistribution(activation)
    x = _positive(rng, batch, 3)
    params = torch.randn(batch, 3, generator=rng, dtype=torch.float64)

    grad = dist.gradient(x, params)

    assert grad.shape == params.shape
    torch.testing.assert_close(grad, finite_difference(dist, x, params), atol=1e-4, rtol=1e-4)


# ==================================================================== #
#                             Shared errors                            #
# ==================================================================== #

@pytest.mark.parametrize("dist_cls", [BernoulliReconstructionDistribution, ExponentialReconstructionDistribution])
def test_width_mismatch_is_rejected(dist_cls):
    dist = dist_cls()
    x = torch.zeros(2, 3, dtype=torch.float64)

    with pytest.raises(ShapeMismatchError):
        dist.log_probability(x, torch.zeros(2, 6, dtype=torch.float64))
    with pytest.raises(ShapeMismatchError):
        dist.gradient(x, torch.zeros(2, 6, dtype=torch.float64))


@pytest.mark.parametrize("dist_cls", [BernoulliReconstructionDistribution, ExponentialReconstructionDistribution])
def test_unknown_activation_propagates(dist_cls):
    dist = dist_cls("bogus")
    x = torch.zeros(2, 3, dtype=torch.float64)
    params = torch.zeros(2, 3, dtype=torch.float64)

    with pytest.raises(UnknownActivationError):
        dist.log_probability(x, params)
    with pytest.raises(UnknownActivationError):
        dist.gradient(x, params)


@pytest.mark.parametrize("dist_cls", [BernoulliReconstructionDistribution, ExponentialReconstructionDistribution])
def test_empty_batch_average_is_nan(dist_cls):
    dist = dist_cls()
    x = torch.zeros(0, 3, dtype=torch.float64)
    params = torch.zeros(0, 3, dtype=torch.float64)

    assert dist.log_probability(x, params) == 0.0
    assert math.isnan(dist.log_probability(x, params, average=True))
