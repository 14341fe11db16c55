import itertools

import pytest
import torch


def _finite_difference(dist, x, params, eps=1e-6):
    """Central differences of the total log-probability w.r.t. each param."""
    grad = torch.zeros_like(params)
    for idx in itertools.product(range(params.shape[0]), range(params.shape[1])):
        plus = params.clone()
        plus[idx] += eps
        minus = params.clone()
        minus[idx] -= eps
        grad[idx] = (dist.log_probability(x, plus) - dist.log_probability(x, minus)) / (2 * eps)
    return grad


@pytest.fixture
def finite_difference():
    return _finite_difference


@pytest.fixture
def rng():
    return torch.Generator().manual_seed(1234)
