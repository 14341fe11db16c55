"""
Build reconstruction distributions from lightweight specifications.

Used when a model configuration names its output distribution. Activation
names are resolved here, so a typo fails while the configuration is parsed
rather than in the middle of a training run.
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Tuple, Type, Union

import logging

from .activations import Activation, get_activation
from .distributions import (
    BaseReconstructionDistribution,
    BernoulliReconstructionDistribution,
    ExponentialReconstructionDistribution,
    GaussianReconstructionDistribution,
)

logger = logging.getLogger(__name__)

DISTRIBUTIONS: Dict[str, Type[BaseReconstructionDistribution]] = {
    "gaussian": GaussianReconstructionDistribution,
    "bernoulli": BernoulliReconstructionDistribution,
    "exponential": ExponentialReconstructionDistribution,
}

# Type alias for the accepted specification forms
DistributionSpec = Union[
    str,
    Type[BaseReconstructionDistribution],
    BaseReconstructionDistribution,
    Tuple[Any, Union[str, Activation]],
    Mapping[str, Any],
]


def _to_dist_class(spec) -> Type[BaseReconstructionDistribution]:
    """
    Convert a name or class into a distribution class.

    Examples:
    ---------
    _to_dist_class("gaussian")   → GaussianReconstructionDistribution
    _to_dist_class(BernoulliReconstructionDistribution) → BernoulliReconstructionDistribution
    """
    if isinstance(spec, type) and issubclass(spec, BaseReconstructionDistribution):
        return spec
    if isinstance(spec, str) and spec.lower() in DISTRIBUTIONS:
        return DISTRIBUTIONS[spec.lower()]
    raise ValueError(
        f"Unknown reconstruction distribution: {spec!r}. "
        f"Known distributions: {', '.join(sorted(DISTRIBUTIONS))}"
    )


def build_reconstruction_distribution(
    spec: DistributionSpec,
    activation: Union[str, Activation, None] = None,
) -> BaseReconstructionDistribution:
    """
    Create a reconstruction distribution with a resolved activation.

    Parameters
    ----------
    spec : str | class | instance | (str/class, activation) | mapping
        A distribution name ("gaussian", "bernoulli", "exponential"), a
        distribution class, an already-built distribution (returned as is),
        a `(distribution, activation)` pair, or a mapping with keys
        "type" and optionally "activation".
    activation : str | Activation, optional
        Activation override. When omitted the distribution's own default is used.

    Returns
    -------
    BaseReconstructionDistribution

    Raises
    ------
    ValueError
        Unknown distribution name or unexpected mapping keys.
    UnknownActivationError
        Unknown activation name.
    """
    if isinstance(spec, BaseReconstructionDistribution):
        if activation is not None:
            raise ValueError("Cannot override the activation of an already-built distribution")
        return spec

    if isinstance(spec, Mapping):
        extra = set(spec) - {"type", "activation"}
        if extra:
            raise ValueError(f"Unexpected distribution config keys: {sorted(extra)}")
        if "type" not in spec:
            raise ValueError("Distribution config requires a 'type' key")
        dist_spec, spec_activation = spec["type"], spec.get("activation")
    elif isinstance(spec, (tuple, list)):
        dist_spec, spec_activation = spec
    else:
        dist_spec, spec_activation = spec, None

    if spec_activation is not None:
        if activation is not None:
            raise ValueError(
                f"Activation given twice: {spec_activation!r} in the spec and {activation!r} as argument"
            )
        activation = spec_activation

    dist_cls = _to_dist_class(dist_spec)
    if activation is None:
        activation = dist_cls.default_activation
    dist = dist_cls(get_activation(activation))

    logger.debug("Built reconstruction distribution %r from spec %r", dist, spec)
    return dist
