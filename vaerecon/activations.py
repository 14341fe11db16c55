"""
Elementwise activation functions used by the reconstruction distributions.

Every activation exposes two out-of-place operations on a tensor:

    y  = act.apply(z)        # forward transform
    dy = act.derivative(z)   # d act / dz, evaluated at the *pre-activation* z

Activations are registered by name and looked up with `get_activation`.
Unknown names raise `UnknownActivationError`.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Union

import torch
from torch import Tensor


class UnknownActivationError(ValueError):
    """Raised when an activation identifier is not in the registry."""


# ==================================================================== #
#                             Base Activation                          #
# ==================================================================== #

class Activation(ABC):
    """
    Base class for elementwise activations.

    Subclasses must implement `apply` and `derivative`. Neither may modify the
    tensor it receives.
    """

    name: str = ""

    @abstractmethod
    def apply(self, z: Tensor) -> Tensor:
        ...

    @abstractmethod
    def derivative(self, z: Tensor) -> Tensor:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Activation) and other.name == self.name

    def __hash__(self) -> int:
        return hash(self.name)


_REGISTRY: Dict[str, Activation] = {}


def register_activation(name: str) -> Callable[[type], type]:
    """
    Class decorator adding a singleton instance of the activation to the registry.

    Names are stored lowercased, matching the case-insensitive lookup.
    """
    key = name.lower()

    def decorator(cls: type) -> type:
        cls.name = key
        _REGISTRY[key] = cls()
        return cls

    return decorator


def get_activation(spec: Union[str, Activation]) -> Activation:
    """
    Resolve a name (case-insensitive) or pass an `Activation` through.

    Examples:
    ---------
    get_activation("tanh")          → Tanh()
    get_activation(Sigmoid())       → Sigmoid()
    """
    if isinstance(spec, Activation):
        return spec

    key = spec.lower() if isinstance(spec, str) else spec
    try:
        return _REGISTRY[key]
    except (KeyError, TypeError):
        raise UnknownActivationError(
            f"Unknown activation function: {spec!r}. "
            f"Known activations: {', '.join(available_activations())}"
        ) from None


def available_activations() -> List[str]:
    return sorted(_REGISTRY)


# ==================================================================== #
#                            Activation Set                            #
# ==================================================================== #

@register_activation("identity")
class Identity(Activation):

    def apply(self, z: Tensor) -> Tensor:
        return z.clone()

    def derivative(self, z: Tensor) -> Tensor:
        return torch.ones_like(z)


@register_activation("tanh")
class Tanh(Activation):

    def apply(self, z: Tensor) -> Tensor:
        return torch.tanh(z)

    def derivative(self, z: Tensor) -> Tensor:
        t = torch.tanh(z)
        return 1.0 - t * t


@register_activation("sigmoid")
class Sigmoid(Activation):

    def apply(self, z: Tensor) -> Tensor:
        return torch.sigmoid(z)

    def derivative(self, z: Tensor) -> Tensor:
        s = torch.sigmoid(z)
        return s * (1.0 - s)


@register_activation("relu")
class ReLU(Activation):

    def apply(self, z: Tensor) -> Tensor:
        return torch.relu(z)

    def derivative(self, z: Tensor) -> Tensor:
        return (z > 0).to(z.dtype)


@register_activation("leakyrelu")
class LeakyReLU(Activation):
    """Leaky ReLU with a fixed negative slope of 0.01."""

    alpha = 0.01

    def apply(self, z: Tensor) -> Tensor:
        return torch.where(z > 0, z, self.alpha * z)

    def derivative(self, z: Tensor) -> Tensor:
        return torch.where(z > 0, torch.ones_like(z), torch.full_like(z, self.alpha))


@register_activation("softplus")
class Softplus(Activation):

    def apply(self, z: Tensor) -> Tensor:
        return torch.nn.functional.softplus(z)

    def derivative(self, z: Tensor) -> Tensor:
        return torch.sigmoid(z)


@register_activation("softsign")
class Softsign(Activation):

    def apply(self, z: Tensor) -> Tensor:
        return z / (1.0 + z.abs())

    def derivative(self, z: Tensor) -> Tensor:
        denom = 1.0 + z.abs()
        return 1.0 / (denom * denom)


@register_activation("hardtanh")
class HardTanh(Activation):

    def apply(self, z: Tensor) -> Tensor:
        return z.clamp(min=-1.0, max=1.0)

    def derivative(self, z: Tensor) -> Tensor:
        return ((z >= -1.0) & (z <= 1.0)).to(z.dtype)


@register_activation("elu")
class ELU(Activation):
    """ELU with alpha = 1."""

    def apply(self, z: Tensor) -> Tensor:
        return torch.where(z > 0, z, torch.expm1(z))

    def derivative(self, z: Tensor) -> Tensor:
        return torch.where(z > 0, torch.ones_like(z), torch.exp(z))


@register_activation("cube")
class Cube(Activation):

    def apply(self, z: Tensor) -> Tensor:
        return z * z * z

    def derivative(self, z: Tensor) -> Tensor:
        return 3.0 * z * z
