"""
Raw TPMS Patterns
=================

Closed-form periodic potentials of triply periodic minimal surfaces. The
potential is not a distance: it only becomes one once a splitting logic
subtracts half of the wall thickness (see ``InfillSDF.splitting_logic``).

All patterns use ``frequency_scale = 2 * pi / unit_size``. The Schwarz
diamond and the Lidinoid halve it, which keeps their feature density
comparable to a gyroid of the same unit size. Inside the modular pipeline
the unit size stays at 1 and a ``ScaleTransform`` sets the physical period.

The order of the trigonometric arguments follows the literature equations
so that patterns keep their phase alignment when blended.
"""

from abc import ABC, abstractmethod
from enum import Enum
import math

import torch

from InfillSDF.utils import limit_value, trans_fixed


class TPMSType(Enum):
    Gyroid = "gyroid"
    SchwarzPrimitive = "schwarz_primitive"
    SchwarzDiamond = "schwarz_diamond"
    Lidinoid = "lidinoid"
    Transition = "transition"


class RawTPMSPattern(ABC):
    #: multiplier on 2*pi/unit_size, overridden by patterns with higher frequency
    frequency_factor = 1.0

    def __init__(self, unit_size: float = 1.0):
        if unit_size <= 0:
            raise ValueError(f"Unit size must be positive, got {unit_size}")
        self.unit_size = unit_size
        self.frequency_scale = self.frequency_factor * 2.0 * math.pi / unit_size

    def __call__(self, coords: torch.Tensor, world: torch.Tensor | None = None):
        return self.potential(coords, world=world)

    @abstractmethod
    def potential(
        self, coords: torch.Tensor, world: torch.Tensor | None = None
    ) -> torch.Tensor:
        """Evaluate the potential.

        Parameters
        ----------
        coords : torch.Tensor
            Pattern coordinates of shape (N, 3), i.e. after any transform.
        world : torch.Tensor, optional
            The untransformed query points of shape (N, 3). Only patterns
            with lab-frame features (``RawTransitionPattern``) read it.

        Returns
        -------
        torch.Tensor
            Potential values of shape (N,).
        """
        pass


class RawGyroidPattern(RawTPMSPattern):
    def potential(self, coords, world=None):
        f = self.frequency_scale
        x, y, z = coords[:, 0], coords[:, 1], coords[:, 2]
        return (
            torch.sin(f * x) * torch.cos(f * y)
            + torch.sin(f * y) * torch.cos(f * z)
            + torch.sin(f * z) * torch.cos(f * x)
        )


class RawSchwarzPrimitivePattern(RawTPMSPattern):
    def potential(self, coords, world=None):
        f = self.frequency_scale
        x, y, z = coords[:, 0], coords[:, 1], coords[:, 2]
        return torch.cos(f * x) + torch.cos(f * y) + torch.cos(f * z)


class RawSchwarzDiamondPattern(RawTPMSPattern):
    frequency_factor = 0.5

    def potential(self, coords, world=None):
        f = self.frequency_scale
        x, y, z = coords[:, 0], coords[:, 1], coords[:, 2]
        return torch.cos(f * x) * torch.cos(f * y) * torch.cos(f * z) - (
            torch.sin(f * x) * torch.sin(f * y) * torch.sin(f * z)
        )


class RawLidinoidPattern(RawTPMSPattern):
    frequency_factor = 0.5

    def potential(self, coords, world=None):
        f = self.frequency_scale
        x, y, z = coords[:, 0], coords[:, 1], coords[:, 2]
        first = 0.5 * (
            torch.sin(2 * f * x) * torch.cos(f * y) * torch.sin(f * z)
            + torch.sin(2 * f * y) * torch.cos(f * z) * torch.sin(f * x)
            + torch.sin(2 * f * z) * torch.cos(f * x) * torch.sin(f * y)
        )
        second = 0.5 * (
            torch.cos(2 * f * x) * torch.cos(2 * f * y)
            + torch.cos(2 * f * y) * torch.cos(2 * f * z)
            + torch.cos(2 * f * z) * torch.cos(2 * f * x)
        )
        return first - second


class RawTransitionPattern(RawTPMSPattern):
    """Linear blend between two patterns along world x.

    ``ratio = clamp((x - start) / width, 0, 1)`` where x is taken from the
    untransformed world points, so the blend zone stays fixed in the lab
    frame regardless of the coordinate transform. Without world points the
    pattern coordinates are used.
    """

    def __init__(
        self,
        first: RawTPMSPattern | None = None,
        second: RawTPMSPattern | None = None,
        start: float = -2.0,
        width: float = 5.0,
        unit_size: float = 1.0,
    ):
        super().__init__(unit_size)
        if width <= 0:
            raise ValueError(f"Transition width must be positive, got {width}")
        if first is None:
            first = RawSchwarzDiamondPattern(unit_size)
        if second is None:
            second = RawSchwarzPrimitivePattern(unit_size)
        self.first = first
        self.second = second
        self.start = start
        self.width = width

    def potential(self, coords, world=None):
        value_1 = self.first(coords, world=world)
        value_2 = self.second(coords, world=world)
        x = world[:, 0] if world is not None else coords[:, 0]
        ratio = limit_value((x - self.start) / self.width, 0.0, 1.0)
        return trans_fixed(value_1, value_2, ratio)


_PATTERN_REGISTRY = {
    TPMSType.Gyroid: RawGyroidPattern,
    TPMSType.SchwarzPrimitive: RawSchwarzPrimitivePattern,
    TPMSType.SchwarzDiamond: RawSchwarzDiamondPattern,
    TPMSType.Lidinoid: RawLidinoidPattern,
    TPMSType.Transition: RawTransitionPattern,
}


def get_pattern(pattern: str | TPMSType, **kwargs) -> RawTPMSPattern:
    """Instantiate a raw pattern by name or enum."""
    if isinstance(pattern, str):
        try:
            pattern = TPMSType(pattern)
        except ValueError:
            raise ValueError(f"Unknown TPMS pattern name: {pattern}")
    return _PATTERN_REGISTRY[pattern](**kwargs)
