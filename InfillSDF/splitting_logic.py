"""
Splitting Logic
===============

Policies that turn a raw TPMS potential ``p`` and a local wall thickness
``t`` into a signed distance.

=========================  ==============================
Policy                     Signed distance
=========================  ==============================
``FullWallLogic``          ``abs(p) - t/2``
``FullVoidLogic``          ``-(abs(p) - t/2)``
``PositiveHalfWallLogic``  ``max(p, abs(p) - t/2)``
``NegativeHalfWallLogic``  ``max(-p, abs(p) - t/2)``
``PositiveVoidLogic``      ``-(max(0, p) - t/2)``
``NegativeVoidLogic``      ``-(max(0, -p) - t/2)``
=========================  ==============================

The half-wall policies keep material on one side of the zero level set
only, while still carving a wall of thickness ``t`` through it.
"""

from abc import ABC, abstractmethod
from enum import Enum

import torch


class SplittingType(Enum):
    FullWall = "full_wall"
    FullVoid = "full_void"
    PositiveHalfWall = "positive_half_wall"
    NegativeHalfWall = "negative_half_wall"
    PositiveVoid = "positive_void"
    NegativeVoid = "negative_void"


class SplittingLogic(ABC):
    def __call__(self, potential: torch.Tensor, wall_thickness) -> torch.Tensor:
        return self.distance(potential, wall_thickness)

    @abstractmethod
    def distance(self, potential: torch.Tensor, wall_thickness) -> torch.Tensor:
        pass


class FullWallLogic(SplittingLogic):
    def distance(self, potential, wall_thickness):
        return torch.abs(potential) - 0.5 * wall_thickness


class FullVoidLogic(SplittingLogic):
    def distance(self, potential, wall_thickness):
        return -(torch.abs(potential) - 0.5 * wall_thickness)


class PositiveHalfWallLogic(SplittingLogic):
    def distance(self, potential, wall_thickness):
        return torch.maximum(
            potential, torch.abs(potential) - 0.5 * wall_thickness
        )


class NegativeHalfWallLogic(SplittingLogic):
    def distance(self, potential, wall_thickness):
        return torch.maximum(
            -potential, torch.abs(potential) - 0.5 * wall_thickness
        )


class PositiveVoidLogic(SplittingLogic):
    def distance(self, potential, wall_thickness):
        return -(torch.clamp(potential, min=0.0) - 0.5 * wall_thickness)


class NegativeVoidLogic(SplittingLogic):
    def distance(self, potential, wall_thickness):
        return -(torch.clamp(-potential, min=0.0) - 0.5 * wall_thickness)


_LOGIC_REGISTRY = {
    SplittingType.FullWall: FullWallLogic,
    SplittingType.FullVoid: FullVoidLogic,
    SplittingType.PositiveHalfWall: PositiveHalfWallLogic,
    SplittingType.NegativeHalfWall: NegativeHalfWallLogic,
    SplittingType.PositiveVoid: PositiveVoidLogic,
    SplittingType.NegativeVoid: NegativeVoidLogic,
}


def get_splitting_logic(logic: str | SplittingType) -> SplittingLogic:
    if isinstance(logic, str):
        try:
            logic = SplittingType(logic)
        except ValueError:
            raise ValueError(f"Unknown splitting logic name: {logic}")
    return _LOGIC_REGISTRY[logic]()
