"""
Implicit Pattern Composer
=========================

``ImplicitStructure`` chains the stages of an implicit infill into one SDF:

1. optional random warp: ``warped = points + field(points)``
2. coordinate transform: ``coords = transform(warped)``
3. raw potential: ``potential = pattern(coords, world=points)``
4. wall thickness at the unwarped query point: ``t = wall_thickness(points)``
5. splitting logic: ``logic(potential, t)``

The module also provides preset constructors for commonly used patterns.

Functions
---------
gyroid, schwarz_primitive, schwarz_diamond, lidinoid
    Full wall patterns with a fixed unit size and wall thickness.
split_wall_gyroid
    Gyroid with material on one side of the zero level set.
split_void_gyroid
    Gyroid void on one side of the zero level set.
randomized_schwarz_primitive
    Schwarz primitive warped by a ``RandomDeformationField``.
radial_gyroid
    Gyroid wrapped around the z-axis.

Examples
--------
>>> from InfillSDF.implicit_structure import gyroid
>>> import torch
>>>
>>> sdf = gyroid(unit_size=10.0, wall_thickness=1.0)
>>> sdf(torch.tensor([[25.0, 25.0, 25.0]])).shape
torch.Size([1, 1])
"""

import logging
import math

import torch

import InfillSDF
from InfillSDF.SDF import SDFBase
from InfillSDF.beam_thickness import BeamThickness, ConstantThickness
from InfillSDF.coordinate_transforms import (
    CombinedTransform,
    CoordinateTransform,
    IdentityTransform,
    RadialTransform,
    ScaleTransform,
)
from InfillSDF.deformation_field import RandomDeformationField
from InfillSDF.splitting_logic import (
    FullWallLogic,
    NegativeHalfWallLogic,
    NegativeVoidLogic,
    PositiveHalfWallLogic,
    PositiveVoidLogic,
    SplittingLogic,
)
from InfillSDF.tpms import (
    RawGyroidPattern,
    RawLidinoidPattern,
    RawSchwarzDiamondPattern,
    RawSchwarzPrimitivePattern,
    RawTPMSPattern,
)
from InfillSDF.utils import as_bounds

logger = logging.getLogger(InfillSDF.__name__)


class ImplicitStructure(SDFBase):
    """SDF of a TPMS infill composed from interchangeable stages.

    Parameters
    ----------
    pattern : RawTPMSPattern
        Periodic potential evaluated in transformed coordinates.
    wall_thickness : BeamThickness or float
        Local wall thickness, evaluated at the untransformed point. A float
        is wrapped into a ``ConstantThickness``.
    transform : CoordinateTransform, optional
        Maps world points into pattern coordinates. Defaults to identity.
    logic : SplittingLogic, optional
        Converts potential and thickness into a signed distance. Defaults to
        ``FullWallLogic``.
    field : RandomDeformationField, optional
        Displacement added to the points before the transform.
    bounds : array-like, optional
        Domain bounds of shape (2, 3) reported to samplers. Defaults to
        ``[-1, 1]^3``.
    """

    def __init__(
        self,
        pattern: RawTPMSPattern,
        wall_thickness: BeamThickness | float,
        transform: CoordinateTransform | None = None,
        logic: SplittingLogic | None = None,
        field: RandomDeformationField | None = None,
        bounds=None,
    ):
        if not isinstance(pattern, RawTPMSPattern):
            raise TypeError(f"Expected a RawTPMSPattern, got {type(pattern)}")
        if not isinstance(wall_thickness, BeamThickness):
            wall_thickness = ConstantThickness(float(wall_thickness))
        self.pattern = pattern
        self.wall_thickness = wall_thickness
        self.transform = transform if transform is not None else IdentityTransform()
        self.logic = logic if logic is not None else FullWallLogic()
        self.field = field
        if bounds is None:
            bounds = [[-1.0, -1.0, -1.0], [1.0, 1.0, 1.0]]
        self.bounds = as_bounds(bounds)
        logger.debug(
            f"Implicit structure: {type(self.pattern).__name__} with "
            f"{type(self.logic).__name__}"
        )

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        if self.field is not None:
            warped = queries + self.field(queries)
        else:
            warped = queries
        coords = self.transform(warped)
        potential = self.pattern(coords, world=queries)
        thickness = self.wall_thickness(queries).squeeze(1)
        return self.logic(potential, thickness).reshape(-1, 1)

    def _get_domain_bounds(self) -> torch.Tensor:
        return self.bounds


def gyroid(unit_size: float, wall_thickness: float, bounds=None) -> ImplicitStructure:
    return ImplicitStructure(
        RawGyroidPattern(unit_size), wall_thickness, bounds=bounds
    )


def schwarz_primitive(
    unit_size: float, wall_thickness: float, bounds=None
) -> ImplicitStructure:
    return ImplicitStructure(
        RawSchwarzPrimitivePattern(unit_size), wall_thickness, bounds=bounds
    )


def schwarz_diamond(
    unit_size: float, wall_thickness: float, bounds=None
) -> ImplicitStructure:
    return ImplicitStructure(
        RawSchwarzDiamondPattern(unit_size), wall_thickness, bounds=bounds
    )


def lidinoid(unit_size: float, wall_thickness: float, bounds=None) -> ImplicitStructure:
    """Lidinoid wall pattern. The unit size is halved internally."""
    return ImplicitStructure(
        RawLidinoidPattern(unit_size), wall_thickness, bounds=bounds
    )


def split_wall_gyroid(
    unit_size: float, wall_thickness: float, side: bool, bounds=None
) -> ImplicitStructure:
    """Gyroid wall that keeps material on one side of the zero level set.

    ``side=True`` keeps the negative side of the potential
    (``PositiveHalfWallLogic``), ``side=False`` the positive side. The
    union of both halves is the full wall.
    """
    logic = PositiveHalfWallLogic() if side else NegativeHalfWallLogic()
    return ImplicitStructure(
        RawGyroidPattern(unit_size), wall_thickness, logic=logic, bounds=bounds
    )


def split_void_gyroid(
    unit_size: float, wall_thickness: float, side: bool, bounds=None
) -> ImplicitStructure:
    """Gyroid void channel on one side of the zero level set.

    ``side=True`` uses ``PositiveVoidLogic``, ``side=False``
    ``NegativeVoidLogic``.
    """
    logic = PositiveVoidLogic() if side else NegativeVoidLogic()
    return ImplicitStructure(
        RawGyroidPattern(unit_size), wall_thickness, logic=logic, bounds=bounds
    )


def randomized_schwarz_primitive(
    unit_size: float,
    wall_thickness: float,
    field: RandomDeformationField,
    bounds=None,
) -> ImplicitStructure:
    if bounds is None:
        bounds = field.bounds
    return ImplicitStructure(
        RawSchwarzPrimitivePattern(unit_size),
        wall_thickness,
        field=field,
        bounds=bounds,
    )


def radial_gyroid(
    units_per_round: int,
    unit_size_z: float,
    wall_thickness: float,
    bounds=None,
) -> ImplicitStructure:
    """Gyroid wrapped around the z-axis with ``units_per_round`` periods
    per revolution and period ``unit_size_z`` along the radius and z.
    """
    transform = CombinedTransform(
        [
            RadialTransform(units_per_round),
            ScaleTransform(1.0, 2.0 * math.pi / unit_size_z, 1.0),
        ]
    )
    return ImplicitStructure(
        RawGyroidPattern(unit_size_z),
        wall_thickness,
        transform=transform,
        bounds=bounds,
    )
