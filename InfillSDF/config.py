"""
Dictionary Configuration
========================

Builds implicit structures and lattice components from plain dictionaries,
e.g. loaded from JSON. Names are resolved through the enums of the
component modules and numeric options are range checked before anything
is constructed.

Examples
--------
>>> from InfillSDF.config import build_implicit_structure
>>>
>>> config = {
...     "pattern": "gyroid",
...     "wall_thickness": {"type": "global_function", "min": 0.2, "max": 0.8},
...     "transform": {"type": "scale", "unit": [10.0, 10.0, 10.0]},
...     "logic": "positive_half_wall",
... }
>>> sdf = build_implicit_structure(config)
"""

import logging
from typing import TypedDict

import InfillSDF
from InfillSDF.beam_thickness import (
    BeamThickness,
    BoundaryThickness,
    CellBasedThickness,
    ConstantThickness,
    GlobalFunctionThickness,
)
from InfillSDF.cell_array import (
    MAX_NOISE_LEVEL,
    CellArray,
    ConformalCellArray,
    RegularCellArray,
    RegularUnitCell,
)
from InfillSDF.coordinate_transforms import (
    CombinedTransform,
    CoordinateTransform,
    FunctionalScaleTransform,
    IdentityTransform,
    RadialTransform,
    ScaleTransform,
)
from InfillSDF.deformation_field import RandomDeformationField
from InfillSDF.implicit_structure import ImplicitStructure
from InfillSDF.lattice_types import (
    LatticeType,
    LatticeTypeName,
    check_n_sub_samples,
    get_lattice_type,
)
from InfillSDF.splitting_logic import get_splitting_logic
from InfillSDF.tpms import get_pattern

logger = logging.getLogger(InfillSDF.__name__)


class ThicknessConfig(TypedDict, total=False):
    type: str
    value: float
    min: float
    max: float
    slope: float
    transition: float
    smoothing: float
    seed: int


class TransformConfig(TypedDict, total=False):
    type: str
    unit: list[float]
    z_range: float
    unit_bottom: float
    unit_top: float
    z_value: float
    samples_per_round: int
    twist_rate: float


class FieldConfig(TypedDict, total=False):
    bounds: list[list[float]]
    resolution: float
    min_value: float
    max_value: float
    seed: int


class ImplicitConfig(TypedDict, total=False):
    pattern: str
    unit_size: float
    wall_thickness: float | ThicknessConfig
    transform: TransformConfig | list[TransformConfig]
    logic: str
    field: FieldConfig
    bounds: list[list[float]]


class CellArrayConfig(TypedDict, total=False):
    type: str
    size: list[float]
    noise_level: float
    seed: int
    shape: object
    n_cells: list[int]


class LatticeConfig(TypedDict, total=False):
    cells: CellArrayConfig
    lattice: str
    passes: int
    seed: int
    thickness: float | ThicknessConfig
    n_sub_samples: int


def _require(config: dict, key: str, where: str):
    if key not in config:
        raise ValueError(f"Missing required option '{key}' in {where} configuration")
    return config[key]


def build_thickness(config: float | ThicknessConfig) -> BeamThickness:
    if isinstance(config, (int, float)):
        return ConstantThickness(float(config))
    kind = _require(config, "type", "thickness")
    if kind == "constant":
        return ConstantThickness(float(_require(config, "value", "thickness")))
    if kind == "global_function":
        return GlobalFunctionThickness(
            _require(config, "min", "thickness"),
            _require(config, "max", "thickness"),
            slope=config.get("slope", 0.02),
        )
    if kind == "boundary":
        return BoundaryThickness(
            _require(config, "min", "thickness"),
            _require(config, "max", "thickness"),
            transition=config.get("transition", 15.0),
            smoothing=config.get("smoothing", 5.0),
        )
    if kind == "cell_based":
        return CellBasedThickness(
            _require(config, "min", "thickness"),
            _require(config, "max", "thickness"),
            seed=config.get("seed", 0),
        )
    raise ValueError(f"Unknown thickness type: {kind}")


def build_transform(
    config: TransformConfig | list[TransformConfig] | None,
) -> CoordinateTransform:
    if config is None:
        return IdentityTransform()
    if isinstance(config, (list, tuple)):
        return CombinedTransform([build_transform(c) for c in config])
    kind = _require(config, "type", "transform")
    if kind == "identity":
        return IdentityTransform()
    if kind == "scale":
        unit = _require(config, "unit", "transform")
        if isinstance(unit, (int, float)):
            unit = [unit, unit, unit]
        if len(unit) != 3:
            raise ValueError(f"Scale transform needs 3 unit sizes, got {unit}")
        return ScaleTransform(*unit)
    if kind == "functional_scale":
        options = ("z_range", "unit_bottom", "unit_top", "z_value")
        return FunctionalScaleTransform(
            **{key: config[key] for key in options if key in config}
        )
    if kind == "radial":
        return RadialTransform(
            _require(config, "samples_per_round", "transform"),
            twist_rate=config.get("twist_rate", 0.0),
        )
    raise ValueError(f"Unknown transform type: {kind}")


def build_field(config: FieldConfig) -> RandomDeformationField:
    resolution = _require(config, "resolution", "field")
    if resolution <= 0:
        raise ValueError(f"Field resolution must be positive, got {resolution}")
    return RandomDeformationField(
        _require(config, "bounds", "field"),
        resolution,
        config.get("min_value", -1.0),
        config.get("max_value", 1.0),
        seed=config.get("seed"),
    )


def build_implicit_structure(config: ImplicitConfig) -> ImplicitStructure:
    """Build an ``ImplicitStructure`` from a configuration dictionary.

    Required keys are ``pattern`` (a ``TPMSType`` value) and
    ``wall_thickness``. ``transform`` may be a single transform or a list
    that is combined in order. ``logic`` defaults to ``"full_wall"``.
    """
    pattern_name = _require(config, "pattern", "implicit")
    pattern = get_pattern(pattern_name, unit_size=config.get("unit_size", 1.0))
    field = build_field(config["field"]) if "field" in config else None
    structure = ImplicitStructure(
        pattern,
        build_thickness(_require(config, "wall_thickness", "implicit")),
        transform=build_transform(config.get("transform")),
        logic=get_splitting_logic(config.get("logic", "full_wall")),
        field=field,
        bounds=config.get("bounds"),
    )
    logger.debug(f"Built implicit structure with {type(pattern).__name__}")
    return structure


def build_cell_array(config: CellArrayConfig, boundary=None) -> CellArray:
    kind = config.get("type", "regular")
    if kind == "conformal":
        n_cells = _require(config, "n_cells", "cell array")
        return ConformalCellArray(_require(config, "shape", "cell array"), *n_cells)

    size = _require(config, "size", "cell array")
    if isinstance(size, (int, float)):
        size = [size, size, size]
    noise_level = config.get("noise_level", 0.0)
    if not 0.0 <= noise_level <= MAX_NOISE_LEVEL:
        raise ValueError(
            f"noise_level must be within [0, {MAX_NOISE_LEVEL}], got {noise_level}"
        )
    if kind == "regular":
        if boundary is None:
            raise ValueError("A regular cell array needs a boundary")
        return RegularCellArray(
            boundary, *size, noise_level=noise_level, seed=config.get("seed")
        )
    if kind == "unit_cell":
        return RegularUnitCell(*size, noise_level=noise_level, seed=config.get("seed"))
    raise ValueError(f"Unknown cell array type: {kind}")


def build_lattice_components(
    config: LatticeConfig, boundary=None
) -> tuple[CellArray, LatticeType, BeamThickness, int]:
    """Build the inputs of ``generate_lattice`` from a configuration.

    Returns
    -------
    tuple
        ``(cell_array, lattice_type, thickness, n_sub_samples)``
    """
    n_sub_samples = config.get("n_sub_samples", 2)
    check_n_sub_samples(n_sub_samples)

    lattice_name = config.get("lattice", "body_centred")
    try:
        lattice_name = LatticeTypeName(lattice_name)
    except ValueError:
        raise ValueError(f"Unknown lattice type name: {lattice_name}")
    kwargs = {}
    if lattice_name is LatticeTypeName.RandomSpline:
        passes = config.get("passes", 1)
        if int(passes) != passes or passes < 1:
            raise ValueError(f"passes must be a positive integer, got {passes}")
        kwargs = {"passes": passes, "seed": config.get("seed")}
    lattice_type = get_lattice_type(lattice_name, **kwargs)

    cell_array = build_cell_array(_require(config, "cells", "lattice"), boundary)
    thickness = build_thickness(_require(config, "thickness", "lattice"))
    logger.debug(
        f"Built {type(lattice_type).__name__} lattice components with "
        f"{len(cell_array)} cells"
    )
    return cell_array, lattice_type, thickness, int(n_sub_samples)
