"""
InfillSDF - Composable Infill Patterns for Solid Models
=======================================================

InfillSDF generates generative-design infill geometry in two flavours:
continuous triply periodic minimal surfaces (TPMS) evaluated as Signed
Distance Functions (SDFs), and discrete beam lattices built over a
decomposition of space into unit cells. The output is meant to be consumed
by an external geometry kernel that voxelises the SDF or the beam network.

Key Components
--------------

Implicit Patterns
    - ``InfillSDF.SDF``: Abstract base class and core SDF utilities
    - ``InfillSDF.coordinate_transforms``: Remapping of query points
    - ``InfillSDF.tpms``: Raw periodic surface formulas
    - ``InfillSDF.splitting_logic``: Wall/void policies
    - ``InfillSDF.deformation_field``: Random spatial warping
    - ``InfillSDF.implicit_structure``: Composer and preset patterns

Lattices
    - ``InfillSDF.unit_cell``: Hexahedral unit cells
    - ``InfillSDF.cell_array``: Regular and conformal cell decompositions
    - ``InfillSDF.base_shapes``: Parametric host shapes for conformal arrays
    - ``InfillSDF.lattice_types``: Connectivity rules emitting beams
    - ``InfillSDF.beam_network``: Accumulated beams
    - ``InfillSDF.lattice_structure``: Cell array to beam network driver

Shared
    - ``InfillSDF.beam_thickness``: Wall and strut thickness providers
    - ``InfillSDF.boundary``: Closest-surface-point queries
    - ``InfillSDF.config``: Dictionary based configuration
    - ``InfillSDF.utils``: Logging and interpolation helpers

Examples
--------
Evaluate a gyroid wall pattern::

    import torch
    from InfillSDF.implicit_structure import ImplicitStructure
    from InfillSDF.tpms import RawGyroidPattern
    from InfillSDF.coordinate_transforms import ScaleTransform
    from InfillSDF.beam_thickness import ConstantThickness

    gyroid = ImplicitStructure(
        pattern=RawGyroidPattern(),
        wall_thickness=ConstantThickness(0.5),
        transform=ScaleTransform(10, 10, 10),
    )
    distances = gyroid(torch.rand(100, 3) * 50)

Build a body centred lattice inside a sphere::

    from InfillSDF.sdf_primitives import SphereSDF
    from InfillSDF.cell_array import RegularCellArray
    from InfillSDF.lattice_types import BodyCentredLattice
    from InfillSDF.lattice_structure import generate_lattice

    sphere = SphereSDF(center=[0, 0, 0], radius=50)
    cells = RegularCellArray(sphere, 20, 20, 20, noise_level=0.2)
    network = generate_lattice(
        cells, BodyCentredLattice(), ConstantThickness(2.0), n_sub_samples=5
    )
"""

import InfillSDF.utils

InfillSDF.utils.configure_logging()

__version__ = "0.1.0"
