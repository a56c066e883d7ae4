import gustaf as gus
import pytest
import torch

from InfillSDF.beam_network import BeamNetwork
from InfillSDF.beam_thickness import (
    BoundaryThickness,
    CellBasedThickness,
    ConstantThickness,
    GlobalFunctionThickness,
)
from InfillSDF.cell_array import RegularCellArray, RegularUnitCell
from InfillSDF.lattice_structure import generate_lattice
from InfillSDF.lattice_types import (
    BodyCentredLattice,
    LatticeTypeName,
    OctahedronLattice,
    RandomSplineLattice,
    add_beams,
    get_lattice_type,
)
from InfillSDF.sdf_primitives import SphereSDF
from InfillSDF.unit_cell import CuboidCell, UnitCell


@pytest.fixture
def cube():
    """Unit cube centred at the origin, lower face first."""
    return CuboidCell(
        [-0.5, -0.5, -0.5],
        [-0.5, 0.5, -0.5],
        [0.5, 0.5, -0.5],
        [0.5, -0.5, -0.5],
        [-0.5, -0.5, 0.5],
        [-0.5, 0.5, 0.5],
        [0.5, 0.5, 0.5],
        [0.5, -0.5, 0.5],
    )


@pytest.fixture
def skewed():
    torch.manual_seed(0)
    return UnitCell(RegularUnitCell(2.0, 3.0, 4.0).corners[0] + 0.2 * torch.rand(8, 3))


def test_unit_cell_properties(cube):
    torch.testing.assert_close(cube.centre, torch.zeros(3))
    torch.testing.assert_close(cube.size, torch.ones(3))
    torch.testing.assert_close(
        cube.bounds, torch.tensor([[-0.5, -0.5, -0.5], [0.5, 0.5, 0.5]])
    )
    assert cube.n_corners == 8


def test_unit_cell_face_centres(cube):
    faces = cube.face_centres()
    expected = {
        "lower": [0.0, 0.0, -0.5],
        "upper": [0.0, 0.0, 0.5],
        "front": [-0.5, 0.0, 0.0],
        "right": [0.0, 0.5, 0.0],
        "back": [0.5, 0.0, 0.0],
        "left": [0.0, -0.5, 0.0],
    }
    for name, value in expected.items():
        torch.testing.assert_close(faces[name], torch.tensor(value))


def test_unit_cell_invalid_shape():
    with pytest.raises(ValueError):
        UnitCell(torch.zeros(8, 2))


def test_body_centred_lattice(cube):
    network = BeamNetwork()
    BodyCentredLattice().emit(network, cube, ConstantThickness(0.2))
    assert len(network) == 8
    assert torch.equal(network.ends, torch.zeros(8, 3))
    assert torch.equal(network.starts, cube.corners)
    torch.testing.assert_close(network.start_radii, torch.full((8,), 0.1))
    torch.testing.assert_close(network.end_radii, torch.full((8,), 0.1))


def test_octahedron_lattice(cube, skewed):
    for cell in [cube, skewed]:
        network = BeamNetwork()
        OctahedronLattice().emit(network, cell, ConstantThickness(0.2))
        assert len(network) == 12
        end_points = torch.cat([network.starts, network.ends], dim=0)
        assert torch.unique(end_points, dim=0).shape[0] == 6


def test_octahedron_beams_connect_adjacent_faces(cube):
    network = BeamNetwork()
    OctahedronLattice().emit(network, cube, ConstantThickness(0.2))
    # adjacent face centres of a unit cube are sqrt(0.5) apart
    lengths = torch.linalg.norm(network.ends - network.starts, dim=1)
    torch.testing.assert_close(lengths, torch.full((12,), 0.5**0.5))


def test_sub_samples_split_beams(cube):
    network = BeamNetwork()
    thickness = GlobalFunctionThickness(0.5, 2.0, slope=1.0)
    BodyCentredLattice().emit(network, cube, thickness, n_sub_samples=5)
    assert len(network) == 8 * 4
    # consecutive segments of one beam share their end points
    starts = network.starts.reshape(8, 4, 3)
    ends = network.ends.reshape(8, 4, 3)
    assert torch.equal(starts[:, 1:], ends[:, :-1])
    assert torch.equal(starts[:, 0], cube.corners)
    assert torch.equal(ends[:, -1], torch.zeros(8, 3))
    # radii are sampled independently at every segment end point
    expected = 0.5 * thickness(network.starts).squeeze(1)
    torch.testing.assert_close(network.start_radii, expected)


@pytest.mark.parametrize("n_sub_samples", [0, 1, 2.5])
def test_invalid_sub_samples(cube, n_sub_samples):
    with pytest.raises(ValueError):
        BodyCentredLattice().emit(
            BeamNetwork(), cube, ConstantThickness(0.2), n_sub_samples
        )


@pytest.mark.parametrize(
    "lattice", [BodyCentredLattice(), OctahedronLattice(), RandomSplineLattice()]
)
def test_lattice_requires_eight_corners(lattice):
    cell = UnitCell(torch.rand(6, 3))
    with pytest.raises(ValueError):
        lattice.emit(BeamNetwork(), cell, ConstantThickness(0.2))


def test_random_spline_lattice(cube):
    network = BeamNetwork()
    RandomSplineLattice(passes=2, seed=4).emit(network, cube, ConstantThickness(0.2))
    # 8 corners, 2 passes, 19 segments per spline
    assert len(network) == 8 * 2 * 19
    starts = network.starts.reshape(16, 19, 3)
    ends = network.ends.reshape(16, 19, 3)
    corners = cube.corners.repeat(2, 1)
    torch.testing.assert_close(starts[:, 0], corners)
    for chain_end, start in zip(ends[:, -1], corners):
        # every chain ends on a different corner
        distances = torch.linalg.norm(cube.corners - chain_end, dim=1)
        assert torch.min(distances) < 1e-5
        assert torch.linalg.norm(chain_end - start) > 0.5


def test_random_spline_lattice_seed(cube):
    a, b = BeamNetwork(), BeamNetwork()
    RandomSplineLattice(seed=1).emit(a, cube, ConstantThickness(0.2))
    RandomSplineLattice(seed=1).emit(b, cube, ConstantThickness(0.2))
    assert torch.equal(a.starts, b.starts)


def test_random_spline_invalid_passes():
    with pytest.raises(ValueError):
        RandomSplineLattice(passes=0)


def test_get_lattice_type():
    assert isinstance(get_lattice_type("octahedron"), OctahedronLattice)
    assert isinstance(
        get_lattice_type(LatticeTypeName.RandomSpline, passes=3), RandomSplineLattice
    )
    with pytest.raises(ValueError):
        get_lattice_type("kagome")


def test_beam_network():
    network = BeamNetwork()
    assert len(network) == 0
    assert network.starts.shape == (0, 3)
    network.add_beam([0.0, 0.0, 0.0], 1.0, [1.0, 0.0, 0.0], 0.5)
    add_beams(
        network,
        torch.zeros(2, 3),
        torch.ones(2, 3),
        ConstantThickness(2.0),
    )
    assert len(network) == 3

    other = BeamNetwork()
    other.add_beam([0.0, 0.0, 0.0], 1.0, [0.0, 0.0, 1.0], 1.0)
    network.extend(other)
    assert len(network) == 4
    torch.testing.assert_close(network.start_radii, torch.tensor([1.0, 1.0, 1.0, 1.0]))

    with pytest.raises(ValueError):
        network.add_beams(torch.zeros(2, 3), torch.ones(1), torch.ones(2, 3), torch.ones(2))


def test_beam_network_to_gus(cube):
    network = BeamNetwork()
    BodyCentredLattice().emit(network, cube, ConstantThickness(0.2))
    edges = network.to_gus()
    assert isinstance(edges, gus.Edges)
    assert edges.vertices.shape == (16, 3)
    assert edges.edges.shape == (8, 2)
    assert edges.vertex_data["radius"].shape[0] == 16


def test_generate_lattice():
    sphere = SphereSDF(center=[0, 0, 0], radius=10.0)
    cells = RegularCellArray(sphere, 10.0, 10.0, 10.0, noise_level=0.1)
    network = generate_lattice(
        cells, OctahedronLattice(), ConstantThickness(1.0), n_sub_samples=3
    )
    assert len(network) == len(cells) * 12 * 2


def test_generate_lattice_binds_boundary():
    sphere = SphereSDF(center=[0, 0, 0], radius=10.0)
    cells = RegularCellArray(sphere, 10.0, 10.0, 10.0)
    thickness = BoundaryThickness(0.5, 2.0)
    network = generate_lattice(
        cells, BodyCentredLattice(), thickness, boundary=sphere
    )
    assert len(network) == len(cells) * 8
    assert torch.all(network.start_radii >= 0.25)
    assert torch.all(network.start_radii <= 1.0)


def test_generate_lattice_cell_based_thickness():
    cells = RegularCellArray([[0, 0, 0], [10, 10, 10]], 10.0, 10.0, 10.0)
    network = generate_lattice(
        cells, BodyCentredLattice(), CellBasedThickness(1.0, 3.0, seed=0)
    )
    radii = network.start_radii.reshape(len(cells), 8)
    # one thickness per cell
    assert torch.all(radii == radii[:, :1])
    assert torch.all(radii >= 0.5) and torch.all(radii <= 1.5)


if __name__ == "__main__":
    test_generate_lattice()
