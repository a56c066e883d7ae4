import math

import pytest
import splinepy
import torch
import trimesh

from InfillSDF.base_shapes import BaseBox, BaseLens, BasePipeSegment, SplineBaseShape
from InfillSDF.cell_array import ConformalCellArray, RegularCellArray, RegularUnitCell
from InfillSDF.sdf_primitives import SphereSDF


@pytest.fixture
def bounds():
    return torch.tensor([[0.0, 0.0, 0.0], [4.0, 4.0, 2.0]])


def test_regular_cell_count(bounds):
    cells = RegularCellArray(bounds, 2.0, 2.0, 2.0)
    assert cells.n_cells == (4, 4, 3)
    assert len(cells) == 48
    assert cells.corners.shape == (48, 8, 3)


def test_regular_corner_order(bounds):
    cell = RegularCellArray(bounds, 2.0, 2.0, 2.0)[0]
    expected = torch.tensor(
        [
            [-1.0, -1.0, -1.0],
            [-1.0, 1.0, -1.0],
            [1.0, 1.0, -1.0],
            [1.0, -1.0, -1.0],
            [-1.0, -1.0, 1.0],
            [-1.0, 1.0, 1.0],
            [1.0, 1.0, 1.0],
            [1.0, -1.0, 1.0],
        ]
    )
    assert torch.equal(cell.corners, expected)


def test_regular_without_noise_is_exact(bounds):
    cells = RegularCellArray(bounds, 2.0, 2.0, 2.0, noise_level=0.0)
    origins = cells.corners[:, 0]
    # origins are min - d/2 + k * d, all odd integers here
    assert torch.equal(origins, torch.round(origins))
    assert torch.all(torch.remainder(origins, 2.0) == 1.0)
    assert torch.equal(origins.min(dim=0).values, torch.tensor([-1.0, -1.0, -1.0]))
    assert torch.equal(origins.max(dim=0).values, torch.tensor([5.0, 5.0, 3.0]))
    size = cells.corners[:, 6] - cells.corners[:, 0]
    assert torch.all(size == 2.0)


def test_regular_noise_is_bounded(bounds):
    spacing = torch.tensor([2.0, 1.0, 0.5])
    reference = RegularCellArray(bounds, *spacing.tolist())
    noisy = RegularCellArray(bounds, *spacing.tolist(), noise_level=0.25)
    offset = torch.abs(noisy.corners - reference.corners)
    assert torch.all(offset <= 0.25 * spacing + 1e-5)
    assert torch.any(offset > 0.0)


def test_regular_noise_level_is_clamped(bounds):
    assert RegularCellArray(bounds, 2.0, 2.0, 2.0, noise_level=0.8).noise_level == 0.3
    assert RegularCellArray(bounds, 2.0, 2.0, 2.0, noise_level=-0.1).noise_level == 0.1


def test_regular_noise_is_position_keyed(bounds):
    a = RegularCellArray(bounds, 2.0, 2.0, 2.0, noise_level=0.2)
    b = RegularCellArray(bounds, 2.0, 2.0, 2.0, noise_level=0.2)
    c = RegularCellArray(bounds, 2.0, 2.0, 2.0, noise_level=0.2, seed=11)
    assert torch.equal(a.corners, b.corners)
    assert not torch.equal(a.corners, c.corners)


def test_regular_cells_share_vertices(bounds):
    cells = RegularCellArray(bounds, 2.0, 2.0, 2.0, noise_level=0.3)
    nx, ny, nz = cells.n_cells
    # corner 3 of the first cell is corner 0 of its neighbour along x
    assert torch.equal(cells[0].corners[3], cells[ny * nz].corners[0])
    # corner 4 of the first cell is corner 0 of its neighbour along z
    assert torch.equal(cells[0].corners[4], cells[1].corners[0])


def test_regular_bounds_from_sdf():
    cells = RegularCellArray(SphereSDF(center=[0, 0, 0], radius=10.0), 5.0, 5.0, 5.0)
    assert cells.n_cells == (6, 6, 6)
    torch.testing.assert_close(
        cells[0].corners[0], torch.tensor([-12.5, -12.5, -12.5])
    )


def test_regular_bounds_from_mesh():
    mesh = trimesh.creation.box(extents=[2.0, 2.0, 2.0])
    cells = RegularCellArray(mesh, 1.0, 1.0, 1.0)
    assert len(cells) == 64


def test_regular_invalid_spacing(bounds):
    with pytest.raises(ValueError):
        RegularCellArray(bounds, 0.0, 1.0, 1.0)


def test_regular_unit_cell():
    cells = RegularUnitCell(2.0, 4.0, 6.0)
    assert len(cells) == 1
    cell = cells[0]
    assert torch.equal(cell.corners[0], torch.tensor([-1.0, -2.0, 0.0]))
    assert torch.equal(cell.corners[6], torch.tensor([1.0, 2.0, 6.0]))
    torch.testing.assert_close(cell.centre, torch.tensor([0.0, 0.0, 3.0]))


def test_base_box_surface_point():
    box = BaseBox(
        100.0,
        width=lambda lr: 60 + 20 * torch.cos(5.0 * lr),
        depth=lambda lr: 80 - 40 * torch.cos(3.0 * lr),
    )
    torch.testing.assert_close(
        box.surface_point(1.0, 1.0, 0.0), torch.tensor([40.0, 20.0, 0.0])
    )
    torch.testing.assert_close(
        box.surface_point(-1.0, 0.0, 1.0)[2], torch.tensor(100.0)
    )


def test_conformal_box():
    box = BaseBox(10.0, width=4.0, depth=6.0)
    cells = ConformalCellArray(box, 2, 3, 5)
    assert len(cells) == 30
    first = cells[0].corners
    torch.testing.assert_close(first[0], torch.tensor([-2.0, -3.0, 0.0]))
    torch.testing.assert_close(first[1], torch.tensor([0.0, -3.0, 0.0]))
    torch.testing.assert_close(first[2], torch.tensor([0.0, -1.0, 0.0]))
    torch.testing.assert_close(first[3], torch.tensor([-2.0, -1.0, 0.0]))
    torch.testing.assert_close(first[6], torch.tensor([0.0, -1.0, 2.0]))
    all_corners = cells.corners.reshape(-1, 3)
    assert torch.all(all_corners.min(dim=0).values >= torch.tensor([-2.0, -3.0, 0.0]) - 1e-5)
    assert torch.all(all_corners.max(dim=0).values <= torch.tensor([2.0, 3.0, 10.0]) + 1e-5)


def test_conformal_lens():
    lens = BaseLens(
        20.0,
        40.0,
        lower=lambda phi, rr: -20.0 + 20.0 * rr,
        upper=lambda phi, rr: 20.0 + 5.0 * torch.cos(2.0 * rr),
    )
    torch.testing.assert_close(
        lens.surface_point(1.0, 0.0, 0.0), torch.tensor([20.0, 0.0, 25.0])
    )
    cells = ConformalCellArray(lens, 3, 4, 12)
    assert len(cells) == 144
    corners = cells.corners.reshape(-1, 3)
    radius = torch.linalg.norm(corners[:, :2], dim=1)
    assert torch.all(radius >= 20.0 - 1e-4) and torch.all(radius <= 40.0 + 1e-4)


def test_conformal_pipe_segment():
    segment = BasePipeSegment(100.0, 20.0, 40.0, phi_mid=0.0, phi_range=math.pi)
    cells = ConformalCellArray(segment, 5, 2, 6)
    assert len(cells) == 60
    corners = cells.corners.reshape(-1, 3)
    radius = torch.linalg.norm(corners[:, :2], dim=1)
    assert torch.all(radius >= 20.0 - 1e-4) and torch.all(radius <= 40.0 + 1e-4)
    assert torch.all(corners[:, 0] >= -1e-4)
    assert torch.all(corners[:, 2] >= 0.0) and torch.all(corners[:, 2] <= 100.0)


def test_conformal_spline():
    spline = splinepy.helpme.create.box(2, 3, 4).bspline
    shape = SplineBaseShape(spline)
    torch.testing.assert_close(
        shape.surface_point(0.5, 0.5, 0.5),
        torch.tensor([1.0, 1.5, 2.0]),
        atol=1e-5,
        rtol=1e-5,
    )
    cells = ConformalCellArray(shape, 2, 2, 2)
    assert len(cells) == 8
    torch.testing.assert_close(
        cells[0].corners[2], torch.tensor([1.0, 1.5, 0.0]), atol=1e-5, rtol=1e-5
    )


def test_conformal_invalid_counts():
    with pytest.raises(ValueError):
        ConformalCellArray(BaseBox(10.0), 0, 1, 1)
    with pytest.raises(ValueError):
        ConformalCellArray(BaseBox(10.0), 1.5, 1, 1)


if __name__ == "__main__":
    test_regular_corner_order(torch.tensor([[0.0, 0.0, 0.0], [4.0, 4.0, 2.0]]))
