import pytest
import torch

from InfillSDF.SDF import SummedSDF, get_equidistant_grid_sample
from InfillSDF.sdf_primitives import BoxSDF, PipeSDF, SphereSDF


@pytest.fixture
def queries():
    torch.manual_seed(42)
    return torch.rand(10, 3)


def test_sdf_primitives(queries):
    sphere = SphereSDF(center=[0.0, 0.0, 0.0], radius=0.5)
    box = BoxSDF(center=[0.0, 0.0, 0.0], size=[1.0, 2.0, 3.0])
    pipe = PipeSDF(length=2.0, inner_radius=0.2, outer_radius=0.6)

    for sdf in [sphere, box, pipe]:
        print(f"Testing {sdf.__class__.__name__}")
        out = sdf(queries)
        assert out.shape == (10, 1)


def test_sphere_values():
    sphere = SphereSDF(center=[1.0, 0.0, 0.0], radius=1.0)
    points = torch.tensor([[1.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
    torch.testing.assert_close(sphere(points), torch.tensor([[-1.0], [1.0]]))


def test_box_values():
    box = BoxSDF(center=[0.0, 0.0, 0.0], size=[2.0, 2.0, 2.0])
    points = torch.tensor([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0], [2.0, 2.0, 1.0]])
    expected = torch.tensor([[-1.0], [1.0], [2.0**0.5]])
    torch.testing.assert_close(box(points), expected)


def test_pipe_values():
    pipe = PipeSDF(length=4.0, inner_radius=1.0, outer_radius=3.0)
    points = torch.tensor([[2.0, 0.0, 2.0], [0.0, 0.0, 2.0], [2.0, 0.0, 5.0]])
    expected = torch.tensor([[-1.0], [1.0], [1.0]])
    torch.testing.assert_close(pipe(points), expected)


def test_pipe_invalid_radii():
    with pytest.raises(ValueError):
        PipeSDF(length=1.0, inner_radius=2.0, outer_radius=1.0)


def test_summed_sdf():
    a = SphereSDF(center=[-1.0, 0.0, 0.0], radius=0.5)
    b = SphereSDF(center=[1.0, 0.0, 0.0], radius=0.5)
    union = a + b
    assert isinstance(union, SummedSDF)
    points = torch.tensor([[-1.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
    torch.testing.assert_close(union(points), torch.tensor([[-0.5], [-0.5], [0.5]]))
    torch.testing.assert_close(
        union._get_domain_bounds(),
        torch.tensor([[-1.5, -0.5, -0.5], [1.5, 0.5, 0.5]]),
    )


def test_invalid_queries():
    sphere = SphereSDF(center=[0.0, 0.0, 0.0], radius=1.0)
    with pytest.raises(ValueError):
        sphere(torch.rand(5, 2))
    with pytest.raises(ValueError):
        sphere([[0.0, 0.0, 0.0]])


def test_equidistant_grid_sample():
    bounds = torch.tensor([[0.0, 0.0, 0.0], [1.0, 2.0, 3.0]])
    points = get_equidistant_grid_sample(bounds, 1.0)
    assert points.shape == (2 * 3 * 4, 3)
    torch.testing.assert_close(points.min(dim=0).values, bounds[0])
    torch.testing.assert_close(points.max(dim=0).values, bounds[1])


if __name__ == "__main__":
    test_summed_sdf()
