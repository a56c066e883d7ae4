from InfillSDF.SDF import SDFBase
import torch


class SphereSDF(SDFBase):
    def __init__(self, center, radius):
        self.center = torch.tensor(center, dtype=torch.float32)
        self.r = radius

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        center = self.center.to(device=queries.device, dtype=queries.dtype)
        return (torch.linalg.norm(queries - center, dim=1) - self.r).reshape(-1, 1)

    def _get_domain_bounds(self) -> torch.Tensor:
        return torch.stack([self.center - self.r, self.center + self.r], dim=0)


class BoxSDF(SDFBase):
    """Axis-aligned box given by its centre and edge lengths."""

    def __init__(self, center, size):
        self.center = torch.tensor(center, dtype=torch.float32)
        self.half_size = 0.5 * torch.tensor(size, dtype=torch.float32)

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        center = self.center.to(device=queries.device, dtype=queries.dtype)
        half_size = self.half_size.to(device=queries.device, dtype=queries.dtype)
        q = torch.abs(queries - center) - half_size
        outside = torch.linalg.norm(torch.clamp(q, min=0.0), dim=1)
        inside = torch.clamp(q.max(dim=1).values, max=0.0)
        return (outside + inside).reshape(-1, 1)

    def _get_domain_bounds(self) -> torch.Tensor:
        return torch.stack(
            [self.center - self.half_size, self.center + self.half_size], dim=0
        )


class PipeSDF(SDFBase):
    """Hollow cylinder along z, from ``z=0`` to ``z=length``."""

    def __init__(self, length, inner_radius, outer_radius):
        if not 0 <= inner_radius < outer_radius:
            raise ValueError(
                f"Expected 0 <= inner_radius < outer_radius, got "
                f"{inner_radius} and {outer_radius}"
            )
        self.length = length
        self.inner_radius = inner_radius
        self.outer_radius = outer_radius

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        radius = torch.sqrt(queries[:, 0] ** 2 + queries[:, 1] ** 2)
        mid = 0.5 * (self.inner_radius + self.outer_radius)
        half_wall = 0.5 * (self.outer_radius - self.inner_radius)
        d_radial = torch.abs(radius - mid) - half_wall
        d_axial = torch.abs(queries[:, 2] - 0.5 * self.length) - 0.5 * self.length
        q = torch.stack([d_radial, d_axial], dim=1)
        outside = torch.linalg.norm(torch.clamp(q, min=0.0), dim=1)
        inside = torch.clamp(q.max(dim=1).values, max=0.0)
        return (outside + inside).reshape(-1, 1)

    def _get_domain_bounds(self) -> torch.Tensor:
        r = self.outer_radius
        return torch.tensor([[-r, -r, 0.0], [r, r, self.length]], dtype=torch.float32)
