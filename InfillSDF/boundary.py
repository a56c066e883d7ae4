"""
Bounding Shapes
===============

Closest-surface-point queries against the solid an infill is placed in.
Boundary-relative thickness providers use them to thicken walls and struts
close to the outer skin.

Classes
-------
MeshBoundary
    Triangle mesh boundary, queried with libigl.
SDFBoundary
    Boundary given implicitly by an ``SDFBase``; points are projected along
    the normalised SDF gradient.
"""

import logging

import gustaf
import igl
import numpy as np
import torch
import trimesh

import InfillSDF
from InfillSDF.SDF import SDFBase

logger = logging.getLogger(InfillSDF.__name__)


class MeshBoundary:
    """Closest points on a triangle mesh.

    Parameters
    ----------
    mesh : trimesh.Trimesh or gustaf.faces.Faces
        The bounding surface. A gustaf Faces object is converted to trimesh.
    """

    def __init__(self, mesh):
        if type(mesh) is gustaf.faces.Faces:
            mesh = trimesh.Trimesh(mesh.vertices, mesh.faces)
        self.mesh = mesh
        self._vertices = np.asarray(mesh.vertices, dtype=np.float64)
        self._faces = np.array(mesh.faces, dtype=np.int32)
        logger.debug(f"Mesh boundary with {len(self._faces)} faces")

    @property
    def bounds(self) -> torch.Tensor:
        return torch.tensor(self.mesh.bounds, dtype=torch.float32)

    def nearest_surface_point(self, points: torch.Tensor) -> torch.Tensor:
        queries_np = points.detach().cpu().numpy().astype(np.float64)
        _, _, hit_coordinates = igl.point_mesh_squared_distance(
            queries_np, self._vertices, self._faces
        )
        return torch.tensor(hit_coordinates, dtype=points.dtype, device=points.device)


class SDFBoundary:
    """Closest points on the zero level set of an SDF.

    Uses ``p - d(p) * grad d(p) / |grad d(p)|``, which is exact for true
    distance fields and a first order approximation otherwise.
    """

    def __init__(self, sdf: SDFBase):
        self.sdf = sdf

    @property
    def bounds(self) -> torch.Tensor:
        return self.sdf._get_domain_bounds()

    def nearest_surface_point(self, points: torch.Tensor) -> torch.Tensor:
        with torch.enable_grad():
            queries = points.detach().clone().requires_grad_(True)
            distances = self.sdf(queries)
            (gradient,) = torch.autograd.grad(distances.sum(), queries)
        norm = torch.linalg.norm(gradient, dim=1, keepdim=True)
        direction = gradient / torch.clamp(norm, min=1e-12)
        return (points - distances.detach() * direction).detach()


def as_boundary(obj):
    """Wrap meshes and SDFs so they answer ``nearest_surface_point``."""
    if hasattr(obj, "nearest_surface_point"):
        return obj
    if isinstance(obj, SDFBase):
        return SDFBoundary(obj)
    if isinstance(obj, (trimesh.Trimesh, gustaf.faces.Faces)):
        return MeshBoundary(obj)
    raise TypeError(f"Cannot use object of type {type(obj)} as a boundary")
