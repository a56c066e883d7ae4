import torch

from InfillSDF.utils import bounds_from_points


class UnitCell:
    """Minimal building block of a lattice, defined by its corner points.

    Hexahedral cells carry 8 corners: the 4 lower corners in winding order,
    then the 4 matching upper corners in the same order. Lattice types rely
    on this ordering to group corners into faces.

    Parameters
    ----------
    corners : torch.Tensor or array-like
        Corner coordinates of shape (K, 3).
    """

    def __init__(self, corners):
        if not isinstance(corners, torch.Tensor):
            corners = torch.tensor(corners, dtype=torch.float32)
        if corners.ndim != 2 or corners.shape[1] != 3:
            raise ValueError(
                f"Expected corners of shape (K, 3), got {tuple(corners.shape)}"
            )
        self._corners = corners
        self._centre = corners.mean(dim=0)
        self._bounds = bounds_from_points(corners)

    @property
    def corners(self) -> torch.Tensor:
        return self._corners

    @property
    def centre(self) -> torch.Tensor:
        return self._centre

    @property
    def bounds(self) -> torch.Tensor:
        return self._bounds

    @property
    def size(self) -> torch.Tensor:
        return self._bounds[1] - self._bounds[0]

    @property
    def n_corners(self) -> int:
        return self._corners.shape[0]

    def face_centres(self) -> dict[str, torch.Tensor]:
        """Mean of the four corners of each face of a hexahedral cell."""
        if self.n_corners != 8:
            raise ValueError(
                f"Face centres need a hexahedral cell with 8 corners, "
                f"got {self.n_corners}"
            )
        c = self._corners
        return {
            "lower": 0.25 * (c[0] + c[1] + c[2] + c[3]),
            "upper": 0.25 * (c[4] + c[5] + c[6] + c[7]),
            "front": 0.25 * (c[4] + c[5] + c[0] + c[1]),
            "right": 0.25 * (c[6] + c[5] + c[2] + c[1]),
            "back": 0.25 * (c[6] + c[7] + c[2] + c[3]),
            "left": 0.25 * (c[4] + c[7] + c[0] + c[3]),
        }

    def __repr__(self):
        return f"{type(self).__name__}(centre={self._centre.tolist()})"


class CuboidCell(UnitCell):
    """Hexahedral cell from 8 corners, lower 1-4 then upper 5-8."""

    def __init__(self, c1, c2, c3, c4, c5, c6, c7, c8):
        corners = [c1, c2, c3, c4, c5, c6, c7, c8]
        if all(isinstance(c, torch.Tensor) for c in corners):
            super().__init__(torch.stack(corners, dim=0))
        else:
            super().__init__(torch.tensor(corners, dtype=torch.float32))
