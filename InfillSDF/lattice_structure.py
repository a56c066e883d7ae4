import logging

from tqdm import tqdm

import InfillSDF
from InfillSDF.beam_network import BeamNetwork
from InfillSDF.beam_thickness import BeamThickness
from InfillSDF.cell_array import CellArray
from InfillSDF.lattice_types import LatticeType, check_n_sub_samples

logger = logging.getLogger(InfillSDF.__name__)


def generate_lattice(
    cell_array: CellArray,
    lattice_type: LatticeType,
    thickness: BeamThickness,
    n_sub_samples: int = 2,
    boundary=None,
    network: BeamNetwork | None = None,
    show_progress: bool = True,
) -> BeamNetwork:
    """Build the beam network of a lattice.

    For every cell of ``cell_array`` the thickness provider is notified with
    ``on_cell_visited(cell)`` and the lattice type emits the beams of that
    cell. The returned network is handed to a geometry kernel, e.g. through
    ``BeamNetwork.to_gus()``.

    Parameters
    ----------
    cell_array : CellArray
        Cells to fill, visited in order.
    lattice_type : LatticeType
        Connectivity rule.
    thickness : BeamThickness
        Strut thickness provider.
    n_sub_samples : int, default 2
        Number of thickness samples along each straight beam.
    boundary : optional
        Bounding solid bound to the thickness provider before generation,
        required by ``BoundaryThickness``.
    network : BeamNetwork, optional
        Existing network to append to.
    show_progress : bool, default True
        Display a tqdm progress bar over the cells.

    Returns
    -------
    BeamNetwork
    """
    check_n_sub_samples(n_sub_samples)
    if network is None:
        network = BeamNetwork()
    if boundary is not None:
        thickness.bind(boundary)

    n_before = len(network)
    logger.debug(
        f"Generating {type(lattice_type).__name__} lattice over {len(cell_array)} cells"
    )
    for cell in tqdm(cell_array, desc="Generating lattice", disable=not show_progress):
        thickness.on_cell_visited(cell)
        lattice_type.emit(network, cell, thickness, n_sub_samples)
    logger.debug(f"Added {len(network) - n_before} beams")
    return network
