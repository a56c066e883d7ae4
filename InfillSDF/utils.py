"""
Utility Functions
=================

This module provides general utility functions used throughout InfillSDF,
including logging configuration, interpolation helpers and bounding box
handling.

Functions
---------
configure_logging
    Set up logging for the InfillSDF package with customizable
    output format and destinations.
limit_value
    Clamp values into a closed interval.
trans_fixed
    Linear transition between two values for a ratio in [0, 1].
trans_smooth
    Logistic transition between two values around a transition point.
bounds_from_points
    Axis-aligned bounding box of a point set.
as_bounds
    Normalise bounding box input to a (2, 3) tensor.
position_rng
    Numpy generator seeded deterministically from a position.
"""

import logging

import numpy as np
import torch

import InfillSDF


def configure_logging(level=logging.INFO, logfile=None):
    """Attach console (and optionally file) output to the package logger.

    Runs once on ``import InfillSDF``. Calling it again only changes the
    level and adds the file handler, the console handler is not duplicated.

    Parameters
    ----------
    level : int, default logging.INFO
        Threshold for the ``InfillSDF`` logger.
    logfile : str, optional
        Additionally write records to this file.

    Examples
    --------
    >>> import logging
    >>> from InfillSDF.utils import configure_logging
    >>> configure_logging(level=logging.DEBUG, logfile="lattice.log")
    """
    logger = logging.getLogger(InfillSDF.__name__)
    logger.setLevel(level)
    formatter = logging.Formatter("%(asctime)s %(message)s", datefmt="%H:%M:%S")

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)

    if logfile is not None:
        file_handler = logging.FileHandler(logfile)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def limit_value(value, lower, upper):
    """Clamp ``value`` into ``[lower, upper]``. Works on floats and tensors."""
    if isinstance(value, torch.Tensor):
        return torch.clamp(value, min=lower, max=upper)
    return min(max(value, lower), upper)


def trans_fixed(value_1, value_2, ratio):
    """Linear transition from ``value_1`` (ratio 0) to ``value_2`` (ratio 1)."""
    return value_1 + ratio * (value_2 - value_1)


def trans_smooth(value_1, value_2, x: torch.Tensor, transition, smoothing):
    """Logistic transition from ``value_1`` to ``value_2``.

    The result equals the mean of both values at ``x == transition`` and
    saturates towards ``value_1`` for ``x << transition`` and towards
    ``value_2`` for ``x >> transition``. ``smoothing`` controls the width
    of the transition zone.
    """
    s = torch.sigmoid((x - transition) / smoothing)
    return (1.0 - s) * value_1 + s * value_2


def bounds_from_points(points: torch.Tensor) -> torch.Tensor:
    """Axis-aligned bounding box of ``points`` (N, 3) as a (2, 3) tensor."""
    return torch.stack([points.min(dim=0).values, points.max(dim=0).values], dim=0)


def as_bounds(bounds, dtype=torch.float32) -> torch.Tensor:
    """Return ``bounds`` as a float tensor of shape (2, 3).

    Accepts tensors, numpy arrays and nested lists of the form
    [[xmin, ymin, zmin], [xmax, ymax, zmax]].
    """
    if isinstance(bounds, np.ndarray):
        bounds = torch.tensor(bounds, dtype=dtype)
    elif not isinstance(bounds, torch.Tensor):
        bounds = torch.tensor(bounds, dtype=dtype)
    if bounds.shape != (2, 3):
        raise ValueError(f"Bounds should be of shape (2,3), got {tuple(bounds.shape)}")
    if not torch.is_floating_point(bounds):
        bounds = bounds.to(dtype)
    if torch.any(bounds[1] < bounds[0]):
        raise ValueError(f"Lower bounds {bounds[0]} exceed upper bounds {bounds[1]}")
    return bounds


def position_rng(coords, quantization=1000.0, seed=None) -> np.random.Generator:
    """Random generator keyed on a position.

    The coordinates are quantised to integers (``int(c * quantization)``)
    and hashed together with the optional ``seed`` through numpy's
    ``SeedSequence``, so the same position always yields the same stream
    while neighbouring positions and zero coordinates do not collide.
    """
    keys = np.array(
        [int(float(c) * quantization) for c in coords], dtype=np.int64
    ).view(np.uint64)
    entropy = [int(k) for k in keys]
    if seed is not None:
        entropy.append(int(seed))
    return np.random.default_rng(entropy)
