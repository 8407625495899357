# This file is part of Recombinase.
# Licensed under MIT License.

"""Validation and normalisation of dense probability tables.

A table is normalised along a tuple of *axes*: every slice obtained by fixing
the indices of the remaining axes is a distribution on its own.  For a joint
table the axes are all of them, for ``P(x | y)`` stored as ``p[x, y]`` they
are ``(0,)``.
"""

import numpy as np

# Largest deviation from 1 accepted for a slice sum at construction
NORM_TOLERANCE = 1e-4


def check_distribution(name, table, axes, ndim=None):
    """Validate *table* and return an exactly renormalised float64 copy.

    Args:
        name: Name of the parameter, used in error messages.
        table: Array-like of probabilities.
        axes: Tuple of axes each distribution spans.
        ndim: Expected number of dimensions, or None to skip the check.

    Raises:
        ValueError: on a wrong dimensionality, an empty table, negative or
            non-finite values, or slices not summing to 1.
    """
    table = np.array(table, dtype=np.float64)
    if ndim is not None and table.ndim != ndim:
        raise ValueError(
            f'{name}: expected a {ndim}-dimensional table, got shape {table.shape}'
        )
    if table.size == 0:
        raise ValueError(f'{name}: table is empty (shape {table.shape})')
    if not np.all(np.isfinite(table)):
        raise ValueError(f'{name}: table contains non-finite values')
    if np.any(table < 0):
        raise ValueError(f'{name}: table contains negative values')

    sums = table.sum(axis=axes, keepdims=True)
    bad = np.abs(sums - 1.0) > NORM_TOLERANCE
    if np.any(bad):
        offending = sums[bad][:5]
        raise ValueError(
            f'{name}: distributions along axis {axes} do not sum to 1 '
            f'({int(bad.sum())} slice(s), e.g. {offending.tolist()})'
        )
    return table / sums


def normalize(counts, axes):
    """Normalise accumulated *counts* along *axes*.

    Slices with zero total mass become uniform over the slice, so the result
    is always a valid table for :func:`check_distribution`.
    """
    counts = np.asarray(counts, dtype=np.float64)
    sums = counts.sum(axis=axes, keepdims=True)
    slice_size = int(np.prod([counts.shape[a] for a in axes]))
    out = np.full(counts.shape, 1.0 / slice_size)
    np.divide(counts, sums, out=out, where=np.broadcast_to(sums > 0, counts.shape))
    return out


def check_same_shape(name, arrays):
    """Raise ValueError unless every array in *arrays* has the same shape."""
    shapes = {np.shape(a) for a in arrays}
    if len(shapes) > 1:
        raise ValueError(f'{name}: shape mismatch between inputs {sorted(shapes)}')


def in_bounds(index, shape):
    """True if the tuple *index* addresses a cell of an array of *shape*."""
    if len(index) != len(shape):
        return False
    for i, n in zip(index, shape):
        if i < 0 or i >= n:
            return False
    return True
