# This file is part of Recombinase.
# Licensed under MIT License.

"""Categorical features over small discrete domains.

Each feature pairs a normalised probability table (``probas``) with an
accumulator of the same shape (``probas_dirty``) filled during inference.

======================  ===============  ==================
Class                   Table layout     Normalised along
======================  ===============  ==================
CategoricalFeature1     ``p[x]``         axis 0
CategoricalFeature1g1   ``p[x, y]``      axis 0 (given y)
CategoricalFeature2     ``p[x, y]``      whole table
CategoricalFeature2g1   ``p[x, y, z]``   axes 0, 1 (given z)
======================  ===============  ==================
"""

import numpy as np

from .tables import check_distribution, check_same_shape, in_bounds, normalize


class CategoricalFeature:
    """Base class: the subclasses only fix the table rank and its axes."""

    NDIM = 1
    AXES = (0,)

    def __init__(self, probas, name=None):
        self.name = name or type(self).__name__
        self.probas = check_distribution(self.name, probas, self.AXES, ndim=self.NDIM)
        self.probas_dirty = np.zeros_like(self.probas)

    @classmethod
    def _index(cls, observation):
        if cls.NDIM == 1 and not isinstance(observation, tuple):
            return (observation,)
        return tuple(observation)

    def dim(self):
        return self.probas.shape

    def likelihood(self, observation):
        """Probability of *observation*, 0 for indices outside the table."""
        idx = self._index(observation)
        if not in_bounds(idx, self.probas.shape):
            return 0.0
        return float(self.probas[idx])

    def dirty_update(self, observation, weight):
        self.probas_dirty[self._index(observation)] += weight

    def cleanup(self):
        """New feature normalised from the accumulated counts.

        The accumulator of ``self`` is left untouched.
        """
        return type(self)(normalize(self.probas_dirty, self.AXES), name=self.name)

    def fresh(self):
        """Copy with the same probabilities and an empty accumulator."""
        return type(self)(self.probas, name=self.name)

    @classmethod
    def average(cls, features):
        """Elementwise mean of the probability tables of *features*."""
        features = list(features)
        if not features:
            raise ValueError(f'{cls.__name__}: cannot average an empty list')
        name = features[0].name
        check_same_shape(name, [f.probas for f in features])
        mean = np.mean([f.probas for f in features], axis=0)
        return type(features[0])(mean, name=name)

    @classmethod
    def merge(cls, features, weights=None):
        """Copy of the first feature whose accumulator sums all inputs.

        Args:
            features: Features with identical shapes.
            weights: Optional per-feature multipliers applied to the
                accumulators before summing.
        """
        features = list(features)
        if not features:
            raise ValueError(f'{cls.__name__}: cannot merge an empty list')
        if weights is None:
            weights = [1.0] * len(features)
        name = features[0].name
        check_same_shape(name, [f.probas for f in features])
        ret = features[0].fresh()
        for f, w in zip(features, weights):
            ret.probas_dirty += w * f.probas_dirty
        return ret

    def accumulate(self, other, divisor=1.0):
        """Add the counts of *other*, divided by *divisor*, in place."""
        self.probas_dirty += other.probas_dirty / divisor

    def reset_dirty(self):
        self.probas_dirty[...] = 0.0

    def __repr__(self):
        return f'<{type(self).__name__} {self.name} shape={self.probas.shape}>'


class CategoricalFeature1(CategoricalFeature):
    """``P(x)``."""

    NDIM = 1
    AXES = (0,)


class CategoricalFeature1g1(CategoricalFeature):
    """``P(x | y)`` stored as ``p[x, y]``."""

    NDIM = 2
    AXES = (0,)


class CategoricalFeature2(CategoricalFeature):
    """Joint ``P(x, y)``."""

    NDIM = 2
    AXES = (0, 1)


class CategoricalFeature2g1(CategoricalFeature):
    """``P(x, y | z)`` stored as ``p[x, y, z]``."""

    NDIM = 3
    AXES = (0, 1)
