# This file is part of Recombinase.
# Licensed under MIT License.

"""Junction insertion model.

An insertion of length ``n`` with bases ``b0 .. b(n-1)`` has probability::

    p_len[n] * bias[b0] * markov[b0, b1] * ... * markov[b(n-2), b(n-1)]

The length factor and the content factor are exposed separately so that the
enumeration can prune on length before slicing the read.
"""

import numpy as np

from .tables import check_distribution, check_same_shape, normalize

NUCLEOTIDES = 'ACGT'
NT_INDEX = {nt: i for i, nt in enumerate(NUCLEOTIDES)}


class InsertionFeature:
    """Insertion length distribution plus first-base bias and Markov chain."""

    def __init__(self, length_distribution, first_nt_bias, markov_coefficients, name='insertion'):
        self.name = name
        self.length_distribution = check_distribution(
            f'{name}.length_distribution', length_distribution, (0,), ndim=1)
        self.first_nt_bias = check_distribution(
            f'{name}.first_nt_bias', first_nt_bias, (0,), ndim=1)
        self.transition_matrix = check_distribution(
            f'{name}.markov_coefficients', markov_coefficients, (1,), ndim=2)
        if self.first_nt_bias.shape != (4,):
            raise ValueError(f'{name}.first_nt_bias: expected 4 entries, got {self.first_nt_bias.shape}')
        if self.transition_matrix.shape != (4, 4):
            raise ValueError(
                f'{name}.markov_coefficients: expected shape (4, 4), got {self.transition_matrix.shape}')

        self.length_distribution_dirty = np.zeros_like(self.length_distribution)
        self.first_nt_bias_dirty = np.zeros_like(self.first_nt_bias)
        self.transition_matrix_dirty = np.zeros_like(self.transition_matrix)

    def max_nb_insertions(self):
        return len(self.length_distribution)

    def likelihood_length(self, length):
        if length < 0 or length >= len(self.length_distribution):
            return 0.0
        return float(self.length_distribution[length])

    def likelihood_content(self, bases):
        """Probability of the bases of an insertion given its length."""
        if not bases:
            return 1.0
        prev = NT_INDEX[bases[0]]
        proba = self.first_nt_bias[prev]
        for nt in bases[1:]:
            cur = NT_INDEX[nt]
            proba *= self.transition_matrix[prev, cur]
            prev = cur
        return float(proba)

    def likelihood_sequence(self, bases):
        """Joint probability of the length and the bases of an insertion."""
        return self.likelihood_length(len(bases)) * self.likelihood_content(bases)

    def dirty_update(self, bases, weight):
        self.length_distribution_dirty[len(bases)] += weight
        if not bases:
            return
        prev = NT_INDEX[bases[0]]
        self.first_nt_bias_dirty[prev] += weight
        for nt in bases[1:]:
            cur = NT_INDEX[nt]
            self.transition_matrix_dirty[prev, cur] += weight
            prev = cur

    def _tables(self):
        return (self.length_distribution, self.first_nt_bias, self.transition_matrix)

    def _dirty_tables(self):
        return (self.length_distribution_dirty, self.first_nt_bias_dirty, self.transition_matrix_dirty)

    def cleanup(self):
        return InsertionFeature(
            normalize(self.length_distribution_dirty, (0,)),
            normalize(self.first_nt_bias_dirty, (0,)),
            normalize(self.transition_matrix_dirty, (1,)),
            name=self.name,
        )

    def fresh(self):
        return InsertionFeature(*self._tables(), name=self.name)

    @classmethod
    def average(cls, features):
        features = list(features)
        if not features:
            raise ValueError('InsertionFeature: cannot average an empty list')
        name = features[0].name
        tables = list(zip(*(f._tables() for f in features)))
        for label, group in zip(('length_distribution', 'first_nt_bias', 'markov_coefficients'), tables):
            check_same_shape(f'{name}.{label}', group)
        return cls(*(np.mean(group, axis=0) for group in tables), name=name)

    @classmethod
    def merge(cls, features, weights=None):
        features = list(features)
        if not features:
            raise ValueError('InsertionFeature: cannot merge an empty list')
        if weights is None:
            weights = [1.0] * len(features)
        check_same_shape(f'{features[0].name}.length_distribution',
                         [f.length_distribution for f in features])
        ret = features[0].fresh()
        for f, w in zip(features, weights):
            for acc, dirty in zip(ret._dirty_tables(), f._dirty_tables()):
                acc += w * dirty
        return ret

    def accumulate(self, other, divisor=1.0):
        for acc, dirty in zip(self._dirty_tables(), other._dirty_tables()):
            acc += dirty / divisor

    def reset_dirty(self):
        for acc in self._dirty_tables():
            acc[...] = 0.0

    def __repr__(self):
        return f'<InsertionFeature {self.name} max_length={self.max_nb_insertions() - 1}>'
