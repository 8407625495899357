# This file is part of Recombinase.
# Licensed under MIT License.

"""Poisson model of sequencing errors."""

import math

from scipy.stats import poisson


class ErrorPoisson:
    """Number of mismatches in an event follows ``Poisson(error_rate)``.

    ``likelihood`` is floored at ``min_likelihood`` so a model with a zero
    (or tiny) rate never rules out an event on errors alone.
    """

    def __init__(self, error_rate, min_likelihood, name='error'):
        self.name = name
        error_rate = float(error_rate)
        min_likelihood = float(min_likelihood)
        if not math.isfinite(error_rate) or error_rate < 0:
            raise ValueError(f'{name}: error rate must be finite and non-negative, got {error_rate}')
        if not math.isfinite(min_likelihood) or min_likelihood < 0:
            raise ValueError(f'{name}: minimum likelihood must be finite and non-negative, got {min_likelihood}')
        self.error_rate = error_rate
        self.min_likelihood = min_likelihood
        self.total_errors_dirty = 0.0
        self.total_weight_dirty = 0.0
        self._cache = {}

    def likelihood(self, nb_errors):
        lhood = self._cache.get(nb_errors)
        if lhood is None:
            if self.error_rate == 0:
                pmf = 1.0 if nb_errors == 0 else 0.0
            else:
                pmf = float(poisson.pmf(nb_errors, self.error_rate))
            lhood = max(pmf, self.min_likelihood)
            self._cache[nb_errors] = lhood
        return lhood

    def dirty_update(self, nb_errors, weight):
        self.total_errors_dirty += weight * nb_errors
        self.total_weight_dirty += weight

    def cleanup(self):
        """New model whose rate is the weighted mean error count.

        Without any accumulated weight the current rate is kept.
        """
        if self.total_weight_dirty > 0:
            rate = self.total_errors_dirty / self.total_weight_dirty
        else:
            rate = self.error_rate
        return ErrorPoisson(rate, self.min_likelihood, name=self.name)

    def fresh(self):
        return ErrorPoisson(self.error_rate, self.min_likelihood, name=self.name)

    @classmethod
    def average(cls, features):
        features = list(features)
        if not features:
            raise ValueError('ErrorPoisson: cannot average an empty list')
        floors = {f.min_likelihood for f in features}
        if len(floors) > 1:
            raise ValueError(f'{features[0].name}: cannot average models with different floors {sorted(floors)}')
        rate = sum(f.error_rate for f in features) / len(features)
        return cls(rate, features[0].min_likelihood, name=features[0].name)

    @classmethod
    def merge(cls, features, weights=None):
        features = list(features)
        if not features:
            raise ValueError('ErrorPoisson: cannot merge an empty list')
        if weights is None:
            weights = [1.0] * len(features)
        ret = features[0].fresh()
        for f, w in zip(features, weights):
            ret.total_errors_dirty += w * f.total_errors_dirty
            ret.total_weight_dirty += w * f.total_weight_dirty
        return ret

    def accumulate(self, other, divisor=1.0):
        self.total_errors_dirty += other.total_errors_dirty / divisor
        self.total_weight_dirty += other.total_weight_dirty / divisor

    def reset_dirty(self):
        self.total_errors_dirty = 0.0
        self.total_weight_dirty = 0.0

    def __repr__(self):
        return f'<ErrorPoisson rate={self.error_rate:.4g} floor={self.min_likelihood:.3g}>'
