# This file is part of Recombinase.
# Licensed under MIT License.

"""Likelihood evaluation and expected-count accumulation for VDJ events.

:class:`Features` holds every sub-model of the recombination process.  For
one sequence, :meth:`Features.infer` enumerates all combinations of
candidate alignments and deletions, sums the likelihoods of the plausible
ones into the generation probability, keeps the most likely events, and
adds each likelihood to the accumulators of the sub-models.  The M-step is
:meth:`Features.cleanup` (counts to parameters) together with
:meth:`Features.average` and :meth:`Features.merge` for combining feature
sets from different batches or workers.

Likelihoods below ``min_likelihood`` are pruned at three points, from the
cheapest to the most expensive check:

1. after the V gene and its deletion,
2. after the D/J genes, their deletions, the junction geometry and the
   insertion lengths,
3. after the content of both inserted sequences.

A combination with zero likelihood (for instance overlapping segments)
never contributes, whatever the threshold.
"""

import dataclasses
import logging as lg
from bisect import insort
from itertools import product

from ..features import (
    CategoricalFeature1,
    CategoricalFeature1g1,
    CategoricalFeature2,
    CategoricalFeature2g1,
    ErrorPoisson,
    InsertionFeature,
)
from ..sequence import Event


def _best_key(item):
    return -item[0]


class Features:
    """Sub-models of one VDJ recombination model plus their accumulators."""

    FEATURES = ('v', 'delv', 'dj', 'delj', 'deld', 'insvd', 'insdj', 'error')

    def __init__(self, model, inference_params):
        """
        Args:
            model: :class:`~recombinase.core.parameters.ModelParameters`.
                ``p_dj`` is derived from the conditional tables if missing;
                *model* itself is not modified.
            inference_params: Options providing ``min_likelihood_error``.

        Raises:
            ValueError: if any table is malformed or the tables disagree on
                the number of genes.
        """
        if model.p_dj is None:
            model = dataclasses.replace(model).initialize()
        self.v = CategoricalFeature1(model.p_v, name='p_v')
        self.delv = CategoricalFeature1g1(model.p_del_v_given_v, name='p_del_v_given_v')
        self.dj = CategoricalFeature2(model.p_dj, name='p_dj')
        self.delj = CategoricalFeature1g1(model.p_del_j_given_j, name='p_del_j_given_j')
        self.deld = CategoricalFeature2g1(model.p_del_d3_del_d5, name='p_del_d3_del_d5')
        self.insvd = InsertionFeature(
            model.p_ins_vd, model.first_nt_bias_ins_vd, model.markov_coefficients_vd, name='ins_vd')
        self.insdj = InsertionFeature(
            model.p_ins_dj, model.first_nt_bias_ins_dj, model.markov_coefficients_dj, name='ins_dj')
        self.error = ErrorPoisson(model.error_rate, inference_params.min_likelihood_error)
        self._check_shapes()

    @classmethod
    def _from_features(cls, parts):
        obj = cls.__new__(cls)
        for name in cls.FEATURES:
            setattr(obj, name, parts[name])
        obj._check_shapes()
        return obj

    def _check_shapes(self):
        nv = self.v.dim()[0]
        nd, nj = self.dj.dim()
        checks = [
            ('p_del_v_given_v', self.delv.dim()[1], nv, 'V'),
            ('p_del_j_given_j', self.delj.dim()[1], nj, 'J'),
            ('p_del_d3_del_d5', self.deld.dim()[2], nd, 'D'),
        ]
        for name, got, expected, segment in checks:
            if got != expected:
                raise ValueError(
                    f'{name}: conditioned on {got} {segment} gene(s) but the model has {expected}')

    # -- Enumeration ---------------------------------------------------------

    def _range_v(self, sequence):
        return product(sequence.v_genes, range(self.delv.dim()[0]))

    def _range_dj(self, sequence):
        return product(
            sequence.j_genes,
            range(self.delj.dim()[0]),
            sequence.d_genes,
            range(self.deld.dim()[1]),
            range(self.deld.dim()[0]),
        )

    def likelihood_v(self, v, delv):
        return (
            self.v.likelihood(v.index)
            * self.delv.likelihood((delv, v.index))
            * self.error.likelihood(v.nb_errors(delv))
        )

    def likelihood_dj(self, e, seq_len):
        """Likelihood of the D/J part of *e*, including insertion lengths.

        Zero when the trimmed segments overlap or fall outside the read.
        """
        v_end, d_start, d_end, j_start = e.boundaries()
        if v_end > d_start or d_start > d_end or d_end > j_start:
            return 0.0
        if v_end < 0 or j_start > seq_len:
            return 0.0

        return (
            self.dj.likelihood((e.d.index, e.j.index))
            * self.delj.likelihood((e.delj, e.j.index))
            * self.deld.likelihood((e.deld3, e.deld5, e.d.index))
            * self.insvd.likelihood_length(d_start - v_end)
            * self.insdj.likelihood_length(j_start - d_end)
            * self.error.likelihood(e.d.nb_errors(e.deld5, e.deld3))
            * self.error.likelihood(e.j.nb_errors(e.delj))
        )

    def infer(self, sequence, inference_params):
        """Generation probability and most likely events of *sequence*.

        The accumulators of every sub-model are updated in place, each event
        weighted by its likelihood.

        Args:
            sequence: :class:`~recombinase.sequence.Sequence`.
            inference_params: Options providing ``min_likelihood`` and
                ``nb_best_events``.

        Returns:
            ``(probability_generation, best_events)`` where ``best_events`` is
            a list of ``(likelihood, StaticEvent)`` sorted by decreasing
            likelihood, at most ``nb_best_events`` long.
        """
        min_likelihood = inference_params.min_likelihood
        nb_best_events = inference_params.nb_best_events
        seq_len = len(sequence)

        probability_generation = 0.0
        best_events = []
        nb_events = 0

        for v, delv in self._range_v(sequence):
            lhood_v = self.likelihood_v(v, delv)
            if lhood_v <= 0.0 or lhood_v < min_likelihood:
                continue

            for j, delj, d, deld5, deld3 in self._range_dj(sequence):
                e = Event(v, j, d, delv, delj, deld3, deld5)

                l_total = lhood_v * self.likelihood_dj(e, seq_len)
                if l_total <= 0.0 or l_total < min_likelihood:
                    continue

                insvd, insdj = sequence.get_insertions_vd_dj(e)
                l_total *= self.insvd.likelihood_content(insvd)
                l_total *= self.insdj.likelihood_content(insdj)
                if l_total <= 0.0 or l_total < min_likelihood:
                    continue

                if nb_best_events > 0:
                    if len(best_events) < nb_best_events or best_events[-1][0] < l_total:
                        insort(best_events, (l_total, e.to_static(insvd, insdj)), key=_best_key)
                        del best_events[nb_best_events:]

                probability_generation += l_total
                nb_events += 1

                self.v.dirty_update(v.index, l_total)
                self.dj.dirty_update((d.index, j.index), l_total)
                self.delv.dirty_update((delv, v.index), l_total)
                self.delj.dirty_update((delj, j.index), l_total)
                self.deld.dirty_update((deld3, deld5, d.index), l_total)
                self.insvd.dirty_update(insvd, l_total)
                self.insdj.dirty_update(insdj, l_total)
                self.error.dirty_update(
                    v.nb_errors(delv) + d.nb_errors(deld5, deld3) + j.nb_errors(delj),
                    l_total,
                )

        lg.debug(f'{nb_events} event(s) kept, generation probability {probability_generation:.4g}')
        return probability_generation, best_events

    # -- M-step --------------------------------------------------------------

    def cleanup(self):
        """New feature set re-estimated from the accumulated counts.

        ``self`` is not modified, so repeated calls give the same result.
        """
        return self._from_features({name: getattr(self, name).cleanup() for name in self.FEATURES})

    def fresh(self):
        """Copy with the same parameters and empty accumulators."""
        return self._from_features({name: getattr(self, name).fresh() for name in self.FEATURES})

    @classmethod
    def average(cls, features):
        """Elementwise mean of the parameters of *features*."""
        features = list(features)
        if not features:
            raise ValueError('Features.average: no feature set given')
        return cls._from_features({
            name: type(getattr(features[0], name)).average([getattr(f, name) for f in features])
            for name in cls.FEATURES
        })

    @classmethod
    def merge(cls, features, weights=None):
        """Parameters of the first feature set, accumulators summed over all.

        Args:
            features: Feature sets with identical shapes.
            weights: Optional multiplier for the accumulators of each set.
        """
        features = list(features)
        if not features:
            raise ValueError('Features.merge: no feature set given')
        if weights is not None and len(weights) != len(features):
            raise ValueError(f'Features.merge: {len(weights)} weights for {len(features)} feature sets')
        return cls._from_features({
            name: type(getattr(features[0], name)).merge([getattr(f, name) for f in features], weights)
            for name in cls.FEATURES
        })

    def accumulate(self, other, divisor=1.0):
        """Add the accumulators of *other*, divided by *divisor*, in place.

        Counts stay finite when *divisor* is subnormal.
        """
        for name in self.FEATURES:
            getattr(self, name).accumulate(getattr(other, name), divisor)

    def reset_dirty(self):
        """Zero every accumulator in place."""
        for name in self.FEATURES:
            getattr(self, name).reset_dirty()

    def __repr__(self):
        nd, nj = self.dj.dim()
        return f'<Features V={self.v.dim()[0]} D={nd} J={nj} error_rate={self.error.error_rate:.4g}>'
