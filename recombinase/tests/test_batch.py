# This file is part of Recombinase.
# Licensed under MIT License.

"""Tests for batch inference and the two ways of combining workers."""

import math

import numpy as np
import pytest
from numpy.testing import assert_array_almost_equal

from recombinase.config import InferenceParameters
from recombinase.core.batch import infer_batch, infer_chunk
from recombinase.core.inference import Features
from recombinase.sequence import DAlignment, VJAlignment

from .conftest import make_sequence


def _sequences():
    return [
        make_sequence(),
        make_sequence(d_genes=[DAlignment(index=0, pos=18, length=12, mismatches=(18,))]),
        make_sequence(v_genes=[VJAlignment(index=0, start_seq=0, end_seq=17, segment='V')]),
        make_sequence(d_genes=[]),
        make_sequence(j_genes=[VJAlignment(index=0, start_seq=28, end_seq=43, mismatches=(28,), segment='J')]),
    ]


@pytest.fixture
def spread_features(spread_model, params):
    return Features(spread_model, params)


class TestInferChunk:
    def test_posterior_weights(self, spread_features, params):
        acc, results = infer_chunk(spread_features, params, _sequences()[:2])
        # Posterior counts of each sequence sum to one
        assert acc.v.probas_dirty.sum() == pytest.approx(2.0)
        assert acc.error.total_weight_dirty == pytest.approx(2.0)
        assert len(results) == 2

    def test_input_accumulators_untouched(self, spread_features, params):
        infer_chunk(spread_features, params, _sequences())
        assert not spread_features.v.probas_dirty.any()

    def test_sequences_do_not_leak_into_each_other(self, spread_features, params):
        seqs = _sequences()[:2]
        acc, results = infer_chunk(spread_features, params, seqs)
        expected = spread_features.fresh()
        for seq, (pgen, _best) in zip(seqs, results):
            part = spread_features.fresh()
            part.infer(seq, params)
            expected.accumulate(part, pgen)
        assert_array_almost_equal(acc.deld.probas_dirty, expected.deld.probas_dirty)
        assert_array_almost_equal(acc.insvd.transition_matrix_dirty, expected.insvd.transition_matrix_dirty)


class TestInferBatch:
    def test_results_in_input_order(self, spread_features, params):
        seqs = _sequences()
        batch = infer_batch(spread_features, seqs, params)
        assert len(batch.results) == len(seqs)
        for seq, (pgen, _best) in zip(seqs, batch.results):
            expected, _ = spread_features.fresh().infer(seq, params)
            assert pgen == pytest.approx(expected)

    def test_zero_probability_sequences(self, spread_features, params):
        batch = infer_batch(spread_features, _sequences(), params)
        assert batch.nb_zero == 1
        expected = sum(math.log(p) for p, _ in batch.results if p > 0)
        assert batch.log_likelihood == pytest.approx(expected)

    def test_single_path_model_is_a_fixed_point(self, delta_model, params):
        features = Features(delta_model, params)
        batch = infer_batch(features, [make_sequence()], params)
        assert batch.log_likelihood == pytest.approx(math.log(0.1 * 0.2 * 0.2 * 0.4 * 0.5))
        assert_array_almost_equal(batch.features.delv.probas, features.delv.probas)
        assert_array_almost_equal(batch.features.deld.probas, features.deld.probas)

    def test_subnormal_generation_probability(self, delta_model):
        # One mismatch kept on V and on J, each scored at the error floor
        opts = InferenceParameters(min_likelihood=0.0, min_likelihood_error=1e-155)
        seq = make_sequence(
            v_genes=[VJAlignment(index=0, start_seq=0, end_seq=18, mismatches=(10,), segment='V')],
            j_genes=[VJAlignment(index=0, start_seq=29, end_seq=43, mismatches=(35,), segment='J')],
        )
        features = Features(delta_model, opts)
        batch = infer_batch(features, [seq], opts)
        pgen = batch.results[0][0]
        assert 0.0 < pgen < np.finfo(float).tiny
        assert batch.nb_zero == 0
        assert batch.log_likelihood == pytest.approx(math.log(pgen))
        assert_array_almost_equal(batch.features.delv.probas, features.delv.probas)
        assert_array_almost_equal(batch.features.insdj.length_distribution, features.insdj.length_distribution)
        assert batch.features.error.error_rate == pytest.approx(2.0)

    def test_workers_match_sequential(self, spread_features):
        opts = InferenceParameters(min_likelihood=0.0, nb_best_events=3)
        seqs = _sequences()
        sequential = infer_batch(spread_features, seqs, opts, ncpu=1)
        parallel = infer_batch(spread_features, seqs, opts, ncpu=2)
        assert [p for p, _ in parallel.results] == pytest.approx([p for p, _ in sequential.results])
        assert [len(b) for _, b in parallel.results] == [len(b) for _, b in sequential.results]
        for name in ('v', 'delv', 'dj', 'delj', 'deld'):
            assert_array_almost_equal(getattr(parallel.features, name).probas,
                                      getattr(sequential.features, name).probas)
        assert parallel.features.error.error_rate == pytest.approx(sequential.features.error.error_rate)

    def test_cleanup_then_average(self, spread_features, params):
        seqs = _sequences()
        halves = [infer_batch(spread_features, seqs[:2], params).features,
                  infer_batch(spread_features, seqs[2:], params).features]
        averaged = Features.average(halves)
        assert_array_almost_equal(averaged.delv.probas.sum(axis=0), [1.0])
        assert averaged.error.error_rate == pytest.approx(
            (halves[0].error.error_rate + halves[1].error.error_rate) / 2)

    def test_empty_batch(self, spread_features, params):
        with pytest.raises(ValueError):
            infer_batch(spread_features, [], params)
