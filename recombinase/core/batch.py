# This file is part of Recombinase.
# Licensed under MIT License.

"""One expectation-maximisation pass over a batch of sequences.

Every worker owns a private accumulator.  Each sequence is inferred on a
reused scratch copy of the feature set and its counts are added to the
worker's accumulator divided by the sequence's generation probability, i.e. as
posterior expected counts.  Worker accumulators are summed with
:meth:`Features.merge` and re-estimated once with :meth:`Features.cleanup`.
"""

import functools
import logging as lg
import math
from dataclasses import dataclass, field
from multiprocessing import Pool

from .inference import Features


@dataclass
class BatchResult:
    features: Features                          # re-estimated feature set
    results: list = field(default_factory=list)  # [(pgen, best_events)] per sequence
    log_likelihood: float = 0.0                 # sum of log(pgen) over pgen > 0
    nb_zero: int = 0                            # sequences with pgen == 0


def _print_progress(nseqs, infolev=10000):
    msg = f'...inferred {nseqs} sequences'
    if nseqs % infolev == 0:
        lg.info(msg)
    else:
        lg.debug(msg)


def infer_chunk(features, inference_params, sequences):
    """Infer *sequences* sequentially on private accumulators.

    Returns:
        ``(accumulator, results)``: a feature set holding the posterior
        expected counts of the chunk, and ``(pgen, best_events)`` for every
        sequence in order.
    """
    accumulator = features.fresh()
    scratch = features.fresh()
    results = []
    for i, sequence in enumerate(sequences, start=1):
        scratch.reset_dirty()
        pgen, best_events = scratch.infer(sequence, inference_params)
        results.append((pgen, best_events))
        if pgen > 0:
            accumulator.accumulate(scratch, pgen)
        if i % 1000 == 0:
            _print_progress(i)
    return accumulator, results


def _chunks(sequences, n):
    size = math.ceil(len(sequences) / n)
    return [sequences[i:i + size] for i in range(0, len(sequences), size)]


def infer_batch(features, sequences, inference_params, ncpu=None):
    """Run one E-step and M-step over *sequences*.

    Args:
        features: Feature set providing the current parameters.  Its
            accumulators are neither read nor modified.
        sequences: List of :class:`~recombinase.sequence.Sequence`.
        inference_params: :class:`~recombinase.config.InferenceParameters`.
        ncpu: Number of worker processes; defaults to
            ``inference_params.ncpu``.

    Returns:
        :class:`BatchResult`.
    """
    sequences = list(sequences)
    ncpu = ncpu or getattr(inference_params, 'ncpu', 1)
    if not sequences:
        raise ValueError('infer_batch: no sequences given')

    if ncpu > 1 and len(sequences) > 1:
        chunks = _chunks(sequences, min(ncpu, len(sequences)))
        lg.info(f'Inferring {len(sequences)} sequences in {len(chunks)} worker(s)')
        with Pool(processes=len(chunks)) as pool:
            _inferfunc = functools.partial(infer_chunk, features, inference_params)
            chunk_results = pool.map(_inferfunc, chunks)
    else:
        lg.info(f'Inferring {len(sequences)} sequences')
        chunk_results = [infer_chunk(features, inference_params, sequences)]

    accumulators = [acc for acc, _ in chunk_results]
    results = [r for _, chunk in chunk_results for r in chunk]

    nb_zero = sum(1 for pgen, _ in results if pgen <= 0)
    log_likelihood = sum(math.log(pgen) for pgen, _ in results if pgen > 0)
    if nb_zero:
        lg.warning(f'{nb_zero} of {len(results)} sequences have zero generation probability')

    new_features = Features.merge(accumulators).cleanup()
    lg.info(f'Log-likelihood over {len(results) - nb_zero} sequences: {log_likelihood:.6f}')
    return BatchResult(new_features, results, log_likelihood, nb_zero)
