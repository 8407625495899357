# This file is part of Recombinase.
# Licensed under MIT License.

"""Tabular summaries of inference results.

Functions return pandas DataFrames; writing them out is up to the caller.
"""

import pandas as pd

EVENT_COLUMNS = [
    'rank', 'likelihood', 'posterior',
    'v_gene', 'd_gene', 'j_gene',
    'delv', 'delj', 'deld5', 'deld3',
    'v_end', 'd_start', 'd_end', 'j_start',
    'insvd', 'insdj',
]


def best_events_frame(best_events, probability_generation=None, model=None):
    """One row per kept event, most likely first.

    Args:
        best_events: ``[(likelihood, StaticEvent)]`` as returned by
            :meth:`Features.infer`.
        probability_generation: If given, adds each event's posterior
            probability ``likelihood / probability_generation``.
        model: Optional :class:`ModelParameters`; when given, genes are
            reported by name and deletions as signed lengths.
    """
    rows = []
    for rank, (lhood, ev) in enumerate(best_events, start=1):
        if model is not None:
            genes = (model.gene_name('V', ev.v_index), model.gene_name('D', ev.d_index),
                     model.gene_name('J', ev.j_index))
            dels = (model.deletion_length('v', ev.delv), model.deletion_length('j', ev.delj),
                    model.deletion_length('d5', ev.deld5), model.deletion_length('d3', ev.deld3))
        else:
            genes = (ev.v_index, ev.d_index, ev.j_index)
            dels = (ev.delv, ev.delj, ev.deld5, ev.deld3)
        if probability_generation:
            posterior = lhood / probability_generation
        else:
            posterior = float('nan')
        rows.append((rank, lhood, posterior) + genes + dels
                    + (ev.v_end, ev.d_start, ev.d_end, ev.j_start, ev.insvd, ev.insdj))
    return pd.DataFrame(rows, columns=EVENT_COLUMNS)


def gene_usage_frame(features, model=None):
    """Marginal usage of every V, D and J gene, most used first per segment."""
    p_dj = features.dj.probas
    usage = {
        'V': features.v.probas,
        'D': p_dj.sum(axis=1),
        'J': p_dj.sum(axis=0),
    }
    frames = []
    for segment, probas in usage.items():
        if model is not None:
            names = [model.gene_name(segment, i) for i in range(len(probas))]
        else:
            names = [f'{segment}{i}' for i in range(len(probas))]
        _df = pd.DataFrame({
            'segment': segment,
            'gene': names,
            'index': range(len(probas)),
            'probability': probas,
        })
        _df.sort_values('probability', ascending=False, inplace=True, kind='stable')
        frames.append(_df)
    return pd.concat(frames, ignore_index=True)
