# This file is part of Recombinase.
# Licensed under MIT License.

"""In-memory parameter set of a VDJ recombination model.

Loading and saving parameter files is left to the caller; this module only
holds the tables, derives the joint ``P(D, J)`` table the inference engine
works with, and folds a trained feature set back into a parameter set.

Table layouts (first axis is the variable, later axes condition on it):

=====================  ======================  ==========================
Attribute              Shape                   Meaning
=====================  ======================  ==========================
p_v                    (nV,)                   P(V)
p_j_given_v            (nJ, nV)                P(J | V)
p_d_given_vj           (nD, nV, nJ)            P(D | V, J)
p_dj                   (nD, nJ)                P(D, J)
p_del_v_given_v        (ndelV, nV)             P(delV | V)
p_del_j_given_j        (ndelJ, nJ)             P(delJ | J)
p_del_d3_del_d5        (ndelD3, ndelD5, nD)    P(delD3, delD5 | D)
p_ins_vd, p_ins_dj     (max_ins + 1,)          insertion length
first_nt_bias_ins_*    (4,)                    first inserted base
markov_coefficients_*  (4, 4)                  P(next base | previous)
=====================  ======================  ==========================
"""

import dataclasses
import logging as lg
from dataclasses import dataclass, field

import numpy as np


def _as_array(value):
    return None if value is None else np.array(value, dtype=np.float64)


@dataclass
class ModelParameters:
    p_v: np.ndarray
    p_j_given_v: np.ndarray
    p_d_given_vj: np.ndarray
    p_del_v_given_v: np.ndarray
    p_del_j_given_j: np.ndarray
    p_del_d3_del_d5: np.ndarray
    p_ins_vd: np.ndarray
    p_ins_dj: np.ndarray
    first_nt_bias_ins_vd: np.ndarray
    first_nt_bias_ins_dj: np.ndarray
    markov_coefficients_vd: np.ndarray
    markov_coefficients_dj: np.ndarray
    error_rate: float = 0.0
    p_dj: np.ndarray = None
    range_del_v: tuple = (0, 0)   # (min, max) signed deletion length
    range_del_j: tuple = (0, 0)
    range_del_d3: tuple = (0, 0)
    range_del_d5: tuple = (0, 0)
    v_names: list = field(default_factory=list)
    d_names: list = field(default_factory=list)
    j_names: list = field(default_factory=list)

    _TABLES = (
        'p_v', 'p_j_given_v', 'p_d_given_vj', 'p_dj',
        'p_del_v_given_v', 'p_del_j_given_j', 'p_del_d3_del_d5',
        'p_ins_vd', 'p_ins_dj', 'first_nt_bias_ins_vd', 'first_nt_bias_ins_dj',
        'markov_coefficients_vd', 'markov_coefficients_dj',
    )

    def __post_init__(self):
        for name in self._TABLES:
            setattr(self, name, _as_array(getattr(self, name)))
        self.error_rate = float(self.error_rate)

    # Gene counts are read from the single-segment deletion tables.

    @property
    def nb_v(self):
        return self.p_v.shape[0]

    @property
    def nb_d(self):
        return self.p_del_d3_del_d5.shape[-1]

    @property
    def nb_j(self):
        return self.p_del_j_given_j.shape[-1]

    def initialize(self):
        """Check cross-table shapes and derive ``p_dj`` if it is missing.

        Returns self so calls can be chained.
        """
        ranks = {'p_v': 1, 'p_del_j_given_j': 2, 'p_del_d3_del_d5': 3}
        for name, ndim in ranks.items():
            if getattr(self, name).ndim != ndim:
                raise ValueError(f'{name}: expected {ndim} dimension(s), got {getattr(self, name).ndim}')
        nv, nj, nd = self.nb_v, self.nb_j, self.nb_d
        expected = {
            'p_j_given_v': (nj, nv),
            'p_d_given_vj': (nd, nv, nj),
        }
        for name, shape in expected.items():
            if getattr(self, name).shape != shape:
                raise ValueError(f'{name}: expected shape {shape}, got {getattr(self, name).shape}')

        if self.p_dj is None:
            self.p_dj = np.einsum('v,jv,dvj->dj', self.p_v, self.p_j_given_v, self.p_d_given_vj)
            lg.debug(f'Derived P(D,J) table of shape {self.p_dj.shape}')
        elif self.p_dj.shape != (nd, nj):
            raise ValueError(f'p_dj: expected shape {(nd, nj)}, got {self.p_dj.shape}')
        return self

    def update(self, features):
        """New parameter set carrying the tables of a trained feature set.

        ``P(J | V)`` and ``P(D | V, J)`` are rebuilt from the joint ``P(D, J)``,
        which does not depend on V.
        """
        p_dj = features.dj.probas.copy()
        p_j = p_dj.sum(axis=0)
        p_j_given_v = np.repeat(p_j[:, np.newaxis], self.nb_v, axis=1)
        p_d_given_j = np.full(p_dj.shape, 1.0 / p_dj.shape[0])
        np.divide(p_dj, p_j[np.newaxis, :], out=p_d_given_j,
                  where=np.broadcast_to(p_j[np.newaxis, :] > 0, p_dj.shape))
        p_d_given_vj = np.repeat(p_d_given_j[:, np.newaxis, :], self.nb_v, axis=1)

        return dataclasses.replace(
            self,
            p_v=features.v.probas.copy(),
            p_j_given_v=p_j_given_v,
            p_d_given_vj=p_d_given_vj,
            p_dj=p_dj,
            p_del_v_given_v=features.delv.probas.copy(),
            p_del_j_given_j=features.delj.probas.copy(),
            p_del_d3_del_d5=features.deld.probas.copy(),
            p_ins_vd=features.insvd.length_distribution.copy(),
            p_ins_dj=features.insdj.length_distribution.copy(),
            first_nt_bias_ins_vd=features.insvd.first_nt_bias.copy(),
            first_nt_bias_ins_dj=features.insdj.first_nt_bias.copy(),
            markov_coefficients_vd=features.insvd.transition_matrix.copy(),
            markov_coefficients_dj=features.insdj.transition_matrix.copy(),
            error_rate=features.error.error_rate,
        )

    def deletion_length(self, kind, index):
        """Signed deletion length for a deletion *index* of *kind*
        (``'v'``, ``'j'``, ``'d3'`` or ``'d5'``).
        """
        return getattr(self, f'range_del_{kind}')[0] + index

    def gene_name(self, segment, index):
        names = {'V': self.v_names, 'D': self.d_names, 'J': self.j_names}[segment]
        if index < len(names):
            return names[index]
        return f'{segment}{index}'
