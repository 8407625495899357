# This file is part of Recombinase.
# Licensed under MIT License.

"""Shared fixtures: small VDJ models and a read built from their genes.

Genes::

    V1  TGCTCATGCAAAAAAAAA   (18 bp)
    D1  TTTTTCGCTTTT         (12 bp)
    J1  GGGGGGCAGTCAGT       (14 bp)

The read is V1 with 2 bases deleted, the insertion ACG, D1 with 2 bases
deleted at 5' and 1 at 3', the insertion TA, then J1 with 1 base deleted::

    TGCTCATGCAAAAAAA ACG TTTCGCTTT TA GGGGGCAGTCAGT
    0               16  19        28 30           43
"""

import numpy as np
import pytest

from recombinase.config import InferenceParameters
from recombinase.core.parameters import ModelParameters
from recombinase.sequence import DAlignment, Sequence, VJAlignment

V1 = 'TGCTCATGCAAAAAAAAA'
D1 = 'TTTTTCGCTTTT'
J1 = 'GGGGGGCAGTCAGT'
READ = V1[:16] + 'ACG' + D1[2:11] + 'TA' + J1[1:]

FIRST_NT_BIAS = [0.1, 0.2, 0.3, 0.4]
MARKOV = [
    [0.1, 0.2, 0.3, 0.4],
    [0.4, 0.3, 0.2, 0.1],
    [0.25, 0.25, 0.25, 0.25],
    [0.5, 0.2, 0.2, 0.1],
]


def delta(size, *index):
    arr = np.zeros(size)
    arr[index] = 1.0
    return arr


def v_alignment():
    return VJAlignment(index=0, start_seq=0, end_seq=18, mismatches=(17,), segment='V')


def d_alignment(index=0):
    return DAlignment(index=index, pos=17, length=12, mismatches=(17, 18))


def j_alignment():
    return VJAlignment(index=0, start_seq=29, end_seq=43, mismatches=(29,), segment='J')


def make_sequence(v_genes=None, d_genes=None, j_genes=None):
    return Sequence(
        READ,
        v_genes=[v_alignment()] if v_genes is None else v_genes,
        d_genes=[d_alignment()] if d_genes is None else d_genes,
        j_genes=[j_alignment()] if j_genes is None else j_genes,
    )


@pytest.fixture
def read():
    return READ


@pytest.fixture
def delta_model():
    """One gene per segment, every deletion and insertion length certain."""
    return ModelParameters(
        p_v=[1.0],
        p_j_given_v=[[1.0]],
        p_d_given_vj=[[[1.0]]],
        p_del_v_given_v=delta((5, 1), 2, 0),
        p_del_j_given_j=delta((4, 1), 1, 0),
        p_del_d3_del_d5=delta((3, 4, 1), 1, 2, 0),
        p_ins_vd=delta(6, 3),
        p_ins_dj=delta(6, 2),
        first_nt_bias_ins_vd=FIRST_NT_BIAS,
        first_nt_bias_ins_dj=FIRST_NT_BIAS,
        markov_coefficients_vd=MARKOV,
        markov_coefficients_dj=MARKOV,
        error_rate=0.0,
        v_names=['V1'], d_names=['D1'], j_names=['J1'],
    ).initialize()


@pytest.fixture
def spread_model():
    """One gene per segment with broad deletion and insertion profiles."""
    p_deld = np.array([
        [[0.05], [0.1], [0.05], [0.3], [0.02]],
        [[0.05], [0.1], [0.05], [0.3], [0.02]],
        [[0.05], [0.35], [0.05], [0.3], [0.02]],
    ])
    p_ins = [0.4, 0.2, 0.1, 0.1, 0.1, 0.05, 0.05]
    p_del = [[0.1], [0.2], [0.4], [0.1], [0.05], [0.1], [0.05]]
    return ModelParameters(
        p_v=[1.0],
        p_j_given_v=[[1.0]],
        p_d_given_vj=[[[1.0]]],
        p_del_v_given_v=p_del,
        p_del_j_given_j=p_del,
        p_del_d3_del_d5=p_deld / p_deld.sum(),
        p_ins_vd=p_ins,
        p_ins_dj=p_ins,
        first_nt_bias_ins_vd=[0.25] * 4,
        first_nt_bias_ins_dj=[0.25] * 4,
        markov_coefficients_vd=[[0.25] * 4] * 4,
        markov_coefficients_dj=[[0.25] * 4] * 4,
        error_rate=0.1,
        range_del_v=(-2, 4),
        range_del_j=(-2, 4),
        range_del_d3=(-1, 1),
        range_del_d5=(-1, 3),
    ).initialize()


@pytest.fixture
def params():
    return InferenceParameters(min_likelihood=0.0, nb_best_events=10)


@pytest.fixture
def sequence():
    return make_sequence()
