# This file is part of Recombinase.
# Licensed under MIT License.

from dataclasses import dataclass, field

from ..features.insertion import NUCLEOTIDES


@dataclass
class Sequence:
    """An observed read and its candidate V, D and J alignments."""
    sequence: str
    v_genes: list = field(default_factory=list)
    d_genes: list = field(default_factory=list)
    j_genes: list = field(default_factory=list)

    def __post_init__(self):
        self.sequence = str(self.sequence).upper()
        invalid = set(self.sequence) - set(NUCLEOTIDES)
        if invalid:
            raise ValueError(f'sequence contains invalid nucleotides: {sorted(invalid)}')
        for aln in self.v_genes:
            if aln.segment != 'V':
                raise ValueError(f'J alignment {aln} found among V candidates')
        for aln in self.j_genes:
            if aln.segment != 'J':
                raise ValueError(f'V alignment {aln} found among J candidates')

    def __len__(self):
        return len(self.sequence)

    def get_insertions_vd_dj(self, event):
        """Bases inserted at the VD and DJ junctions of *event*."""
        v_end, d_start, d_end, j_start = event.boundaries()
        return self.sequence[v_end:d_start], self.sequence[d_end:j_start]
