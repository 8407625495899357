# This file is part of Recombinase.
# Licensed under MIT License.

"""Candidate alignments of V, D and J genes on a read.

Alignments are produced by an aligner outside this package.  Here they only
record where the gene sits on the read and where it disagrees with the
germline, which is enough to count the mismatches left after trimming.
"""

from bisect import bisect_left
from dataclasses import dataclass, field


@dataclass(frozen=True)
class VJAlignment:
    """Alignment of a V or J gene.

    Attributes:
        index: Index of the gene in the model's V or J tables.
        start_seq: First read position covered by the alignment.
        end_seq: Read position one past the last covered base.
        mismatches: Read positions where the read differs from the gene.
        segment: ``'V'`` (trimmed from its 3' end) or ``'J'`` (trimmed from
            its 5' end).
    """
    index: int
    start_seq: int
    end_seq: int
    mismatches: tuple = field(default=())
    segment: str = 'V'

    def __post_init__(self):
        if self.segment not in ('V', 'J'):
            raise ValueError(f'segment must be "V" or "J", got {self.segment!r}')
        if self.end_seq < self.start_seq:
            raise ValueError(f'alignment ends ({self.end_seq}) before it starts ({self.start_seq})')
        object.__setattr__(self, 'mismatches', tuple(sorted(self.mismatches)))

    def nb_errors(self, deletion):
        """Mismatches remaining once *deletion* bases are trimmed."""
        if self.segment == 'V':
            return bisect_left(self.mismatches, self.end_seq - deletion)
        return len(self.mismatches) - bisect_left(self.mismatches, self.start_seq + deletion)

    def __len__(self):
        return self.end_seq - self.start_seq


@dataclass(frozen=True)
class DAlignment:
    """Alignment of a full D gene of ``length`` bases starting at ``pos``."""
    index: int
    pos: int
    length: int
    mismatches: tuple = field(default=())

    def __post_init__(self):
        if self.length < 0:
            raise ValueError(f'D gene length must be non-negative, got {self.length}')
        object.__setattr__(self, 'mismatches', tuple(sorted(self.mismatches)))

    def nb_errors(self, deld5, deld3):
        """Mismatches inside the D window left by both deletions."""
        lo = bisect_left(self.mismatches, self.pos + deld5)
        hi = bisect_left(self.mismatches, self.pos + self.length - deld3)
        return max(hi - lo, 0)

    def __len__(self):
        return self.length
