# This file is part of Recombinase.
# Licensed under MIT License.

"""Recombination events.

:class:`Event` is built for every enumerated combination and only points at
the alignments it was made from.  :class:`StaticEvent` is the frozen record
kept for the most likely events once enumeration is over.
"""

from dataclasses import dataclass
from typing import NamedTuple

from .alignment import DAlignment, VJAlignment


class Event(NamedTuple):
    v: VJAlignment
    j: VJAlignment
    d: DAlignment
    delv: int
    delj: int
    deld3: int
    deld5: int

    def boundaries(self):
        """``(v_end, d_start, d_end, j_start)`` read positions after trimming."""
        return (
            self.v.end_seq - self.delv,
            self.d.pos + self.deld5,
            self.d.pos + self.d.length - self.deld3,
            self.j.start_seq + self.delj,
        )

    def to_static(self, insvd, insdj):
        v_end, d_start, d_end, j_start = self.boundaries()
        return StaticEvent(
            v_index=self.v.index,
            d_index=self.d.index,
            j_index=self.j.index,
            delv=self.delv,
            delj=self.delj,
            deld3=self.deld3,
            deld5=self.deld5,
            v_start=self.v.start_seq,
            v_end=v_end,
            d_start=d_start,
            d_end=d_end,
            j_start=j_start,
            insvd=str(insvd),
            insdj=str(insdj),
        )


@dataclass(frozen=True)
class StaticEvent:
    """Immutable snapshot of one recombination event."""
    v_index: int
    d_index: int
    j_index: int
    delv: int
    delj: int
    deld3: int
    deld5: int
    v_start: int
    v_end: int
    d_start: int
    d_end: int
    j_start: int
    insvd: str                    # bases inserted between V and D
    insdj: str                    # bases inserted between D and J
