# This file is part of Recombinase.
# Licensed under MIT License.

"""Sub-models of the recombination process.

Every feature answers likelihood queries, accumulates weighted observations
through ``dirty_update`` and produces a re-estimated copy through ``cleanup``.
"""

from .categorical import (  # noqa: F401
    CategoricalFeature,
    CategoricalFeature1,
    CategoricalFeature1g1,
    CategoricalFeature2,
    CategoricalFeature2g1,
)
from .error import ErrorPoisson  # noqa: F401
from .insertion import NT_INDEX, NUCLEOTIDES, InsertionFeature  # noqa: F401
