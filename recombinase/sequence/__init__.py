# This file is part of Recombinase.
# Licensed under MIT License.

from .alignment import DAlignment, VJAlignment  # noqa: F401
from .events import Event, StaticEvent  # noqa: F401
from .sequence import Sequence  # noqa: F401
