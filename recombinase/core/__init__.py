# This file is part of Recombinase.
# Licensed under MIT License.

from .batch import BatchResult, infer_batch  # noqa: F401
from .inference import Features  # noqa: F401
from .parameters import ModelParameters  # noqa: F401
