"""Record reconciliation core.

Turns parsed records into targeted upserts against a model store:
default hydration, identity resolution, criteria construction, throttling,
upsert dispatch and per-record error capture.
"""

from __future__ import annotations

from .engine import ReconciliationEngine, bind_operation, record_strategy
from .options import (
    DEFAULT_IDENTITY_FIELDS,
    BatchTransform,
    FunctionTransform,
    ImportOptions,
    UpdateMethod,
)
from .session import ReconciliationSession
from .throttle import Sleeper, Throttle

__all__ = [
    "DEFAULT_IDENTITY_FIELDS",
    "BatchTransform",
    "FunctionTransform",
    "ImportOptions",
    "ReconciliationEngine",
    "ReconciliationSession",
    "Sleeper",
    "Throttle",
    "UpdateMethod",
    "bind_operation",
    "record_strategy",
]
