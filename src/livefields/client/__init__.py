"""Viewer side: display mirror, reconciler and per-field edit controllers."""

from __future__ import annotations

from livefields.client.display import Display, FieldElement
from livefields.client.edit import EditController
from livefields.client.reconciler import FieldClient

__all__ = [
    "Display",
    "EditController",
    "FieldClient",
    "FieldElement",
]
