from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics
    agents: List[Dict[str, Any]]
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"
    field: Optional[np.ndarray]

    def field_payload(self) -> Optional[Dict[str, Any]]:
        if self.field is None:
            return None
        return {
            "rows": int(self.field.shape[0]),
            "cols": int(self.field.shape[1]),
            "values": self.field.tolist(),
        }


@dataclass(slots=True)
class SnapshotWorld:
    rows: int
    cols: int


@dataclass(slots=True)
class SnapshotMetadata:
    model: str
    seed: int
    config_version: str
    diffusion_mode: Optional[str] = None
