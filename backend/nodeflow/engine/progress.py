"""Per-node progress fed by the backend's real-time channel (read-only for the graph)."""
from dataclasses import dataclass
from enum import Enum


class ProgressType(str, Enum):
    DETERMINATE = "determinate"
    INDETERMINATE = "indeterminate"
    DISABLED = "disabled"


@dataclass(frozen=True)
class Progress:
    value: float = 0.0
    type: ProgressType = ProgressType.DETERMINATE


class ProgressBoard:
    def __init__(self):
        self._progress: dict[str, Progress] = {}

    def get(self, node_id: str) -> Progress:
        return self._progress.get(node_id, Progress())

    def update(self, node_id: str, value: float, type: ProgressType | str = ProgressType.DETERMINATE) -> Progress:
        progress = Progress(value=value, type=ProgressType(type))
        self._progress[node_id] = progress
        return progress

    def clear(self, node_id: str | None = None) -> None:
        if node_id is None:
            self._progress.clear()
        else:
            self._progress.pop(node_id, None)

    def snapshot(self) -> dict[str, Progress]:
        return dict(self._progress)
