"""Undo/redo stack of whole-graph snapshots."""
from .graph import Graph


class UndoRedoStack:
    """Linear history: ``past`` <- ``present`` -> ``future``.

    Recording a new snapshot drops the redo branch. Snapshots equal to the
    present are ignored so repeated writes of the same state do not pile up.
    """

    def __init__(self, present: Graph | None = None, limit: int | None = None):
        self.past: list[Graph] = []
        self.present: Graph = present if present is not None else Graph()
        self.future: list[Graph] = []
        self.limit = limit

    @property
    def can_undo(self) -> bool:
        return bool(self.past)

    @property
    def can_redo(self) -> bool:
        return bool(self.future)

    def set_present(self, snapshot: Graph) -> None:
        if snapshot == self.present:
            return
        self.past.append(self.present)
        if self.limit is not None and len(self.past) > self.limit:
            del self.past[0]
        self.present = snapshot
        self.future = []

    def undo(self) -> Graph | None:
        if not self.past:
            return None
        self.future.insert(0, self.present)
        self.present = self.past.pop()
        return self.present

    def redo(self) -> Graph | None:
        if not self.future:
            return None
        self.past.append(self.present)
        self.present = self.future.pop(0)
        return self.present
