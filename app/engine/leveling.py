from typing import List, Optional, Tuple
import logging

from app.engine.allocation import apply_suggestion, generate_suggestions
from app.models.entities import CellRef, Resource, Suggestion, Task


logger = logging.getLogger(__name__)


class LevelingSession:
    """
    Selected-cell state for the resource leveling view.

    no cell selected -> cell selected -> suggestion applied -> no cell selected

    Only the cell reference is kept. Suggestions are recomputed from the
    resources and tasks passed in, so they always reflect current data.
    """

    def __init__(self):
        self.selected: Optional[CellRef] = None

    def select(self, resource_id: str, week: int) -> CellRef:
        self.selected = CellRef(resource_id=resource_id, week=week)
        logger.info(f"Selected cell {resource_id}/week {week}")
        return self.selected

    def clear(self) -> None:
        self.selected = None

    def suggestions(self, resources: List[Resource], tasks: List[Task]) -> List[Suggestion]:
        if self.selected is None:
            return []
        return generate_suggestions(resources, tasks, self.selected.resource_id, self.selected.week)

    def apply(self, index: int, resources: List[Resource], tasks: List[Task]) -> Tuple[Suggestion, List[Task]]:
        """
        Apply the index-th current suggestion and clear the selection.

        Raises LookupError when nothing is selected or the index is out of range.
        """
        if self.selected is None:
            raise LookupError("no cell selected")
        current = self.suggestions(resources, tasks)
        if not 0 <= index < len(current):
            raise IndexError(f"suggestion {index} does not exist ({len(current)} available)")

        suggestion = current[index]
        updated = apply_suggestion(tasks, suggestion)
        logger.info(f"Applied {suggestion.type.value} for task {suggestion.task_id}")
        self.clear()
        return suggestion, updated
