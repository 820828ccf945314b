"""Build nested task trees and flat descendant lists from a task store."""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from .errors import TaskNotFoundError

if TYPE_CHECKING:
    from .store import Task


@dataclass
class TaskNode:
    task: "Task"
    children: List["TaskNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = self.task.to_dict()
        data["children"] = [child.to_dict() for child in self.children]
        return data


def _children_index(tasks) -> Dict[Optional[int], list]:
    """Group tasks by parent id, each group sorted by order index."""
    index = defaultdict(list)
    for task in tasks:
        index[task.parent_id].append(task)
    for siblings in index.values():
        siblings.sort(key=lambda t: (t.order_index, t.id))
    return index


def build_task_tree(store, parent_id: Optional[int] = None) -> List[TaskNode]:
    """Return the children of ``parent_id`` (roots when None) with their subtrees.

    All rows are loaded once and linked through a parent -> children index,
    so the whole forest costs a single store query.
    """
    index = _children_index(store.all_tasks())

    def expand(pid):
        return [TaskNode(task, expand(task.id)) for task in index.get(pid, [])]

    return expand(parent_id)


def get_descendants(store, task_id: int) -> list:
    """Return every task below ``task_id`` as a flat list, used for printing.

    Ordering: the task's direct children in sibling order, then the
    descendants of each child in turn, following the same rule. The task
    itself is never included.

    Raises TaskNotFoundError if ``task_id`` does not exist.
    """
    tasks = store.all_tasks()
    if not any(t.id == task_id for t in tasks):
        raise TaskNotFoundError(task_id)
    index = _children_index(tasks)

    def collect(pid):
        children = index.get(pid, [])
        descendants = list(children)
        for child in children:
            descendants.extend(collect(child.id))
        return descendants

    return collect(task_id)
