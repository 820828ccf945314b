"""Task Tree Printer - hierarchical to-do list printed on a thermal receipt printer."""

__version__ = "1.0.0"

from .formatter import format_task_for_print, wrap_text
from .orchestrator import PrintService
from .store import Task, TaskStore
from .tree import build_task_tree, get_descendants

__all__ = [
    "PrintService",
    "Task",
    "TaskStore",
    "build_task_tree",
    "format_task_for_print",
    "get_descendants",
    "wrap_text",
]
