"""Turn tasks into printed sections, one tearable section per task."""

import logging
from typing import Sequence

from .errors import TaskValidationError
from .formatter import LINE_WIDTH, format_task_for_print, wrap_text
from .printer import UnavailableTransport
from .tree import get_descendants

logger = logging.getLogger(__name__)

SINGLE_TASK_FEED = 4
SUBTASK_SECTION_FEED = 2
CUT_MARKER = "=== CUT HERE ==="
RULE = "-" * 24


def _render_section(name: str, heading: str = "") -> str:
    parts = [heading] if heading else []
    parts += [format_task_for_print(name, LINE_WIDTH), RULE, CUT_MARKER]
    return "\n".join(parts)


def _require_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise TaskValidationError("Task name is required")
    return name


class PrintService:
    """Sequences sections onto a printer transport.

    The transport is either a connected printer or the mock stand-in; the
    result's ``mode`` says which one handled the job. A write failure part
    way through a multi-section job propagates as TransportWriteError, and
    sections already cut stay printed.
    """

    def __init__(self, transport=None) -> None:
        self.transport = transport or UnavailableTransport()

    @property
    def mode(self) -> str:
        return self.transport.mode

    def print_task(self, name: str) -> dict:
        """Print a single task in large text."""
        name = _require_name(name)
        preview = _render_section(name)
        logger.info("Printing task:\n%s", preview)

        with self.transport.session() as transport:
            transport.write_section(wrap_text(name, LINE_WIDTH), feed=SINGLE_TASK_FEED)

        logger.info("Task printed (%s mode)", self.mode)
        return {"success": True, "task": name, "mode": self.mode, "preview": preview}

    def print_task_with_subtasks(self, main_task, subtasks: Sequence) -> dict:
        """Print the main task then each subtask, each in its own cut section."""
        main_name = _require_name(main_task.name)
        names = [_require_name(subtask.name) for subtask in subtasks]

        sections = [_render_section(main_name, "MAIN TASK:")]
        sections += [_render_section(name, f"SUBTASK {i}:") for i, name in enumerate(names, 1)]
        preview = "\n\n".join(sections)
        logger.info("Printing task list:\n%s", preview)

        with self.transport.session() as transport:
            for name in [main_name] + names:
                transport.write_section(wrap_text(name, LINE_WIDTH), feed=SUBTASK_SECTION_FEED)

        logger.info(
            "Task list printed (%s mode): %d subtasks, each in its own section",
            self.mode,
            len(names),
        )
        return {
            "success": True,
            "mainTask": main_name,
            "subtaskCount": len(names),
            "mode": self.mode,
            "preview": preview,
        }

    def print_task_by_id(self, store, task_id: int, include_subtasks: bool = False) -> dict:
        """Look up ``task_id`` and print it, optionally with all its descendants.

        Raises TaskNotFoundError before anything is formatted or printed.
        """
        task = store.get_task(task_id)
        if include_subtasks:
            return self.print_task_with_subtasks(task, get_descendants(store, task_id))
        return self.print_task(task.name)

    def close(self) -> None:
        self.transport.close()
