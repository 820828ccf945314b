"""Errors raised by the task store, tree builder and printer."""


class TaskPrinterError(Exception):
    """Base class for task printer errors."""


class TaskNotFoundError(TaskPrinterError):
    def __init__(self, task_id):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class TaskValidationError(TaskPrinterError):
    """A required field is missing or a change would break the task tree."""


class PrinterUnavailableError(TaskPrinterError):
    """No printer could be opened; callers fall back to mock mode."""


class TransportWriteError(TaskPrinterError):
    """Writing to the physical printer failed. Not retried."""
