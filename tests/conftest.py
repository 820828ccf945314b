import pytest

from task_tree_printer.store import TaskStore

from .fakes import RecordingPrinter


@pytest.fixture()
def store():
    s = TaskStore()
    yield s
    s.close()


@pytest.fixture()
def sample_store(store):
    store.seed_sample_tasks()
    return store


@pytest.fixture()
def recording_printer():
    return RecordingPrinter()
