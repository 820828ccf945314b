#!/usr/bin/env python3
"""JSON API to manage the task tree and print tasks to the receipt printer."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.concurrency import run_in_threadpool
from dotenv import load_dotenv

from .errors import TaskNotFoundError, TaskValidationError, TransportWriteError
from .orchestrator import PrintService
from .printer import check_printer_reachable, connect_transport
from .store import TaskStore
from .tree import build_task_tree, get_descendants

load_dotenv()
SEED_SAMPLE_TASKS = os.getenv("SEED_SAMPLE_TASKS", "true").lower() not in {"false", "0", "no"}
WEB_APP_HOST = os.getenv("WEB_APP_HOST", "127.0.0.1")
WEB_APP_PORT = int(os.getenv("WEB_APP_PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logger = logging.getLogger(__name__)

task_store = TaskStore()
if SEED_SAMPLE_TASKS:
    task_store.seed_sample_tasks()

# Replaced at startup once the printer has been probed.
print_service = PrintService()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    global print_service
    logger.info("Initializing printer connection...")
    print_service = PrintService(connect_transport())
    try:
        yield
    finally:
        print_service.close()


app = FastAPI(title="Task Tree Printer", lifespan=lifespan)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


async def _read_json(request: Request) -> dict:
    try:
        payload = await request.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


@app.get("/api/tasks")
def list_root_tasks():
    return JSONResponse([t.to_dict() for t in task_store.get_children(None)])


@app.get("/api/tasks-tree")
def task_tree():
    return JSONResponse([node.to_dict() for node in build_task_tree(task_store)])


@app.get("/api/tasks/{task_id}")
def get_task(task_id: int):
    try:
        task = task_store.get_task(task_id)
    except TaskNotFoundError:
        return _error("Task not found", 404)
    return JSONResponse(task.to_dict())


@app.get("/api/tasks/{task_id}/children")
def get_children(task_id: int):
    return JSONResponse([t.to_dict() for t in task_store.get_children(task_id)])


@app.get("/api/tasks/{task_id}/descendants")
def descendants(task_id: int):
    try:
        task = task_store.get_task(task_id)
        subtasks = get_descendants(task_store, task_id)
    except TaskNotFoundError:
        return _error("Task not found", 404)
    return JSONResponse({
        "task": task.to_dict(),
        "descendants": [t.to_dict() for t in subtasks],
    })


@app.post("/api/tasks")
async def create_task(request: Request):
    payload = await _read_json(request)
    try:
        task = task_store.create_task(payload.get("name"), payload.get("parent_id") or None)
    except TaskValidationError as e:
        return _error(str(e), 400)
    return JSONResponse(task.to_dict(), status_code=201)


@app.put("/api/tasks/{task_id}")
async def update_task(task_id: int, request: Request):
    payload = await _read_json(request)
    changes = {k: payload[k] for k in ("name", "parent_id", "order_index") if k in payload}
    try:
        task = task_store.update_task(task_id, **changes)
    except TaskNotFoundError:
        return _error("Task not found", 404)
    except TaskValidationError as e:
        return _error(str(e), 400)
    return JSONResponse(task.to_dict())


@app.delete("/api/tasks/{task_id}")
def delete_task(task_id: int):
    try:
        task_store.delete_task(task_id)
    except TaskNotFoundError:
        return _error("Task not found", 404)
    return JSONResponse({"success": True, "message": "Task deleted successfully"})


@app.post("/api/print/{task_id}")
async def print_task(task_id: int, request: Request):
    payload = await _read_json(request)
    include_subtasks = bool(payload.get("includeSubtasks"))

    try:
        # escpos writes block until the device answers or times out
        result = await run_in_threadpool(
            print_service.print_task_by_id, task_store, task_id, include_subtasks=include_subtasks
        )
    except TaskNotFoundError:
        return _error("Task not found", 404)
    except TransportWriteError as e:
        logger.error("Print error for task %s: %s", task_id, e)
        return _error(f"Failed to print: {e}", 500)

    return JSONResponse(result)


@app.get("/api/health")
def api_health():
    return JSONResponse({
        "status": "ok",
        "message": "Task Printer API is running",
        "printer_mode": print_service.mode,
    })


@app.get("/health")
def health():
    return JSONResponse(check_printer_reachable())


def main():
    """Run the development server via a script entry point."""
    import uvicorn

    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=WEB_APP_HOST, port=WEB_APP_PORT)


if __name__ == "__main__":
    main()
