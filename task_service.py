"""
Ownership-scoped task operations.

Every query filters on ``user_id`` so a task owned by someone else is
indistinguishable from a missing one; both surface as NotFound.
"""
import logging
from typing import Any, Dict, List

from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, get_documents, now_utc
from errors import NotFound
from schemas import Task, TaskBody, TaskUpdateBody

logger = logging.getLogger(__name__)

COLLECTION = "task"


def _owned(task_id: str, user_id: str) -> Dict[str, Any]:
    return {"_id": task_id, "user_id": user_id}


def list_tasks(db: Database, user_id: str) -> List[Dict[str, Any]]:
    return get_documents(db, COLLECTION, {"user_id": user_id})


def create_task(db: Database, user_id: str, body: TaskBody) -> Dict[str, Any]:
    task = Task(user_id=user_id, **body.document())
    doc = create_document(db, COLLECTION, task.model_dump())
    logger.info("Task created id=%s user=%s", doc["_id"], user_id)
    return doc


def update_task(db: Database, user_id: str, task_id: str, body: TaskUpdateBody) -> Dict[str, Any]:
    upd = body.changes()
    upd["updated_at"] = now_utc()
    doc = db[COLLECTION].find_one_and_update(
        _owned(task_id, user_id),
        {"$set": upd},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        raise NotFound()
    logger.info("Task updated id=%s fields=%s", task_id, sorted(k for k in upd if k != "updated_at"))
    return doc


def delete_task(db: Database, user_id: str, task_id: str) -> None:
    result = db[COLLECTION].delete_one(_owned(task_id, user_id))
    if result.deleted_count == 0:
        raise NotFound()
    logger.info("Task deleted id=%s user=%s", task_id, user_id)
