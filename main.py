import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

import auth_service
import task_service
from config import get_settings
from database import close_db, get_db
from errors import AppError, ServerError, ValidationError
from logging_setup import setup_logging
from schemas import LoginBody, PasswordBody, SignupBody, TaskBody, TaskOut, TaskUpdateBody
from security import require_user

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s %s", app.title, app.version)
    yield
    close_db()


# App and CORS
app = FastAPI(title="Focus Tasks API", version="1.0.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error rendering: every failure is {"message": ...}
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse(status_code=ValidationError.status_code, content={"message": ValidationError.message})
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return JSONResponse(status_code=ValidationError.status_code, content={"message": message})


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=ServerError.status_code, content={"message": ServerError.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=ServerError.status_code, content={"message": ServerError.message})


@app.get("/")
def root():
    return {"message": "Focus Tasks API", "version": app.version}


# Auth routes
@app.post("/api/auth/signup", status_code=201)
def signup(body: SignupBody, db: Database = Depends(get_db)):
    return auth_service.sign_up(db, body.email, body.password, body.full_name)


@app.post("/api/auth/login")
def login(body: LoginBody, db: Database = Depends(get_db)):
    return auth_service.log_in(db, body.email, body.password)


@app.put("/api/auth/password")
def update_password(body: PasswordBody, user_id: str = Depends(require_user), db: Database = Depends(get_db)):
    return auth_service.change_password(db, user_id, body.password)


# Tasks CRUD
@app.get("/api/tasks", response_model=List[TaskOut])
def list_tasks(user_id: str = Depends(require_user), db: Database = Depends(get_db)):
    return [TaskOut.from_document(d) for d in task_service.list_tasks(db, user_id)]


@app.post("/api/tasks", response_model=TaskOut, status_code=201)
def create_task(body: TaskBody, user_id: str = Depends(require_user), db: Database = Depends(get_db)):
    return TaskOut.from_document(task_service.create_task(db, user_id, body))


@app.put("/api/tasks/{task_id}", response_model=TaskOut)
def update_task(
    task_id: str,
    body: TaskUpdateBody,
    user_id: str = Depends(require_user),
    db: Database = Depends(get_db),
):
    return TaskOut.from_document(task_service.update_task(db, user_id, task_id, body))


@app.delete("/api/tasks/{task_id}")
def delete_task(task_id: str, user_id: str = Depends(require_user), db: Database = Depends(get_db)):
    task_service.delete_task(db, user_id, task_id)
    return {"message": "Task deleted"}


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
