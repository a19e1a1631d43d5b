"""
HTTP API for the editor client.

Files:
    GET    /files                    all records, directories first
    GET    /files/search/{query}     name/content matches
    GET    /files/{path}             one record
    POST   /files                    create
    PATCH  /files/{path}             update name/content
    DELETE /files/{path}             delete (recursive for directories)
    PUT    /files/rename             move a record and its subtree

Terminal:
    POST   /terminal/session                 open a session at '/'
    POST   /terminal/session/{id}/execute    run a command in a session
    DELETE /terminal/session/{id}            close a session
    POST   /terminal/execute                 run a command in a given cwd

Every route lives under the configured prefix (default /api). Failures
are always `{"message": ...}` bodies.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from . import paths
from .config import AppConfig
from .errors import Conflict, InvalidInput, NotFound
from .filestore import FileStore, open_store
from .interpreter import ShellInterpreter
from .sessions import SessionRegistry


# Request/Response Models

class FileCreate(BaseModel):
    name: str = Field(min_length=1)
    path: str = Field(min_length=1)
    content: Optional[str] = None
    isDirectory: Optional[bool] = False
    parentPath: Optional[str] = None


class FileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = None


class RenameRequest(BaseModel):
    oldPath: Optional[str] = None
    newPath: Optional[str] = None


class FileRecordOut(BaseModel):
    id: str
    name: str
    path: str
    content: Optional[str]
    isDirectory: bool
    parentPath: Optional[str]
    createdAt: datetime
    updatedAt: datetime


class MessageResponse(BaseModel):
    message: str


class SessionResponse(BaseModel):
    id: str
    cwd: str


class ExecuteRequest(BaseModel):
    command: str


class StatelessExecuteRequest(BaseModel):
    command: str
    cwd: Optional[str] = None


class ExecuteResponse(BaseModel):
    command: str
    stdout: str
    stderr: str
    exitCode: int
    cwd: str


# Dependencies

def get_store(request: Request) -> FileStore:
    return request.app.state.store


def get_shell(request: Request) -> ShellInterpreter:
    return request.app.state.shell


def _file_path(raw: str) -> str:
    return paths.ROOT + raw.lstrip(paths.SEP)


def _command_text(command: str) -> str:
    text = command.strip()
    if not text:
        raise InvalidInput("Command is required")
    return text


# File routes

files = APIRouter(tags=["Files"])


@files.get("/files", response_model=List[FileRecordOut])
def list_files(store: FileStore = Depends(get_store)):
    """All records, directories first then by name."""
    return [record.to_dict() for record in store.list()]


@files.get("/files/search/{query}", response_model=List[FileRecordOut])
def search_files(query: str, store: FileStore = Depends(get_store)):
    return [record.to_dict() for record in store.search(query)]


@files.put("/files/rename", response_model=FileRecordOut)
def rename_file(body: RenameRequest, store: FileStore = Depends(get_store)):
    if not body.oldPath or not body.newPath:
        raise InvalidInput("oldPath and newPath are required")
    record = store.rename(body.oldPath, body.newPath)
    if record is None:
        raise NotFound("File not found", body.oldPath)
    return record.to_dict()


@files.get("/files/{file_path:path}", response_model=FileRecordOut)
def get_file(file_path: str, store: FileStore = Depends(get_store)):
    path = _file_path(file_path)
    record = store.get(path)
    if record is None:
        raise NotFound("File not found", path)
    return record.to_dict()


@files.post("/files", response_model=FileRecordOut, status_code=201)
def create_file(body: FileCreate, store: FileStore = Depends(get_store)):
    record = store.create(
        body.path,
        name=body.name,
        content=body.content,
        is_directory=bool(body.isDirectory),
        parent_path=body.parentPath,
    )
    return record.to_dict()


@files.patch("/files/{file_path:path}", response_model=FileRecordOut)
def update_file(file_path: str, body: FileUpdate,
                store: FileStore = Depends(get_store)):
    path = _file_path(file_path)
    record = store.update(path, name=body.name, content=body.content)
    if record is None:
        raise NotFound("File not found", path)
    return record.to_dict()


@files.delete("/files/{file_path:path}", response_model=MessageResponse)
def delete_file(file_path: str, store: FileStore = Depends(get_store)):
    path = _file_path(file_path)
    if not store.delete(path):
        raise NotFound("File not found", path)
    return {"message": "File deleted successfully"}


# Terminal routes

terminal = APIRouter(prefix="/terminal", tags=["Terminal"])


@terminal.post("/session", response_model=SessionResponse)
def create_session(shell: ShellInterpreter = Depends(get_shell)):
    session_id = shell.sessions.create()
    return {"id": session_id, "cwd": shell.sessions.get(session_id)}


@terminal.post("/session/{session_id}/execute", response_model=ExecuteResponse)
def execute_in_session(session_id: str, body: ExecuteRequest,
                       shell: ShellInterpreter = Depends(get_shell)):
    result = shell.run(session_id, _command_text(body.command))
    response = result.to_dict()
    response["cwd"] = shell.sessions.get(session_id)
    return response


@terminal.delete("/session/{session_id}", response_model=MessageResponse)
def close_session(session_id: str, shell: ShellInterpreter = Depends(get_shell)):
    if not shell.sessions.close(session_id):
        raise NotFound("Session not found")
    return {"message": "Session closed"}


@terminal.post("/execute", response_model=ExecuteResponse)
def execute(body: StatelessExecuteRequest,
            shell: ShellInterpreter = Depends(get_shell)):
    cwd = paths.normalize(body.cwd) if body.cwd else paths.ROOT
    result = shell.execute(cwd, _command_text(body.command))
    response = result.to_dict()
    response["cwd"] = result.new_cwd or cwd
    return response


# Health

health = APIRouter(tags=["Health"])


@health.get("/health")
def get_health(store: FileStore = Depends(get_store)):
    return {
        "status": "ok",
        "backend": store.backend_name,
        "degraded": store.degraded,
    }


# Error handling

def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def _not_found(request: Request, exc: NotFound):
    return _message(404, exc.message)


async def _bad_request(request: Request, exc: Exception):
    return _message(400, getattr(exc, 'message', str(exc)))


async def _invalid_body(request: Request, exc: RequestValidationError):
    logger.debug(f"{request.method} {request.url.path}: {exc.errors()}")
    return _message(400, "Invalid request data")


async def _unexpected(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} failed")
    return _message(500, "Internal server error")


# Application

def _attach(app: FastAPI, store: FileStore,
            sessions: Optional[SessionRegistry] = None) -> None:
    app.state.store = store
    app.state.shell = ShellInterpreter(store, sessions)


def create_app(config: Optional[AppConfig] = None,
               store: Optional[FileStore] = None,
               sessions: Optional[SessionRegistry] = None) -> FastAPI:
    """Build the API.

    With no `store`, one is opened from `config` when the app starts and
    closed when it stops.
    """
    config = config or AppConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, 'store', None) is None
        if owned:
            _attach(app, open_store(config.database_url,
                                    project_name=config.project_name,
                                    seed=config.seed), sessions)
        logger.info(f"ideshell API ready ({app.state.store.backend_name} storage)")
        yield
        if owned:
            app.state.store.close()
        logger.info("ideshell API stopped")

    app = FastAPI(title="ideshell", version="0.1.0", lifespan=lifespan)
    if store is not None:
        _attach(app, store, sessions)

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(NotFound, _not_found)
    app.add_exception_handler(Conflict, _bad_request)
    app.add_exception_handler(InvalidInput, _bad_request)
    app.add_exception_handler(RequestValidationError, _invalid_body)
    app.add_exception_handler(Exception, _unexpected)

    for router in (files, terminal, health):
        app.include_router(router, prefix=config.api_prefix)
    return app
