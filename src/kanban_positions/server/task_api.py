"""Task API endpoints for the board.

This module provides a FastAPI router with CRUD, the ordered board view and
the drag-and-drop endpoints.  It is mounted under ``/api/tasks`` by the main
``create_app`` factory.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query
from loguru import logger
from pydantic import BaseModel, Field

from ..ordering import DropEvent, StaleColumnError


# ---------------------------------------------------------------------------
# Pydantic request / response models
# ---------------------------------------------------------------------------

class CreateTaskRequest(BaseModel):
    title: str
    description: str = ""
    status: str = "todo"
    labels: list[str] = Field(default_factory=list)
    created_by: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class UpdateTaskRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    labels: Optional[list[str]] = None
    metadata: Optional[dict[str, Any]] = None


class MoveTaskRequest(BaseModel):
    """A drop event as reported by the drag layer."""

    target_status: str
    target_index: Optional[int] = Field(None, ge=0)
    onto_column: bool = False
    expected_version: Optional[int] = Field(None, ge=0)
    expected_source_version: Optional[int] = Field(None, ge=0)


class RebalanceRequest(BaseModel):
    expected_version: Optional[int] = Field(None, ge=0)


class TaskResponse(BaseModel):
    """Standard wrapper for task responses."""
    task: dict[str, Any]


class TaskListResponse(BaseModel):
    tasks: list[dict[str, Any]]
    total: int


class BoardResponse(BaseModel):
    columns: dict[str, list[dict[str, Any]]]
    versions: dict[str, int]
    health: dict[str, str]


class MoveResponse(BaseModel):
    mutation: dict[str, Any]
    task: dict[str, Any]
    rebalanced: bool
    column_version: int


class RebalanceResponse(BaseModel):
    status: str
    updates: list[dict[str, Any]]


class ColumnHealthResponse(BaseModel):
    status: str
    health: str


class EventListResponse(BaseModel):
    events: list[dict[str, Any]]


# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------

def create_task_router(get_engine: Any) -> APIRouter:
    """Create the task API router.

    Parameters
    ----------
    get_engine:
        A callable ``(project_dir_param: str | None) -> TaskEngine`` that
        resolves the engine for the current request's project directory.
    """
    router = APIRouter(prefix="/api/tasks", tags=["tasks"])

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    @router.get("", response_model=TaskListResponse)
    async def list_tasks(
        project_dir: Optional[str] = Query(None),
        status: Optional[str] = Query(None),
        label: Optional[str] = Query(None),
        search: Optional[str] = Query(None),
    ) -> TaskListResponse:
        engine = get_engine(project_dir)
        tasks = engine.list_tasks(status=status, label=label, search=search)
        data = [t.to_dict() for t in tasks]
        return TaskListResponse(tasks=data, total=len(data))

    @router.post("", response_model=TaskResponse, status_code=201)
    async def create_task(
        body: CreateTaskRequest,
        project_dir: Optional[str] = Query(None),
    ) -> TaskResponse:
        engine = get_engine(project_dir)
        try:
            task = engine.create_task(**body.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return TaskResponse(task=task.to_dict())

    @router.get("/board", response_model=BoardResponse)
    async def get_board(
        project_dir: Optional[str] = Query(None),
    ) -> BoardResponse:
        engine = get_engine(project_dir)
        return BoardResponse(
            columns=engine.get_board(),
            versions=engine.get_column_versions(),
            health=engine.get_board_health(),
        )

    @router.get("/board/{status}/health", response_model=ColumnHealthResponse)
    async def get_column_health(
        status: str,
        project_dir: Optional[str] = Query(None),
    ) -> ColumnHealthResponse:
        engine = get_engine(project_dir)
        try:
            health = engine.get_column_health(status)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return ColumnHealthResponse(status=status, health=health.value)

    @router.post("/board/{status}/rebalance", response_model=RebalanceResponse)
    async def rebalance_column(
        status: str,
        body: Optional[RebalanceRequest] = None,
        project_dir: Optional[str] = Query(None),
    ) -> RebalanceResponse:
        engine = get_engine(project_dir)
        expected = body.expected_version if body else None
        try:
            updates = engine.rebalance_column(status, expected_version=expected)
        except StaleColumnError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return RebalanceResponse(status=status, updates=[u.to_dict() for u in updates])

    @router.get("/events", response_model=EventListResponse)
    async def list_events(
        project_dir: Optional[str] = Query(None),
        limit: int = Query(100, ge=1, le=1000),
    ) -> EventListResponse:
        engine = get_engine(project_dir)
        return EventListResponse(events=engine.get_recent_events(limit=limit))

    @router.get("/{task_id}", response_model=TaskResponse)
    async def get_task(
        task_id: str,
        project_dir: Optional[str] = Query(None),
    ) -> TaskResponse:
        engine = get_engine(project_dir)
        task = engine.get_task(task_id)
        if task is None:
            raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
        return TaskResponse(task=task.to_dict())

    @router.patch("/{task_id}", response_model=TaskResponse)
    async def update_task(
        task_id: str,
        body: UpdateTaskRequest,
        project_dir: Optional[str] = Query(None),
    ) -> TaskResponse:
        engine = get_engine(project_dir)
        changes = {k: v for k, v in body.model_dump().items() if v is not None}
        task = engine.update_task(task_id, changes)
        if task is None:
            raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
        return TaskResponse(task=task.to_dict())

    @router.delete("/{task_id}")
    async def delete_task(
        task_id: str,
        project_dir: Optional[str] = Query(None),
    ) -> dict[str, str]:
        engine = get_engine(project_dir)
        if not engine.delete_task(task_id):
            raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
        return {"status": "deleted"}

    # ------------------------------------------------------------------
    # Drag and drop
    # ------------------------------------------------------------------

    @router.post("/{task_id}/move", response_model=MoveResponse)
    async def move_task(
        task_id: str,
        body: MoveTaskRequest,
        project_dir: Optional[str] = Query(None),
    ) -> MoveResponse:
        engine = get_engine(project_dir)
        drop = DropEvent(
            item_id=task_id,
            target_status=body.target_status,
            target_index=body.target_index,
            onto_column=body.onto_column,
        )
        try:
            result = engine.move_task(
                drop,
                expected_version=body.expected_version,
                expected_source_version=body.expected_source_version,
            )
        except StaleColumnError as e:
            logger.info("Rejected stale move of {}: {}", task_id, e)
            raise HTTPException(status_code=409, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if result is None:
            raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
        return MoveResponse(**result.to_dict())

    return router
