"""FastAPI web server for the board."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from ..config import get_auto_rebalance, get_position_config, load_board_config
from ..constants import STATE_DIR_NAME
from ..task_engine.engine import TaskEngine
from .task_api import create_task_router


def create_app(
    project_dir: Optional[Path] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        project_dir: Default project directory.
        enable_cors: Whether to enable CORS.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(
        title="Kanban Positions",
        description="Task board with drag-and-drop ordering",
        version="1.0.0",
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.state.default_project_dir = project_dir
    engines: dict[Path, TaskEngine] = {}

    def _get_project_dir(project_dir_param: Optional[str] = None) -> Path:
        """Get project directory from parameter or default."""
        if project_dir_param:
            return Path(project_dir_param)
        if app.state.default_project_dir:
            return app.state.default_project_dir
        return Path.cwd()

    def get_engine(project_dir_param: Optional[str] = None) -> TaskEngine:
        project = _get_project_dir(project_dir_param).resolve()
        engine = engines.get(project)
        if engine is None:
            config, err = load_board_config(project)
            if err:
                logger.warning("Ignoring unreadable board config for {}: {}", project, err)
            engine = TaskEngine(
                project / STATE_DIR_NAME,
                position_config=get_position_config(config),
                auto_rebalance=get_auto_rebalance(config),
            )
            engines[project] = engine
            logger.info(
                "Opened board at {} (gap={}, auto_rebalance={})",
                project,
                engine.position_config.gap,
                engine.auto_rebalance,
            )
        return engine

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Kanban Positions",
            "version": "1.0.0",
            "status": "running",
        }

    app.include_router(create_task_router(get_engine))
    return app
