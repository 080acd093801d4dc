from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import get_auto_rebalance, get_position_config, load_board_config
from .constants import STATE_DIR_NAME
from .ordering import DropEvent, StaleColumnError
from .task_engine.engine import TaskEngine
from .task_engine.model import BOARD_STATUSES


def _resolve_project_dir(project_dir: Optional[str]) -> Path:
    return Path(project_dir).expanduser().resolve() if project_dir else Path.cwd().resolve()


def _engine(project_dir: Optional[str]) -> TaskEngine:
    project = _resolve_project_dir(project_dir)
    config, err = load_board_config(project)
    if err:
        logger.warning("Ignoring unreadable board config: {}", err)
    return TaskEngine(
        project / STATE_DIR_NAME,
        position_config=get_position_config(config),
        auto_rebalance=get_auto_rebalance(config),
    )


def _task_create(args: argparse.Namespace) -> int:
    engine = _engine(args.project_dir)
    try:
        task = engine.create_task(args.title, description=args.description, status=args.status)
    except ValueError as exc:
        sys.stderr.write(str(exc) + '\n')
        return 1
    sys.stdout.write(json.dumps(task.to_dict()) + '\n')
    return 0


def _task_board(args: argparse.Namespace) -> int:
    engine = _engine(args.project_dir)
    board = engine.get_board()
    if args.status:
        board = {args.status: board.get(args.status, [])}
    columns = {
        status: [{'id': t['id'], 'title': t['title'], 'position': t['position']} for t in tasks]
        for status, tasks in board.items()
    }
    sys.stdout.write(json.dumps({'columns': columns, 'versions': engine.get_column_versions()}, indent=2) + '\n')
    return 0


def _task_move(args: argparse.Namespace) -> int:
    engine = _engine(args.project_dir)
    drop = DropEvent(
        item_id=args.task_id,
        target_status=args.status,
        target_index=args.index,
        onto_column=args.onto_column,
    )
    try:
        result = engine.move_task(
            drop,
            expected_version=args.expected_version,
            expected_source_version=args.expected_source_version,
        )
    except StaleColumnError as exc:
        sys.stderr.write(str(exc) + '\n')
        return 2
    except ValueError as exc:
        sys.stderr.write(str(exc) + '\n')
        return 1
    if result is None:
        sys.stderr.write(f"Task {args.task_id} not found\n")
        return 1
    sys.stdout.write(json.dumps(result.to_dict(), indent=2) + '\n')
    return 0


def _task_rebalance(args: argparse.Namespace) -> int:
    engine = _engine(args.project_dir)
    try:
        updates = engine.rebalance_column(args.status, expected_version=args.expected_version)
    except StaleColumnError as exc:
        sys.stderr.write(str(exc) + '\n')
        return 2
    except ValueError as exc:
        sys.stderr.write(str(exc) + '\n')
        return 1
    sys.stdout.write(json.dumps({'status': args.status, 'updates': [u.to_dict() for u in updates]}, indent=2) + '\n')
    return 0


def _task_events(args: argparse.Namespace) -> int:
    engine = _engine(args.project_dir)
    sys.stdout.write(json.dumps({'events': engine.get_recent_events(limit=args.limit)}, indent=2) + '\n')
    return 0


def _server(args: argparse.Namespace) -> int:
    import uvicorn

    from .server import create_app

    app = create_app(project_dir=_resolve_project_dir(args.project_dir))
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    statuses = [s.value for s in BOARD_STATUSES]
    parser = argparse.ArgumentParser(description='Kanban board with drag-and-drop ordering')
    parser.add_argument('--project-dir', default=None, help='Target project directory (default: current working directory)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    server = subparsers.add_parser('server', help='Start the web server')
    server.add_argument('--host', default='127.0.0.1')
    server.add_argument('--port', default=8000, type=int)
    server.set_defaults(func=_server)

    task = subparsers.add_parser('task', help='Manage tasks')
    task_sub = task.add_subparsers(dest='task_cmd', required=True)
    tcreate = task_sub.add_parser('create', help='Create a task at the end of a column')
    tcreate.add_argument('title')
    tcreate.add_argument('--description', default='')
    tcreate.add_argument('--status', default='todo', choices=statuses)
    tcreate.set_defaults(func=_task_create)
    tboard = task_sub.add_parser('board', help='Show the ordered board')
    tboard.add_argument('--status', default=None, choices=statuses)
    tboard.set_defaults(func=_task_board)
    tmove = task_sub.add_parser('move', help='Drop a task into a column slot')
    tmove.add_argument('task_id')
    tmove.add_argument('status', choices=statuses)
    tmove.add_argument('--index', default=None, type=int, help='Target slot (default: end of column)')
    tmove.add_argument('--onto-column', action='store_true', help='Drop on the column body instead of a slot')
    tmove.add_argument('--expected-version', default=None, type=int, help='Target column version the drop was based on')
    tmove.add_argument('--expected-source-version', default=None, type=int, help='Version of the column the task leaves')
    tmove.set_defaults(func=_task_move)
    trebalance = task_sub.add_parser('rebalance', help='Re-space a column evenly')
    trebalance.add_argument('status', choices=statuses)
    trebalance.add_argument('--expected-version', default=None, type=int)
    trebalance.set_defaults(func=_task_rebalance)
    tevents = task_sub.add_parser('events', help='Show recent board events')
    tevents.add_argument('--limit', default=20, type=int)
    tevents.set_defaults(func=_task_events)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, 'func', None)
    if handler is None:
        parser.print_help()
        return 1
    return int(handler(args) or 0)


if __name__ == '__main__':
    raise SystemExit(main())
