STATE_DIR_NAME = ".kanban"
CONFIG_FILE = "config.yaml"
TASKS_FILE = "tasks.yaml"
TASKS_LOCK_FILE = "tasks.lock"
ARTIFACTS_DIR = "artifacts"
EVENTS_FILE = "task_events.jsonl"

WINDOWS_LOCK_BYTES = 4096
AUTO_REBALANCE_ENV_VAR = "KANBAN_POSITIONS_AUTO_REBALANCE"
