"""Constants used throughout the task recovery application."""


# Workspace layout (relative to the git repository root)
DATA_DIR_NAME = ".claude"
PATCHES_DIR_NAME = "patches"
PATCH_FILE_SUFFIX = ".patch"
SESSION_FILE_NAME = "SESSION.md"
SHARED_MEMORY_FILE_NAME = "shared_memory.yaml"
SHARED_MEMORY_BACKUP_FILE_NAME = "shared_memory.backup.yaml"
CONFIG_FILE_NAME = "recovery_config.json"

# Task record format
PROMPT_START_MARKER = "---PROMPT---"
PROMPT_END_MARKER = "---END-PROMPT---"
NOTES_MARKER = "---NOTES---"

# Session pointer keys
CURRENT_TASK_KEY = "current_task_id"

# Git
STASH_MESSAGE_TEMPLATE = "task={task_id} checkpoint=pre_rebase"

# Review requests
REVIEW_TITLE_SUFFIX = " (auto-created)"

# Note store
SPAWN_NOTE_SOURCE = "spawned-task"
CLEANUP_NOTE_TEXT = "Cleanup: orphaned task during recovery"
