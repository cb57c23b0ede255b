from unittest.mock import patch

import pytest


@pytest.fixture
def project(tmp_path, data_dir):
    """Point every CLI helper at a temporary project without needing git."""
    context = (tmp_path, data_dir)
    with patch('task_recovery.cli.helpers.get_project_context', return_value=context), \
            patch('task_recovery.cli.commands.task.list_tasks.get_project_context', return_value=context), \
            patch('task_recovery.cli.commands.config.get_project_context', return_value=context):
        yield tmp_path, data_dir
