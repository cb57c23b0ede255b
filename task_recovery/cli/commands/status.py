"""Crash-state status command."""

import json
import sys

import click

from task_recovery.cli.helpers import get_reporter, handle_service_errors
from ...services.exceptions import NoActiveTaskError, ValidationFailedError


@click.command()
@click.option('--check-review', is_flag=True,
              help='Query the review provider for the review request state')
@handle_service_errors
def status(check_review):
    """Print the crash-state report of the current task as JSON"""
    reporter = get_reporter()
    try:
        report = reporter.report(check_review=check_review)
    except NoActiveTaskError as e:
        click.echo(json.dumps({"error": "no_active_task", "message": str(e)}))
        sys.exit(1)
    except ValidationFailedError as e:
        click.echo(json.dumps({"error": "invalid_task", "message": str(e)}))
        sys.exit(1)

    click.echo(report.to_json())
