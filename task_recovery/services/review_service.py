"""Review request integration (GitLab merge requests, GitHub pull requests)."""

import json
import logging
import re
import subprocess
from pathlib import Path
from typing import Optional

from ..models.recovery import ReviewStatus
from .exceptions import InvalidArgumentError, ReviewServiceError

logger = logging.getLogger(__name__)

# glab prints ".../merge_requests/12" and "!12"; gh prints ".../pull/12"
_REF_PATTERNS = {
    "gitlab": (re.compile(r"/merge_requests/(\d+)"), re.compile(r"!(\d+)")),
    "github": (re.compile(r"/pull/(\d+)"), re.compile(r"#(\d+)")),
}


class ReviewService:
    """Create and inspect review requests through the provider's CLI."""

    def __init__(self, repo_path: Path, provider: str = "gitlab"):
        if provider not in _REF_PATTERNS:
            raise InvalidArgumentError(f"Unsupported review provider: {provider}")
        self.repo_path = Path(repo_path).resolve()
        self.provider = provider

    def _run(self, args: list[str]) -> str:
        try:
            result = subprocess.run(
                args,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise ReviewServiceError(f"{args[0]} {args[1]} {args[2]} failed: {e.stderr or e}") from e
        except FileNotFoundError as e:
            raise ReviewServiceError(f"{args[0]} CLI is not installed") from e
        return result.stdout

    def extract_ref(self, output: str) -> Optional[str]:
        """Extract the review number from CLI output or a review URL."""
        for pattern in _REF_PATTERNS[self.provider]:
            match = pattern.search(output)
            if match:
                return match.group(1)
        return None

    def create(self, branch_name: str, target_branch: str, title: str, description: str) -> str:
        """Open a review request and return its identifier.

        Raises:
            ReviewServiceError: If the CLI fails or prints no identifier
        """
        if self.provider == "gitlab":
            args = [
                'glab', 'mr', 'create',
                '--source-branch', branch_name,
                '--target-branch', target_branch,
                '--title', title,
                '--description', description,
                '--yes',
            ]
        else:
            args = [
                'gh', 'pr', 'create',
                '--head', branch_name,
                '--base', target_branch,
                '--title', title,
                '--body', description,
            ]

        output = self._run(args)
        ref = self.extract_ref(output)
        if not ref:
            raise ReviewServiceError(f"Could not find a review id in output: {output.strip()!r}")
        logger.info(f"Created {self.provider} review {ref} for branch {branch_name}")
        return ref

    def status(self, ref: str) -> ReviewStatus:
        """Query the state of a review request.

        Returns:
            MERGED, OPEN, or PENDING for any other state (closed, draft, ...)

        Raises:
            ReviewServiceError: If the CLI fails or returns unparseable output
        """
        if self.provider == "gitlab":
            output = self._run(['glab', 'mr', 'view', ref, '--output', 'json'])
        else:
            output = self._run(['gh', 'pr', 'view', ref, '--json', 'state'])

        try:
            state = str(json.loads(output).get("state", "")).lower()
        except (json.JSONDecodeError, AttributeError) as e:
            raise ReviewServiceError(f"Unexpected review status output: {output.strip()!r}") from e

        logger.debug(f"Review {ref} state: {state}")
        if state == "merged":
            return ReviewStatus.MERGED
        if state in ("open", "opened"):
            return ReviewStatus.OPEN
        return ReviewStatus.PENDING
