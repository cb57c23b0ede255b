"""Configuration models for task recovery."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

REVIEW_PROVIDERS = ("gitlab", "github")


class RecoveryConfig(BaseModel):
    """Per-workspace recovery settings."""
    reference_branch: str = "main"
    remote: Optional[str] = Field(
        "origin", description="Remote to fetch before rebasing; None for local-only"
    )
    review_provider: str = "gitlab"
    branch_prefix: str = "feature/task-"
    review_title_length: int = Field(70, ge=10)

    @field_validator("review_provider")
    @classmethod
    def _validate_provider(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in REVIEW_PROVIDERS:
            raise ValueError(f"review_provider must be one of {', '.join(REVIEW_PROVIDERS)}")
        return normalized

    @property
    def rebase_target(self) -> str:
        """Ref that branches are rebased onto."""
        if self.remote:
            return f"{self.remote}/{self.reference_branch}"
        return self.reference_branch
