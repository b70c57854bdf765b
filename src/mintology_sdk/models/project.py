"""Project and aggregated snapshot models."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import ConfigDict, Field

from .base import MintologyModel


class ProjectStatus(str, Enum):
    """Project lifecycle status as reported by the vendor."""

    DRAFT = "draft"
    DEPLOYING = "deploying"
    DEPLOYED = "deployed"
    FAILED = "failed"


class Project(MintologyModel):
    """A Mintology project as the vendor reports it.

    Only ``project_id`` is normalized (to a string); the other fields pass
    through with whatever type the vendor sent, and unknown fields are kept.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    project_id: str
    contract_type: Optional[Any] = None
    wallet_type: Optional[Any] = None
    status: Optional[Any] = None


class ProjectEntry(Project):
    """A project merged with its premint and token-total data."""

    premints: Optional[Any] = None
    token: Optional[Any] = None


class AggregatedSnapshot(MintologyModel):
    """Cached view of every project plus premint/token sub-data."""

    fingerprint: str
    refreshed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    projects: List[ProjectEntry] = Field(default_factory=list)

    def project_ids(self) -> List[str]:
        return [p.project_id for p in self.projects]

    def get(self, project_id: str) -> Optional[ProjectEntry]:
        for project in self.projects:
            if project.project_id == project_id:
                return project
        return None
