"""
Projects resource for the Mintology SDK.

The vendor is the system of record for projects; nothing here is
persisted locally.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..models.errors import ValidationError
from ..models.project import ProjectStatus
from ..models.result import Result
from .base import AsyncBaseResource

TOKEN_TOTALS_PATH = "analytics/tokens/totals"


def _status_of(payload: Any) -> str:
    if isinstance(payload, dict) and payload.get("status"):
        return str(payload["status"])
    return ProjectStatus.DRAFT.value


class ProjectsResource(AsyncBaseResource):
    """Project lifecycle operations.

    Example:
        ```python
        async with MintologyClient(...) as client:
            created = await client.projects.create({"name": "Launch", "contract_type": "ERC721"})
            project_id = created.unwrap()["project_id"]
            await client.projects.deploy(project_id)
            status = await client.projects.status(project_id)
        ```
    """

    async def create(self, project: Optional[Dict[str, Any]] = None) -> Result[Any]:
        """Create a project."""
        return await self._post("projects", project)

    async def update(self, project_id: str, project: Optional[Dict[str, Any]] = None) -> Result[Any]:
        """Replace a project's settings."""
        return await self._put(f"projects/{project_id}", project)

    async def retrieve(self, project_id: str) -> Result[Any]:
        """Fetch a single project."""
        return await self._get(f"projects/{project_id}")

    async def list(self) -> Result[Any]:
        """List every project of the tenant."""
        return await self._get("projects")

    async def deploy(self, project_id: str) -> Result[Any]:
        """Deploy a project's contract."""
        return await self._post(f"projects/{project_id}/deploy")

    async def delete(self, project_id: str) -> Result[Any]:
        """Delete a project."""
        return await self._delete(f"projects/{project_id}")

    async def status(self, project_id: Optional[str] = None) -> Result[str]:
        """Project status, ``"draft"`` when there is no id or no status field.

        No request is made without a project id.
        """
        if not project_id:
            return Result.ok(ProjectStatus.DRAFT.value)
        result = await self.retrieve(project_id)
        return result.map(_status_of)

    async def premints(self, project_id: str) -> Result[Any]:
        """Premint records for a project."""
        return await self._get(f"{project_id}/premints")

    async def token_totals(self, project_id: str) -> Result[Any]:
        """Token analytics totals filtered to one project."""
        return await self._get(TOKEN_TOTALS_PATH, params={"projectId": project_id})

    async def generate_preview(self, layers: Optional[List[Dict[str, Any]]] = None) -> Result[Any]:
        """Render a preview NFT from generative layers."""
        if not layers:
            return Result.err(ValidationError("No layers provided", field="layers"))
        return await self._post("preview", layers)


__all__ = ["ProjectsResource", "TOKEN_TOTALS_PATH"]
