from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from psp_web.domain.errors import PersistenceError
from psp_web.domain.models import Project

PROJECTS_TABLE = "se_projects"
MEMBERS_TABLE = "se_project_members"
RUNS_TABLE = "se_content_runs"


def _to_project(row: dict, run_count: int = 0) -> Project:
    return Project(
        id=str(row.get("id", "")),
        name=str(row.get("name", "") or ""),
        default_niche=str(row.get("default_niche", "") or ""),
        run_count=run_count,
    )


@dataclass
class ProjectRepository:
    """
    Repository pattern: projects, their members and their run counts in Supabase.
    Write failures are raised as PersistenceError.
    """
    db: Any

    def count_runs(self, project_id: str) -> int:
        result = (
            self.db.table(RUNS_TABLE)
            .select("id", count="exact", head=True)
            .eq("project_id", project_id)
            .execute()
        )
        return result.count or 0

    def list_projects(self) -> List[Project]:
        result = (
            self.db.table(PROJECTS_TABLE)
            .select("id, name, default_niche")
            .order("created_at", desc=True)
            .execute()
        )
        return [_to_project(row, self.count_runs(row["id"])) for row in (result.data or [])]

    def get_project(self, project_id: str) -> Optional[Project]:
        result = (
            self.db.table(PROJECTS_TABLE)
            .select("id, name, default_niche")
            .eq("id", project_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return _to_project(result.data[0])

    def create_project(self, name: str, owner_id: str) -> Optional[Project]:
        name = (name or "").strip()
        if not name:
            return None

        try:
            result = self.db.table(PROJECTS_TABLE).insert({"name": name}).execute()
            project = _to_project(result.data[0])
            self.db.table(MEMBERS_TABLE).insert(
                {"project_id": project.id, "user_id": owner_id, "role": "owner"}
            ).execute()
        except Exception as e:
            raise PersistenceError(f"Error creando proyecto: {e}") from e

        return project

    def update_default_niche(self, project_id: str, niche: str) -> None:
        try:
            self.db.table(PROJECTS_TABLE).update({"default_niche": niche}).eq("id", project_id).execute()
        except Exception as e:
            raise PersistenceError(f"Error guardando el nicho por defecto: {e}") from e

    def delete_project(self, project_id: str, run_count: int) -> None:
        """Runs first, then memberships, then the project itself."""
        try:
            if run_count > 0:
                self.db.table(RUNS_TABLE).delete().eq("project_id", project_id).execute()
            self.db.table(MEMBERS_TABLE).delete().eq("project_id", project_id).execute()
            self.db.table(PROJECTS_TABLE).delete().eq("id", project_id).execute()
        except Exception as e:
            raise PersistenceError(f"Error al eliminar el proyecto: {e}") from e
