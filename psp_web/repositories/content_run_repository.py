from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from psp_web.domain.errors import PersistenceError
from psp_web.domain.models import ContentRun
from psp_web.repositories.project_repository import RUNS_TABLE

HISTORY_COLUMNS = (
    "id, created_at, niche, pillar, objective, platform, selected_hook_code, "
    "script_psp, production_pack, seo_pack, advanced_optimizations, ab_test_variants, "
    "ai_model_used, risk_level_applied, hook"
)


def _to_run(row: dict) -> ContentRun:
    return ContentRun(
        id=str(row.get("id", "")),
        created_at=str(row.get("created_at", "") or ""),
        niche=str(row.get("niche", "") or ""),
        pillar=str(row.get("pillar", "") or ""),
        objective=str(row.get("objective", "") or ""),
        platform=str(row.get("platform", "") or ""),
        selected_hook_code=str(row.get("selected_hook_code", "") or ""),
        row=dict(row),
    )


@dataclass
class ContentRunRepository:
    """Repository pattern: generation history of a project (se_content_runs)."""
    db: Any

    def list_runs(self, project_id: str) -> List[ContentRun]:
        result = (
            self.db.table(RUNS_TABLE)
            .select(HISTORY_COLUMNS)
            .eq("project_id", project_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [_to_run(row) for row in (result.data or [])]

    def get_run(self, project_id: str, run_id: str) -> Optional[ContentRun]:
        result = (
            self.db.table(RUNS_TABLE)
            .select(HISTORY_COLUMNS)
            .eq("project_id", project_id)
            .eq("id", run_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return _to_run(result.data[0])

    def delete_run(self, run_id: str) -> None:
        try:
            self.db.table(RUNS_TABLE).delete().eq("id", run_id).execute()
        except Exception as e:
            raise PersistenceError(f"Error al eliminar: {e}") from e
