from __future__ import annotations

from dataclasses import dataclass
from typing import List

from psp_web.domain.models import ContentRun, Project
from psp_web.domain.workflow import WorkflowContext
from psp_web.repositories.content_run_repository import ContentRunRepository
from psp_web.repositories.project_repository import ProjectRepository


@dataclass
class ProjectService:
    """
    Deletes projects and runs. The returned lists drop an item only once the
    store confirmed the deletion; on PersistenceError the caller keeps its list.
    """
    project_repo: ProjectRepository
    run_repo: ContentRunRepository

    def delete_project(self, projects: List[Project], project_id: str, workflow: WorkflowContext) -> List[Project]:
        project = next((p for p in projects if p.id == project_id), None)
        if project is None:
            raise ValueError(f"Unknown project: {project_id}")

        self.project_repo.delete_project(project.id, project.run_count)

        workflow.forget_project(project.id)
        return [p for p in projects if p.id != project.id]

    def delete_run(self, runs: List[ContentRun], run_id: str) -> List[ContentRun]:
        self.run_repo.delete_run(run_id)
        return [r for r in runs if r.id != run_id]
