from unittest.mock import MagicMock

import pytest

from psp_web.domain.errors import PersistenceError
from psp_web.domain.models import ContentRun, Project
from psp_web.domain.workflow import WorkflowContext
from psp_web.repositories.content_run_repository import ContentRunRepository
from psp_web.repositories.project_repository import ProjectRepository
from psp_web.services.project_service import ProjectService


def make_service(db) -> ProjectService:
    return ProjectService(project_repo=ProjectRepository(db), run_repo=ContentRunRepository(db))


PROJECTS = [Project(id="p1", name="Uno", run_count=3), Project(id="p2", name="Dos")]


def test_delete_project_with_runs_then_drops_it_from_list():
    db = MagicMock()
    workflow = WorkflowContext(selected_project_id="p1")

    remaining = make_service(db).delete_project(PROJECTS, "p1", workflow)

    assert [c.args[0] for c in db.table.call_args_list] == ["se_content_runs", "se_project_members", "se_projects"]
    assert [p.id for p in remaining] == ["p2"]
    assert workflow.selected_project_id is None


def test_failed_delete_leaves_list_and_selection_unchanged():
    db = MagicMock()
    db.table.return_value.delete.return_value.eq.return_value.execute.side_effect = [None, RuntimeError("boom")]
    workflow = WorkflowContext(selected_project_id="p1")
    projects = list(PROJECTS)

    with pytest.raises(PersistenceError):
        make_service(db).delete_project(projects, "p1", workflow)

    assert projects == PROJECTS
    assert workflow.selected_project_id == "p1"


def test_deleting_other_project_keeps_selection():
    workflow = WorkflowContext(selected_project_id="p1")

    make_service(MagicMock()).delete_project(PROJECTS, "p2", workflow)

    assert workflow.selected_project_id == "p1"


def test_unknown_project_rejected():
    with pytest.raises(ValueError):
        make_service(MagicMock()).delete_project(PROJECTS, "zzz", WorkflowContext())


def test_delete_run_only_after_store_confirms():
    runs = [
        ContentRun(id="r1", created_at="", niche="", pillar="", objective="", platform="", selected_hook_code=""),
        ContentRun(id="r2", created_at="", niche="", pillar="", objective="", platform="", selected_hook_code=""),
    ]
    db = MagicMock()

    remaining = make_service(db).delete_run(runs, "r1")
    assert [r.id for r in remaining] == ["r2"]

    db.table.return_value.delete.return_value.eq.return_value.execute.side_effect = RuntimeError("nope")
    with pytest.raises(PersistenceError):
        make_service(db).delete_run(runs, "r2")
    assert len(runs) == 2
