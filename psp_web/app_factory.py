from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from flask import Flask

from psp_web.adapters.auth_provider import SupabaseAuthProvider
from psp_web.adapters.generation_client import GenerationClient
from psp_web.adapters.supabase_client import SupabaseClientFactory
from psp_web.config.ini_config import AppSettings, IniConfig
from psp_web.domain.workflow import WorkflowStore
from psp_web.repositories.content_run_repository import ContentRunRepository
from psp_web.repositories.project_repository import ProjectRepository
from psp_web.services.generation_service import GenerationService
from psp_web.services.project_service import ProjectService
from psp_web.web.routes import create_blueprint

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", log_path: Optional[Path] = None) -> None:
    handlers = [logging.StreamHandler()]
    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


@dataclass
class RequestServices:
    """Everything a request needs, built around one per-request Supabase client."""
    auth: SupabaseAuthProvider
    projects: ProjectRepository
    runs: ContentRunRepository
    generation: GenerationService
    project_service: ProjectService


def build_request_services(settings: AppSettings, client) -> RequestServices:
    auth = SupabaseAuthProvider(client)
    projects = ProjectRepository(db=client)
    runs = ContentRunRepository(db=client)

    generation = GenerationService(
        generation_client=GenerationClient(client, auth),
        project_repo=projects,
        hooks_function=settings.hooks_function,
        knowledge_pack_function=settings.knowledge_pack_function,
        request_version=settings.request_version,
        mode=settings.mode,
        brand_domain=settings.brand_domain,
    )

    return RequestServices(
        auth=auth,
        projects=projects,
        runs=runs,
        generation=generation,
        project_service=ProjectService(project_repo=projects, run_repo=runs),
    )


def create_app(
    settings: Optional[AppSettings] = None,
    services_factory: Optional[Callable[[], RequestServices]] = None,
    workflow_store: Optional[WorkflowStore] = None,
) -> Flask:
    if settings is None:
        settings = IniConfig.from_env_or_default().load_settings()

    configure_logging(settings.log_level, settings.log_file)

    if workflow_store is None:
        workflow_store = WorkflowStore()

    if services_factory is None:
        client_factory = SupabaseClientFactory(url=settings.supabase_url, anon_key=settings.supabase_anon_key)

        def services_factory() -> RequestServices:
            return build_request_services(settings, client_factory.create())

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.register_blueprint(create_blueprint(settings, services_factory, workflow_store))

    app.config["HOST"] = settings.flask_host
    app.config["PORT"] = settings.flask_port
    app.config["DEBUG"] = settings.flask_debug
    app.config["COPY_FEEDBACK_MS"] = settings.copy_feedback_ms

    return app
