## routes.py
from __future__ import annotations

from typing import Callable, List, Optional

from flask import (
    Blueprint,
    Response,
    abort,
    current_app,
    g,
    redirect,
    render_template,
    request,
    session,
    url_for,
)

from psp_web.domain.errors import (
    AuthenticationRequired,
    GenerationError,
    MissingResultError,
    PersistenceError,
    SignInError,
)
from psp_web.domain.models import Project
from psp_web.domain.workflow import MODE_MULTI_VARIANT, MODE_SINGLE, WorkflowContext, WorkflowStore
from psp_web.services.brief_form import ENUM_FIELDS, BriefForm
from psp_web.services.presentation import (
    COPY_BLOCKS,
    ResultView,
    beat_blocks,
    compose_copy_block,
    optimization_hint,
    quality_rows,
    variant_options,
)
from psp_web.services.response_normalizer import from_stored_run
from psp_web.services.session_gate import SessionGate

WORKFLOW_SESSION_KEY = "workflow_id"
PUBLIC_ENDPOINTS = {"web.login", "web.reset_password"}

RESET_EMAIL_REQUIRED = "Escribe tu email arriba para enviarte el link de recuperación."
RESET_EMAIL_SENT = "Listo ✅ Te envié un correo para restablecer tu contraseña (revisa spam/promociones)."
LOGIN_FIELDS_REQUIRED = "Escribe tu email y contraseña."


def _safe_int(raw: str | None) -> int | None:
    raw = (raw or "").strip()
    return int(raw) if raw.isdigit() else None


def create_blueprint(settings, services_factory: Callable, workflow_store: WorkflowStore) -> Blueprint:
    bp = Blueprint("web", __name__)

    def workflow() -> WorkflowContext:
        return g.workflow

    def selected_project() -> Optional[Project]:
        project_id = workflow().selected_project_id
        if not project_id:
            return None
        project = g.services.projects.get_project(project_id)
        if project is None:
            workflow().forget_project(project_id)
        return project

    def to_login():
        return redirect(url_for("web.login"))

    @bp.before_request
    def attach_request_state():
        g.services = services_factory()

        if request.endpoint in PUBLIC_ENDPOINTS:
            return None

        g.gate = SessionGate(g.services.auth).open()
        if not g.gate.allowed:
            current_app.logger.info("Anonymous visitor sent to login from %s", request.path)
            return to_login()

        # Only signed-in visitors get a workflow context.
        workflow_id = session.get(WORKFLOW_SESSION_KEY)
        if not workflow_id:
            workflow_id = workflow_store.new_id()
            session[WORKFLOW_SESSION_KEY] = workflow_id
        g.workflow = workflow_store.get(workflow_id)
        return None

    @bp.teardown_request
    def close_gate(_exc):
        gate = g.pop("gate", None)
        if gate is not None:
            gate.close()

    @bp.errorhandler(AuthenticationRequired)
    def handle_auth_required(e):
        current_app.logger.warning("Authentication required: %s", e)
        return to_login()

    # -----------------------------
    # Login
    # -----------------------------
    def render_login(email: str = "", error: str | None = None, notice: str | None = None, code: int = 200):
        return render_template("login.html", email=email, error=error, notice=notice), code

    @bp.route("/login", methods=["GET", "POST"])
    def login():
        if request.method == "GET":
            try:
                signed_in = g.services.auth.get_session() is not None
            except Exception:
                current_app.logger.warning("Session check failed on login page", exc_info=True)
                signed_in = False
            if signed_in:
                return redirect(url_for("web.index"))
            return render_login()

        email = (request.form.get("email") or "").strip()
        password = request.form.get("password") or ""
        if not email or not password:
            return render_login(email, error=LOGIN_FIELDS_REQUIRED, code=400)

        try:
            g.services.auth.sign_in_with_password(email, password)
        except SignInError as e:
            current_app.logger.info("Sign-in rejected for %s", email)
            return render_login(email, error=str(e), code=401)

        current_app.logger.info("Signed in %s", email)
        return redirect(url_for("web.index"))

    @bp.post("/login/reset")
    def reset_password():
        email = (request.form.get("email") or "").strip()
        if not email:
            return render_login(error=RESET_EMAIL_REQUIRED, code=400)

        try:
            g.services.auth.reset_password_for_email(email, settings.reset_redirect_url)
        except SignInError as e:
            current_app.logger.warning("Password reset failed for %s: %s", email, e)
            return render_login(email, error=str(e), code=502)

        return render_login(email, notice=RESET_EMAIL_SENT)

    @bp.post("/logout")
    def logout():
        try:
            g.services.auth.sign_out()
        except Exception:
            current_app.logger.exception("Sign-out failed")
        workflow_id = session.get(WORKFLOW_SESSION_KEY)
        if workflow_id:
            workflow_store.discard(workflow_id)
        session.clear()
        return to_login()

    # -----------------------------
    # Projects
    # -----------------------------
    def render_projects(projects: List[Project], error: str | None = None, code: int = 200):
        return render_template(
            "projects.html",
            projects=projects,
            selected_project_id=workflow().selected_project_id,
            error=error,
        ), code

    @bp.get("/")
    def index():
        try:
            projects = g.services.projects.list_projects()
        except Exception as e:
            current_app.logger.exception("Failed to load projects")
            return render_projects([], error=f"No se pudieron cargar los proyectos: {e}", code=500)

        current_app.logger.info("Projects loaded: %d", len(projects))
        return render_projects(projects)

    @bp.post("/projects")
    def create_project():
        name = request.form.get("name") or ""
        try:
            project = g.services.projects.create_project(name, g.gate.session.user_id)
        except PersistenceError as e:
            current_app.logger.exception("Project creation failed")
            return render_projects(g.services.projects.list_projects(), error=str(e), code=500)

        if project is not None:
            current_app.logger.info("Project created: %s", project.id)
        return redirect(url_for("web.index"))

    @bp.post("/projects/<project_id>/delete")
    def delete_project(project_id: str):
        projects = g.services.projects.list_projects()
        try:
            projects = g.services.project_service.delete_project(projects, project_id, workflow())
        except ValueError:
            abort(404)
        except PersistenceError as e:
            current_app.logger.exception("Project delete failed: %s", project_id)
            return render_projects(projects, error=str(e), code=500)

        current_app.logger.info("Project deleted: %s", project_id)
        return redirect(url_for("web.index"))

    @bp.post("/projects/<project_id>/select")
    def select_project(project_id: str):
        workflow().selected_project_id = project_id
        workflow().clear_generation()
        return redirect(url_for("web.create"))

    @bp.get("/projects/<project_id>/history")
    def project_history(project_id: str):
        workflow().selected_project_id = project_id
        return redirect(url_for("web.history"))

    # -----------------------------
    # Brief -> hooks -> result
    # -----------------------------
    def render_create(project: Project, form: BriefForm, error: str | None = None, code: int = 200):
        return render_template(
            "create.html",
            project=project,
            form=form.values,
            options=ENUM_FIELDS,
            variants=settings.variants,
            error=error,
        ), code

    def generation_failed(e: GenerationError) -> str:
        if isinstance(e, MissingResultError):
            current_app.logger.error("%s returned no %s", e.function_name, e.field)
        else:
            current_app.logger.exception("Generation failed (%s)", e.function_name)
        return f"Error generando contenido: {e}"

    @bp.route("/create", methods=["GET", "POST"])
    def create():
        project = selected_project()
        if project is None:
            return redirect(url_for("web.index"))

        if request.method == "GET":
            brief = workflow().brief
            form = BriefForm.from_brief(brief) if brief else BriefForm({"niche": project.default_niche})
            return render_create(project, form)

        form = BriefForm(request.form)
        flow = (request.form.get("flow") or "hooks").strip()
        generation = g.services.generation

        try:
            if flow == "knowledge_pack":
                variants = _safe_int(request.form.get("variants")) or settings.variants
                records = generation.generate_knowledge_pack(project, form, variants)
                workflow().clear_generation()
                workflow().brief = form.to_brief()
                workflow().store_results(records, MODE_MULTI_VARIANT if len(records) > 1 else MODE_SINGLE)
                current_app.logger.info("Knowledge pack generated: %d variant(s)", len(records))
                return redirect(url_for("web.result"))

            brief, hooks = generation.suggest_hooks(project, form)
        except ValueError as e:
            return render_create(project, form, error=str(e), code=400)
        except GenerationError as e:
            return render_create(project, form, error=generation_failed(e), code=502)

        workflow().clear_generation()
        workflow().store_hooks(brief, hooks)
        current_app.logger.info("Hooks suggested: %d", len(hooks))
        return redirect(url_for("web.hooks"))

    @bp.route("/hooks", methods=["GET", "POST"])
    def hooks():
        project = selected_project()
        if project is None:
            return redirect(url_for("web.index"))
        if not workflow().suggested_hooks or workflow().brief is None:
            return redirect(url_for("web.create"))

        selected = (request.form.get("hook_code") or "").strip()

        def render_hooks(error: str | None = None, code: int = 200):
            return render_template(
                "hooks.html",
                project=project,
                brief=workflow().brief,
                hooks=workflow().suggested_hooks,
                selected=selected,
                error=error,
            ), code

        if request.method == "GET":
            return render_hooks()

        try:
            records = g.services.generation.generate_from_hook(project, workflow().brief, selected)
        except ValueError as e:
            return render_hooks(error=str(e), code=400)
        except GenerationError as e:
            return render_hooks(error=generation_failed(e), code=502)

        workflow().store_results(records, MODE_SINGLE)
        current_app.logger.info("Script generated from hook %s", selected)
        return redirect(url_for("web.result"))

    @bp.get("/result")
    def result():
        results = workflow().results
        if not results:
            return redirect(url_for("web.create"))

        view = ResultView.from_args(request.args, len(results))
        record = results[view.variant]
        multi = workflow().generation_mode == MODE_MULTI_VARIANT and len(results) > 1

        return render_template(
            "result.html",
            record=record,
            view=view,
            beats=beat_blocks(record),
            quality=quality_rows(record),
            hint=optimization_hint(record),
            variants=variant_options(results) if multi else [],
            copy_blocks=COPY_BLOCKS,
            copy_feedback_ms=current_app.config.get("COPY_FEEDBACK_MS", 1200),
        )

    @bp.get("/result/copy/<block>")
    def copy_block(block: str):
        results = workflow().results
        if not results or block not in COPY_BLOCKS:
            abort(404)

        view = ResultView.from_args(request.args, len(results))
        text = compose_copy_block(results[view.variant], block)
        return Response(text, mimetype="text/plain")

    # -----------------------------
    # History
    # -----------------------------
    def render_history(project: Project, runs, error: str | None = None, code: int = 200):
        return render_template("history.html", project=project, runs=runs, error=error), code

    @bp.get("/history")
    def history():
        project = selected_project()
        if project is None:
            return redirect(url_for("web.index"))

        try:
            runs = g.services.runs.list_runs(project.id)
        except Exception as e:
            current_app.logger.exception("Failed to load history for %s", project.id)
            return render_history(project, [], error=f"No se pudo cargar el historial: {e}", code=500)

        return render_history(project, runs)

    @bp.get("/history/<run_id>")
    def history_view(run_id: str):
        project = selected_project()
        if project is None:
            return redirect(url_for("web.index"))

        run = g.services.runs.get_run(project.id, run_id)
        if run is None:
            abort(404)

        workflow().clear_generation()
        workflow().store_results([from_stored_run(run.row)], MODE_SINGLE)
        return redirect(url_for("web.result"))

    @bp.post("/history/<run_id>/delete")
    def history_delete(run_id: str):
        project = selected_project()
        if project is None:
            return redirect(url_for("web.index"))

        runs = g.services.runs.list_runs(project.id)
        try:
            g.services.project_service.delete_run(runs, run_id)
        except PersistenceError as e:
            current_app.logger.exception("Run delete failed: %s", run_id)
            return render_history(project, runs, error=str(e), code=500)

        current_app.logger.info("Run deleted: %s", run_id)
        return redirect(url_for("web.history"))

    return bp
