from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple

from psp_web.adapters.generation_client import GenerationClient
from psp_web.domain.errors import BriefValidationError, MissingResultError
from psp_web.domain.models import Brief, HookOption, Project, ScriptRecord
from psp_web.repositories.project_repository import ProjectRepository
from psp_web.services.brief_form import BriefForm, knowledge_pack_payload, serialize_brief
from psp_web.services.response_normalizer import has_script, normalize, normalize_variants, variant_candidates

logger = logging.getLogger(__name__)


def _hook_option(raw: Mapping[str, Any]) -> HookOption:
    return HookOption(
        code=str(raw.get("code", "")),
        text=str(raw.get("text", "")),
        category=str(raw.get("category", "") or ""),
        tip=str(raw.get("tip", "") or ""),
        why=str(raw.get("why", "") or ""),
    )


@dataclass
class GenerationService:
    """
    Service layer: brief -> generation function -> canonical records.
    Keeps controllers/routes thin.
    """
    generation_client: GenerationClient
    project_repo: ProjectRepository
    hooks_function: str = "generate-content"
    knowledge_pack_function: str = "generate-psp-script"
    request_version: str = "legacy"
    mode: str = "ESTRATEGICO"
    brand_domain: str = "general"

    def suggest_hooks(self, project: Project, form: BriefForm) -> Tuple[Brief, List[HookOption]]:
        brief = form.to_brief()
        body = serialize_brief(brief, self.request_version, project_id=project.id)

        result = self.generation_client.invoke(self.hooks_function, body, required=("suggested_hooks",))
        hooks = [_hook_option(h) for h in result["suggested_hooks"]]

        self._save_default_niche(project, brief.niche)
        return brief, hooks

    def generate_from_hook(self, project: Project, brief: Brief, hook_code: str) -> List[ScriptRecord]:
        hook_code = (hook_code or "").strip()
        if not hook_code:
            raise BriefValidationError("Selecciona un hook primero", ("selected_hook_code",))

        body = serialize_brief(brief, self.request_version, project_id=project.id)
        body["selected_hook_code"] = hook_code

        result = self.generation_client.invoke(self.hooks_function, body)
        self._require_script(self.hooks_function, result, [result])
        return [normalize(result, brief.duration, brief.formato_video, self.brand_domain)]

    def generate_knowledge_pack(self, project: Project, form: BriefForm, variants: int = 1) -> List[ScriptRecord]:
        brief = form.to_brief()
        body = knowledge_pack_payload(
            brief,
            project_id=project.id,
            mode=self.mode,
            brand_domain=self.brand_domain,
            variants=variants,
        )

        result = self.generation_client.invoke(self.knowledge_pack_function, body)
        candidates = variant_candidates(result)
        if not candidates:
            logger.error("%s answered without variants: %r", self.knowledge_pack_function, result)
            raise MissingResultError(
                "No se recibieron variantes.",
                function_name=self.knowledge_pack_function,
                field="variants",
                payload=result,
            )
        self._require_script(self.knowledge_pack_function, result, candidates)
        records = normalize_variants(candidates, brief.duration, brief.formato_video, self.brand_domain)

        self._save_default_niche(project, brief.niche)
        return records

    def _require_script(self, function_name: str, result: Any, candidates: List[Any]) -> None:
        # A 2xx answer with no script at all is not a result; placeholders are only for gaps inside one.
        for index, candidate in enumerate(candidates):
            if not has_script(candidate):
                logger.error("%s returned no script (candidate %d): %r", function_name, index, result)
                raise MissingResultError(
                    "La respuesta no incluye un guion.",
                    function_name=function_name,
                    field="script_psp",
                    payload=result,
                )

    def _save_default_niche(self, project: Project, niche: str) -> None:
        # Best effort, after the generation succeeded: never blocks or undoes it.
        if not niche or niche == project.default_niche:
            return
        try:
            self.project_repo.update_default_niche(project.id, niche)
        except Exception:
            logger.exception("Could not save default niche for project %s", project.id)
