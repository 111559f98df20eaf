from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from psp_web.domain.duration import DurationSpec, duration_spec
from psp_web.domain.models import (
    QUALITY_MAXIMA,
    AbVariants,
    HookBeat,
    ProblemBeat,
    ProductionPack,
    ProofCtaBeat,
    QualityBreakdown,
    ScriptPsp,
    ScriptRecord,
    SelectedHook,
    SeoPack,
    SolutionBeat,
)
from psp_web.services.script_parser import DEFAULT_CTA, PLACEHOLDERS, parse_legacy_markdown

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "—"
KNOWLEDGE_PACK_MODEL = "Knowledge Pack"

CUT_RHYTHMS = {
    "7-15": "Cortes rápidos cada 1-2s",
    "30-60": "Cortes cada 2-3s con cambio de plano en cada bloque",
    "60+": "Cortes cada 3-4s, respiro visual en la solución",
}
VISUAL_STYLES = {
    "talking_head": "Talking head a cámara, plano medio, luz natural",
    "voz_en_off": "Voz en off sobre B-roll y texto en pantalla",
    "tutorial": "Tutorial paso a paso con primeros planos",
    "storytelling": "Storytelling con planos narrativos",
    "ugc": "Estilo UGC grabado con móvil",
}
VISUAL_ACTIONS = {
    "talking_head": "Mirada directa a cámara con texto del hook en pantalla",
    "voz_en_off": "Plano de impacto con el hook como texto grande",
    "tutorial": "Mostrar el resultado final antes del paso a paso",
    "storytelling": "Abrir en medio de la escena",
    "ugc": "Selfie en movimiento hablando a cámara",
}
DEFAULT_VISUAL_STYLE = "Video vertical 9:16"
DEFAULT_VISUAL_ACTION = "Pattern interrupt visual en el primer segundo"
SCREEN_TEXT_CHARS = 40

# Legacy evaluations score different dimensions; this maps them onto the
# five-dimension breakdown.
LEGACY_DIMENSIONS = {
    "hook_strength": ("hook_strength",),
    "psp_structure": ("psp_structure",),
    "objective_alignment": ("shareability",),
    "seo_compliance": ("seo_compliance",),
    "compliance": ("voice_score", "egremy_voice"),
}


@dataclass(frozen=True)
class StructuredResponse:
    payload: Mapping[str, Any]


@dataclass(frozen=True)
class LegacyResponse:
    payload: Mapping[str, Any]
    markdown: str
    evaluation: Mapping[str, Any]


GenerationResponse = Union[StructuredResponse, LegacyResponse]


def classify(response: Mapping[str, Any]) -> GenerationResponse:
    script = response.get("script_psp")
    if isinstance(script, Mapping) and script:
        return StructuredResponse(payload=response)

    final = response.get("final") or {}
    markdown = final.get("script") or response.get("script") or ""
    evaluation = final.get("evaluation") or {}
    return LegacyResponse(payload=response, markdown=str(markdown), evaluation=evaluation)


def has_script(response: Mapping[str, Any]) -> bool:
    """False when the response carries neither script fields nor a markdown script."""
    if not isinstance(response, Mapping):
        return False
    shape = classify(response)
    return isinstance(shape, StructuredResponse) or bool(shape.markdown.strip())


def variant_candidates(response: Union[Mapping[str, Any], List[Mapping[str, Any]]]) -> List[Mapping[str, Any]]:
    if isinstance(response, list):
        return list(response)
    if isinstance(response.get("variants"), list):
        return list(response["variants"])
    return [response]


def _build(cls, raw: Optional[Mapping[str, Any]], **defaults):
    """Keeps the keys `cls` knows about; defaults fill in only what is missing or empty."""
    raw = raw or {}
    names = {f.name for f in fields(cls)}
    values = {k: v for k, v in raw.items() if k in names}
    for key, value in defaults.items():
        if values.get(key) in (None, ""):
            values[key] = value
    return cls(**values)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        return None


def _script_from_fields(
    raw: Mapping[str, Any],
    time_for: Callable[[str], str],
    text_for: Callable[[str], str],
) -> ScriptPsp:
    return ScriptPsp(
        hook=_build(HookBeat, raw.get("hook"), time=time_for("hook"), text=text_for("hook")),
        problem=_build(ProblemBeat, raw.get("problem"), time=time_for("problem"), text=text_for("problem")),
        solution=_build(SolutionBeat, raw.get("solution"), time=time_for("solution"), text=text_for("solution")),
        proof_cta=_build(
            ProofCtaBeat,
            raw.get("proof_cta"),
            time=time_for("proof_cta"),
            proof=text_for("proof"),
            cta=text_for("cta"),
        ),
    )


def _selected_hook(payload: Mapping[str, Any], script: ScriptPsp) -> SelectedHook:
    hook = payload.get("hook")
    if isinstance(hook, Mapping):
        return _build(SelectedHook, hook, code=NOT_AVAILABLE, text=script.hook.text, category=NOT_AVAILABLE)

    selection = payload.get("hook_selection") or {}
    return SelectedHook(
        code=selection.get("selected_hook_id") or NOT_AVAILABLE,
        text=selection.get("adapted_hook") or selection.get("original_hook") or script.hook.text,
        category=payload.get("forced_hook_category") or NOT_AVAILABLE,
    )


def _version(payload: Mapping[str, Any], default: Optional[str]) -> Optional[str]:
    config_used = payload.get("config_used") or {}
    return payload.get("version") or config_used.get("version") or default


def _structured_record(
    payload: Mapping[str, Any],
    time_for: Callable[[str], str],
    text_for: Callable[[str], str],
    *,
    model_default: str,
) -> ScriptRecord:
    script = _script_from_fields(payload.get("script_psp") or {}, time_for, text_for)

    production_raw = payload.get("production_pack") or {"screen_text": [], "cut_rhythm": NOT_AVAILABLE, "visual_style": NOT_AVAILABLE}
    seo_raw = payload.get("seo_pack") or {"audio_keywords": [], "caption": NOT_AVAILABLE, "hashtags": [], "alt_text": NOT_AVAILABLE}
    breakdown_raw = payload.get("quality_breakdown")
    ab_raw = payload.get("ab_test_variants")

    return ScriptRecord(
        run_id=str(payload.get("run_id") or payload.get("id") or ""),
        ai_model_used=payload.get("ai_model_used") or model_default,
        risk_level_applied=payload.get("risk_level_applied") or NOT_AVAILABLE,
        hook=_selected_hook(payload, script),
        script_psp=script,
        production_pack=_build(
            ProductionPack, production_raw, screen_text=[], cut_rhythm=NOT_AVAILABLE, visual_style=NOT_AVAILABLE
        ),
        seo_pack=_build(SeoPack, seo_raw, hashtags=[], alt_text=NOT_AVAILABLE),
        version=_version(payload, None),
        quality_score=payload.get("quality_score"),
        quality_passed=payload.get("quality_passed"),
        quality_breakdown=_build(QualityBreakdown, breakdown_raw) if isinstance(breakdown_raw, Mapping) else None,
        rewrites_performed=payload.get("rewrites_performed"),
        objective_pilar=payload.get("objective_pilar"),
        tono=payload.get("tono"),
        advanced_optimizations=list(payload.get("advanced_optimizations") or []),
        ab_test_variants=_build(AbVariants, ab_raw) if isinstance(ab_raw, Mapping) else None,
    )


def _legacy_breakdown(evaluation: Mapping[str, Any]) -> Optional[QualityBreakdown]:
    if not evaluation:
        return None
    values: Dict[str, int] = {}
    for dimension, sources in LEGACY_DIMENSIONS.items():
        score = next((_optional_int(evaluation.get(s)) for s in sources if evaluation.get(s) is not None), None)
        values[dimension] = max(0, min(score or 0, QUALITY_MAXIMA[dimension]))
    return QualityBreakdown(**values)


def _legacy_record(legacy: LegacyResponse, spec: DurationSpec, duration: str, formato_video: str, domain: str) -> ScriptRecord:
    payload = legacy.payload
    parsed = parse_legacy_markdown(legacy.markdown)
    if parsed.missing:
        logger.info("Legacy script missing sections %s; placeholders used", ", ".join(parsed.missing))

    # Time windows come from the duration only; markers inside the markdown are not trusted.
    script = ScriptPsp(
        hook=HookBeat(
            time=spec.hook,
            text=parsed.hook,
            visual_action=VISUAL_ACTIONS.get(formato_video, DEFAULT_VISUAL_ACTION),
        ),
        problem=ProblemBeat(time=spec.problem, text=parsed.problem),
        solution=SolutionBeat(time=spec.solution, text=parsed.solution),
        proof_cta=ProofCtaBeat(time=spec.proof_cta, proof=parsed.proof, cta=parsed.cta),
    )

    evaluation = legacy.evaluation
    score = _optional_int(evaluation.get("total"))
    min_score = _optional_int((payload.get("config_used") or {}).get("min_score"))
    final = payload.get("final") or {}

    return ScriptRecord(
        run_id=str(payload.get("run_id") or ""),
        ai_model_used=f"{KNOWLEDGE_PACK_MODEL} · {domain}" if domain else KNOWLEDGE_PACK_MODEL,
        risk_level_applied=payload.get("mode") or NOT_AVAILABLE,
        hook=_selected_hook(payload, script),
        script_psp=script,
        production_pack=ProductionPack(
            screen_text=[parsed.hook[:SCREEN_TEXT_CHARS]],
            cut_rhythm=CUT_RHYTHMS.get(duration, CUT_RHYTHMS["30-60"]),
            visual_style=VISUAL_STYLES.get(formato_video, DEFAULT_VISUAL_STYLE),
            b_roll_suggestions=[],
        ),
        seo_pack=SeoPack(
            hashtags=list(parsed.seo.hashtags),
            alt_text=parsed.seo.alt_text,
            caption=parsed.seo.caption,
            spoken_keywords=list(parsed.seo.keywords),
        ),
        version=_version(payload, "legacy"),
        quality_score=score,
        quality_passed=(score >= min_score) if (score is not None and min_score is not None) else None,
        quality_breakdown=_legacy_breakdown(evaluation),
        rewrites_performed=_optional_int(final.get("rewrite_count")),
        objective_pilar=payload.get("objective_pilar"),
        advanced_optimizations=[str(n) for n in (evaluation.get("notes") or [])],
    )


def normalize(
    response: Mapping[str, Any],
    duration: str,
    formato_video: str = "",
    domain: str = "",
) -> ScriptRecord:
    spec = duration_spec(duration)
    shape = classify(response)

    if isinstance(shape, StructuredResponse):
        # Structured fields are trusted; only absent fields get defaults.
        def text_for(beat: str) -> str:
            return PLACEHOLDERS.get(beat, DEFAULT_CTA)

        return _structured_record(shape.payload, spec.window_for, text_for, model_default=KNOWLEDGE_PACK_MODEL)

    return _legacy_record(shape, spec, duration, formato_video, domain)


def normalize_variants(
    response: Union[Mapping[str, Any], List[Mapping[str, Any]]],
    duration: str,
    formato_video: str = "",
    domain: str = "",
) -> List[ScriptRecord]:
    """One record per candidate, in the order received (no re-sorting by score)."""
    return [normalize(c, duration, formato_video, domain) for c in variant_candidates(response)]


def from_stored_run(row: Mapping[str, Any]) -> ScriptRecord:
    """
    Rebuilds a displayable record from a se_content_runs row. Rows written
    before a field existed get "—" or empty lists instead of missing values.
    """
    payload = dict(row)
    payload["run_id"] = row.get("id") or ""
    if not isinstance(row.get("hook"), Mapping):
        script_hook = (row.get("script_psp") or {}).get("hook") or {}
        payload["hook"] = {
            "code": row.get("selected_hook_code") or NOT_AVAILABLE,
            "text": script_hook.get("text") or "",
            "category": NOT_AVAILABLE,
        }

    return _structured_record(
        payload,
        lambda beat: NOT_AVAILABLE,
        lambda beat: NOT_AVAILABLE,
        model_default=NOT_AVAILABLE,
    )
