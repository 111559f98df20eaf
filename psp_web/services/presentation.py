"""
Result page state and the text blocks offered for copying.

The result page is a small state machine: tab x view mode x variant. Every
transition returns a new ResultView; nothing here has side effects.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Tuple

from psp_web.domain.models import QUALITY_MAXIMA, QualityBreakdown, ScriptRecord

TABS = ("script", "production", "seo")
VIEW_MODES = ("team", "client")

BEAT_LABELS: Dict[str, str] = {
    "hook": "Hook",
    "problem": "Problema",
    "solution": "Solución",
    "proof_cta": "Prueba + CTA",
}

COPY_BLOCKS = ("script", "caption", "hashtags", "screen_text") + tuple(BEAT_LABELS)

OPTIMIZATION_HINTS: Dict[str, str] = {
    "hook_strength": "el hook podría ser más disruptivo con un pattern interrupt visual más fuerte en 0–1.7s.",
    "psp_structure": "refuerza la emoción en el bloque Problema (dolor específico + validación humana).",
    "objective_alignment": "el CTA podría reforzar mejor el objetivo (ej. pedir envío por DM si buscas Sends).",
    "seo_compliance": "agrega 1–2 keywords habladas en el audio y refuérzalas con texto en pantalla (safe zones).",
    "compliance": "revisa que no haya engagement bait o claims sensibles innecesarios.",
}

HOOK_PREVIEW_CHARS = 45


@dataclass(frozen=True)
class ResultView:
    tab: str = "script"
    mode: str = "team"
    variant: int = 0

    @classmethod
    def from_args(cls, args: Mapping[str, str], variant_count: int) -> "ResultView":
        view = cls()
        view = view.select_tab(args.get("tab", view.tab))
        view = view.select_mode(args.get("mode", view.mode))
        raw_variant = (args.get("variant") or "").strip()
        if raw_variant.isdigit():
            view = view.select_variant(int(raw_variant), variant_count)
        return view

    def select_tab(self, tab: str) -> "ResultView":
        return replace(self, tab=tab) if tab in TABS else self

    def select_mode(self, mode: str) -> "ResultView":
        return replace(self, mode=mode) if mode in VIEW_MODES else self

    def select_variant(self, index: int, variant_count: int) -> "ResultView":
        return replace(self, variant=index) if 0 <= index < variant_count else self

    @property
    def is_team(self) -> bool:
        return self.mode == "team"

    def as_args(self, **overrides) -> Dict[str, object]:
        args = {"tab": self.tab, "mode": self.mode, "variant": self.variant}
        args.update(overrides)
        return args


def beat_blocks(record: ScriptRecord) -> List[Tuple[str, str, str, str]]:
    """(label, time, text, visual note) for each beat, in script order."""
    s = record.script_psp
    return [
        (BEAT_LABELS["hook"], s.hook.time, s.hook.text, s.hook.visual_action or ""),
        (BEAT_LABELS["problem"], s.problem.time, s.problem.text, s.problem.validation or ""),
        (BEAT_LABELS["solution"], s.solution.time, s.solution.text, s.solution.visual_demo or s.solution.key_insight or ""),
        (
            BEAT_LABELS["proof_cta"],
            s.proof_cta.time,
            f"Prueba: {s.proof_cta.proof}\nCTA: {s.proof_cta.cta}",
            s.proof_cta.urgency_element or "",
        ),
    ]


def compose_full_script(record: ScriptRecord) -> str:
    blocks = []
    for label, time, text, extra in beat_blocks(record):
        block = f"[{time}] {label}:\n{text}"
        if extra:
            block += f"\n\nVisual/nota: {extra}"
        blocks.append(block)

    seo = record.seo_pack
    return (
        "🎬 GUION EN BLOQUES (para grabar)\n\n"
        + "\n\n---\n\n".join(blocks)
        + "\n\n---\n\n"
        + f"📝 CAPTION:\n{seo.display_caption}\n\n"
        + f"#️⃣ HASHTAGS:\n{' '.join(seo.hashtags)}\n\n"
        + f"🔎 ALT TEXT:\n{seo.alt_text}"
    )


def compose_copy_block(record: ScriptRecord, block: str) -> str:
    s = record.script_psp
    if block == "script":
        return compose_full_script(record)
    if block == "caption":
        return record.seo_pack.display_caption
    if block == "hashtags":
        return " ".join(record.seo_pack.hashtags)
    if block == "screen_text":
        return "\n".join(record.production_pack.screen_text_lines)
    if block == "hook":
        return s.hook.text
    if block == "problem":
        return s.problem.text
    if block == "solution":
        return s.solution.text
    if block == "proof_cta":
        return f"{s.proof_cta.proof} {s.proof_cta.cta}"
    raise ValueError(f"Unknown copy block: {block!r}")


def weakest_dimension(breakdown: Optional[QualityBreakdown]) -> Optional[Tuple[str, int, int, float]]:
    """(dimension, score, max, ratio) of the lowest-scoring dimension relative to its max."""
    if breakdown is None:
        return None
    weakest = None
    for dimension, score, mx in breakdown.items():
        ratio = (score or 0) / mx
        if weakest is None or ratio < weakest[3]:
            weakest = (dimension, score, mx, ratio)
    return weakest


def optimization_hint(record: ScriptRecord) -> Optional[str]:
    if record.quality_score is None or record.quality_score >= 100:
        return None
    weakest = weakest_dimension(record.quality_breakdown)
    if weakest is None:
        return None
    dimension, _score, _mx, ratio = weakest
    area = dimension.replace("_", " ")
    return f"Optimizable: {OPTIMIZATION_HINTS[dimension]} (Área: {area} {round(ratio * 100)}%)"


def variant_options(records: List[ScriptRecord]) -> List[Dict[str, object]]:
    options = []
    for index, record in enumerate(records):
        preview = (record.script_psp.hook.text or "")[:HOOK_PREVIEW_CHARS] or "Variante"
        options.append({
            "index": index,
            "label": f"Variante {index + 1}",
            "score": record.quality_score or 0,
            "preview": preview,
        })
    return options


def quality_rows(record: ScriptRecord) -> List[Tuple[str, int, int]]:
    if record.quality_breakdown is None:
        return []
    return [(name.replace("_", " "), score, QUALITY_MAXIMA[name]) for name, score, _ in record.quality_breakdown.items()]
