######## models.py
########

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

OBJECTIVES = ("Leads", "Reach", "Sends", "Saves", "Authority")
OBJECTIVE_PILARS = ("watch_time", "sends", "seo", "saves", "authority")
AWARENESS_LEVELS = ("Frio", "Tibio", "Caliente")
DURATIONS = ("7-15", "30-60", "60+")
PLATFORMS = ("IG", "TT", "BOTH")
LANGUAGES = ("ES", "EN")
CTA_DESTINATIONS = ("DM", "WhatsApp", "Link", "Comentar", "Seguir")
RISK_LEVELS = ("bajo", "medio", "alto")
TONES = ("cercano", "profesional", "inspirador", "directo", "divertido")
VIDEO_FORMATS = ("talking_head", "voz_en_off", "tutorial", "storytelling", "ugc")

# Maximum points per quality dimension (total 100).
QUALITY_MAXIMA: Dict[str, int] = {
    "hook_strength": 25,
    "psp_structure": 25,
    "objective_alignment": 20,
    "seo_compliance": 20,
    "compliance": 10,
}


def _drop_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_none(v) for v in value]
    return value


@dataclass(frozen=True)
class Brief:
    niche: str
    pillar: str
    objective: str = "Leads"
    objective_pilar: str = "watch_time"
    awareness: str = "Tibio"
    duration: str = "30-60"
    platform: str = "IG"
    language: str = "ES"
    cta_dest: str = "DM"
    risk_level: str = "medio"
    tono: str = "cercano"
    formato_video: str = "talking_head"

    def as_flat_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class HookOption:
    code: str
    text: str
    category: str = ""
    tip: str = ""
    why: str = ""


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    default_niche: str = ""
    run_count: int = 0


@dataclass(frozen=True)
class ContentRun:
    """One stored generation (row of se_content_runs) as listed in history."""
    id: str
    created_at: str
    niche: str
    pillar: str
    objective: str
    platform: str
    selected_hook_code: str
    row: Dict[str, Any] = field(default_factory=dict)


# -----------------------------
# Canonical script record
# -----------------------------
@dataclass(frozen=True)
class QualityBreakdown:
    hook_strength: int = 0
    psp_structure: int = 0
    objective_alignment: int = 0
    seo_compliance: int = 0
    compliance: int = 0

    def items(self) -> List[Tuple[str, int, int]]:
        """(dimension, score, max) in display order."""
        return [(name, getattr(self, name), mx) for name, mx in QUALITY_MAXIMA.items()]


@dataclass(frozen=True)
class SelectedHook:
    code: str
    text: str
    category: str


@dataclass(frozen=True)
class HookBeat:
    time: str
    text: str
    visual_action: str = ""
    pattern_interrupt: Optional[str] = None
    hook_type: Optional[str] = None


@dataclass(frozen=True)
class ProblemBeat:
    time: str
    text: str
    validation: str = ""
    emotion: Optional[str] = None


@dataclass(frozen=True)
class SolutionBeat:
    time: str
    text: str
    key_insight: Optional[str] = None
    analogy: Optional[str] = None
    visual_demo: Optional[str] = None


@dataclass(frozen=True)
class ProofCtaBeat:
    time: str
    proof: str
    cta: str
    urgency_element: Optional[str] = None
    keyword_trigger: Optional[str] = None


@dataclass(frozen=True)
class ScriptPsp:
    hook: HookBeat
    problem: ProblemBeat
    solution: SolutionBeat
    proof_cta: ProofCtaBeat


@dataclass(frozen=True)
class ProductionPack:
    # v4 sends a list, v6 an object with top_safe / center_main / bottom_cta
    screen_text: Union[List[str], Dict[str, str]]
    cut_rhythm: str
    visual_style: str
    b_roll_suggestions: Optional[List[str]] = None
    b_roll: Optional[List[str]] = None
    music_mood: Optional[str] = None

    @property
    def screen_text_lines(self) -> List[str]:
        if not self.screen_text:
            return []
        if isinstance(self.screen_text, list):
            return list(self.screen_text)
        lines = []
        if self.screen_text.get("top_safe"):
            lines.append(f"[TOP] {self.screen_text['top_safe']}")
        if self.screen_text.get("center_main"):
            lines.append(f"[CENTER] {self.screen_text['center_main']}")
        if self.screen_text.get("bottom_cta"):
            lines.append(f"[BOTTOM] {self.screen_text['bottom_cta']}")
        return lines

    @property
    def b_roll_items(self) -> List[str]:
        return list(self.b_roll or self.b_roll_suggestions or [])


@dataclass(frozen=True)
class SeoPack:
    hashtags: List[str]
    alt_text: str
    caption: Optional[str] = None
    caption_frontloaded: Optional[str] = None
    spoken_keywords: Optional[List[str]] = None
    audio_keywords: Optional[List[str]] = None
    best_posting_time: Optional[str] = None

    @property
    def display_caption(self) -> str:
        return self.caption_frontloaded or self.caption or ""

    @property
    def keywords(self) -> List[str]:
        if self.spoken_keywords is not None:
            return list(self.spoken_keywords)
        return list(self.audio_keywords or [])


@dataclass(frozen=True)
class AbVariants:
    hook_variant: Optional[str] = None
    hook_b: Optional[str] = None
    cta_variant: Optional[str] = None
    cta_b: Optional[str] = None

    @property
    def hook(self) -> Optional[str]:
        return self.hook_variant or self.hook_b or None

    @property
    def cta(self) -> Optional[str]:
        return self.cta_variant or self.cta_b or None


@dataclass(frozen=True)
class ScriptRecord:
    """
    Normalized generation result. Every display component reads this and only
    this; required fields are always populated (placeholders when unknown).
    """
    run_id: str
    ai_model_used: str
    risk_level_applied: str
    hook: SelectedHook
    script_psp: ScriptPsp
    production_pack: ProductionPack
    seo_pack: SeoPack
    version: Optional[str] = None
    quality_score: Optional[int] = None
    quality_passed: Optional[bool] = None
    quality_breakdown: Optional[QualityBreakdown] = None
    rewrites_performed: Optional[int] = None
    objective_pilar: Optional[str] = None
    tono: Optional[str] = None
    advanced_optimizations: List[str] = field(default_factory=list)
    ab_test_variants: Optional[AbVariants] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(asdict(self))
