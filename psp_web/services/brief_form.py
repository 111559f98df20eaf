from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Mapping, Optional, Tuple

from psp_web.domain.duration import duration_spec
from psp_web.domain.errors import BriefValidationError
from psp_web.domain.models import (
    AWARENESS_LEVELS,
    CTA_DESTINATIONS,
    DURATIONS,
    LANGUAGES,
    OBJECTIVE_PILARS,
    OBJECTIVES,
    PLATFORMS,
    RISK_LEVELS,
    TONES,
    VIDEO_FORMATS,
    Brief,
)

REQUIRED_FIELDS = ("niche", "pillar")
REQUIRED_MESSAGE = "Por favor completa Nicho y Pilar"

ENUM_FIELDS: Dict[str, Tuple[str, ...]] = {
    "objective": OBJECTIVES,
    "objective_pilar": OBJECTIVE_PILARS,
    "awareness": AWARENESS_LEVELS,
    "duration": DURATIONS,
    "platform": PLATFORMS,
    "language": LANGUAGES,
    "cta_dest": CTA_DESTINATIONS,
    "risk_level": RISK_LEVELS,
    "tono": TONES,
    "formato_video": VIDEO_FORMATS,
}

REQUEST_VERSIONS = ("legacy", "v2")
BRIEF_ENVELOPE_VERSION = "brief_v2"
ALLOWED_VARIANTS = (1, 3)

# Field grouping of the versioned envelope.
ENVELOPE_GROUPS: Dict[str, Tuple[str, ...]] = {
    "content": ("niche", "pillar", "tono", "language"),
    "objective": ("objective", "objective_pilar", "awareness", "cta_dest", "risk_level"),
    "format": ("duration", "platform", "formato_video"),
}


def serialize_brief(brief: Brief, version: str = "legacy", *, project_id: Optional[str] = None) -> Dict[str, Any]:
    """
    legacy -> the brief fields flat at the top level
    v2     -> fields grouped under content / objective / format plus a version tag
    """
    if version not in REQUEST_VERSIONS:
        raise ValueError(f"Unknown request version: {version!r}")

    flat = brief.as_flat_dict()
    if version == "legacy":
        return {"project_id": project_id, **flat}

    return {
        "project_id": project_id,
        "version": BRIEF_ENVELOPE_VERSION,
        "brief": {group: {k: flat[k] for k in keys} for group, keys in ENVELOPE_GROUPS.items()},
    }


def knowledge_pack_payload(
    brief: Brief,
    *,
    project_id: Optional[str],
    mode: str,
    brand_domain: str,
    variants: int = 1,
) -> Dict[str, Any]:
    if variants not in ALLOWED_VARIANTS:
        raise ValueError(f"variants must be one of {ALLOWED_VARIANTS}, got {variants!r}")

    return {
        "project_id": project_id,
        "topic": brief.pillar,
        "platform": brief.platform,
        "duration_sec": duration_spec(brief.duration).total_seconds,
        "audience": brief.niche,
        "mode": mode,
        "brand_domain": brand_domain,
        "variants": variants,
        **brief.as_flat_dict(),
    }


class BriefForm:
    """
    Flat, mutable state behind the create page. Text fields are trimmed;
    choice fields only accept their listed values and otherwise keep the
    previous one.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, str] = asdict(Brief(niche="", pillar=""))
        if values:
            self.update(values)

    @classmethod
    def from_brief(cls, brief: Brief) -> "BriefForm":
        return cls(brief.as_flat_dict())

    def update(self, values: Mapping[str, Any]) -> None:
        for key, raw in values.items():
            if key not in self._values:
                continue
            value = str(raw or "").strip()
            allowed = ENUM_FIELDS.get(key)
            if allowed is not None and value not in allowed:
                continue
            self._values[key] = value

    def get(self, key: str) -> str:
        return self._values[key]

    @property
    def values(self) -> Dict[str, str]:
        return dict(self._values)

    def missing_fields(self) -> Tuple[str, ...]:
        return tuple(f for f in REQUIRED_FIELDS if not self._values[f])

    def validate(self) -> bool:
        return not self.missing_fields()

    def require_valid(self) -> None:
        missing = self.missing_fields()
        if missing:
            raise BriefValidationError(REQUIRED_MESSAGE, missing)

    def to_brief(self) -> Brief:
        self.require_valid()
        return Brief(**self._values)

    def serialize(self, version: str = "legacy", *, project_id: Optional[str] = None) -> Dict[str, Any]:
        return serialize_brief(self.to_brief(), version, project_id=project_id)
