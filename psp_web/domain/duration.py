from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class DurationSpec:
    """Time windows for the four beats of a script of a given duration."""
    hook: str
    problem: str
    solution: str
    proof_cta: str
    total_seconds: int

    def window_for(self, beat: str) -> str:
        return getattr(self, beat)


DEFAULT_DURATION = "30-60"

DURATION_SPECS: Dict[str, DurationSpec] = {
    "7-15": DurationSpec(hook="0-3s", problem="3-8s", solution="8-12s", proof_cta="12-15s", total_seconds=15),
    "30-60": DurationSpec(hook="0-3s", problem="3-8s", solution="8-35s", proof_cta="35-45s", total_seconds=45),
    "60+": DurationSpec(hook="0-3s", problem="3-8s", solution="8-75s", proof_cta="75-90s", total_seconds=90),
}


def duration_spec(duration: str) -> DurationSpec:
    # Unknown values fall back to the medium format so a record can always be built.
    return DURATION_SPECS.get((duration or "").strip(), DURATION_SPECS[DEFAULT_DURATION])
