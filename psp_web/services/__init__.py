from .brief_form import BriefForm, knowledge_pack_payload, serialize_brief
from .generation_service import GenerationService
from .project_service import ProjectService
from .response_normalizer import from_stored_run, normalize, normalize_variants
from .session_gate import GateState, SessionGate

__all__ = [
    "BriefForm",
    "GateState",
    "GenerationService",
    "ProjectService",
    "SessionGate",
    "from_stored_run",
    "knowledge_pack_payload",
    "normalize",
    "normalize_variants",
    "serialize_brief",
]
