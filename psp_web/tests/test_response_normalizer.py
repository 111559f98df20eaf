from psp_web.services.response_normalizer import (
    NOT_AVAILABLE,
    LegacyResponse,
    StructuredResponse,
    classify,
    from_stored_run,
    normalize,
    normalize_variants,
)
from psp_web.services.script_parser import PLACEHOLDERS

LEGACY_MARKDOWN = (
    "[0-3s] HOOK:\nEsto es un hook\n"
    "[3-8s] PROBLEMA:\nEsto es un problema\n"
    "[8-35s] SOLUCIÓN:\nEsto es la solución\n"
    "[35-45s] PRUEBA + CTA:\nPrueba: lo vimos funcionar\nCTA: escríbenos por DM"
)


def structured_payload(hook_text="Hook estructurado", score=88):
    return {
        "run_id": "run-1",
        "ai_model_used": "gpt-x",
        "risk_level_applied": "medio",
        "hook": {"code": "H1", "text": hook_text, "category": "curiosidad"},
        "script_psp": {
            "hook": {"time": "0-3s", "text": hook_text, "visual_action": "Zoom"},
            "problem": {"time": "3-8s", "text": "Problema", "validation": "Te pasa"},
            "solution": {"time": "8-35s", "text": "Solución", "key_insight": "Clave"},
            "proof_cta": {"time": "35-45s", "proof": "Prueba", "cta": "Escríbeme"},
        },
        "production_pack": {
            "screen_text": {"top_safe": "Arriba", "center_main": "Centro", "bottom_cta": "Abajo"},
            "cut_rhythm": "rápido",
            "visual_style": "talking head",
            "b_roll": ["plano 1"],
        },
        "seo_pack": {
            "hashtags": ["#a", "#b"],
            "alt_text": "Alt",
            "caption_frontloaded": "Caption",
            "spoken_keywords": ["ventas"],
        },
        "quality_score": score,
        "quality_passed": True,
        "quality_breakdown": {
            "hook_strength": 20,
            "psp_structure": 22,
            "objective_alignment": 18,
            "seo_compliance": 18,
            "compliance": 10,
        },
        "advanced_optimizations": ["Más contraste"],
        "ab_test_variants": {"hook_b": "Otro hook", "cta_b": "Otro CTA"},
    }


def test_classify_tags_each_shape():
    assert isinstance(classify(structured_payload()), StructuredResponse)

    legacy = classify({"final": {"script": LEGACY_MARKDOWN, "evaluation": {"total": 70}}})
    assert isinstance(legacy, LegacyResponse)
    assert legacy.markdown == LEGACY_MARKDOWN
    assert legacy.evaluation == {"total": 70}


def test_structured_fields_pass_through_unchanged():
    payload = structured_payload()
    record = normalize(payload, "7-15")
    as_dict = record.to_dict()

    # structured times are trusted even if they disagree with the duration
    assert as_dict["script_psp"] == payload["script_psp"]
    assert as_dict["production_pack"] == payload["production_pack"]
    assert as_dict["seo_pack"] == payload["seo_pack"]
    assert as_dict["quality_breakdown"] == payload["quality_breakdown"]
    assert as_dict["hook"] == payload["hook"]
    assert record.quality_score == 88
    assert record.production_pack.screen_text_lines == ["[TOP] Arriba", "[CENTER] Centro", "[BOTTOM] Abajo"]
    assert record.seo_pack.display_caption == "Caption"
    assert record.ab_test_variants.hook == "Otro hook"


def test_structured_missing_beat_gets_duration_window_and_placeholder():
    payload = structured_payload()
    del payload["script_psp"]["problem"]

    record = normalize(payload, "60+")

    assert record.script_psp.problem.time == "3-8s"
    assert record.script_psp.problem.text == PLACEHOLDERS["problem"]
    assert record.script_psp.hook.text == "Hook estructurado"


def test_legacy_markdown_builds_full_record():
    response = {
        "final": {"script": LEGACY_MARKDOWN, "evaluation": {"total": 72, "hook_strength": 30, "shareability": 15}},
        "config_used": {"min_score": 75},
        "mode": "ESTRATEGICO",
    }

    record = normalize(response, "30-60", "talking_head", "general")
    script = record.script_psp

    assert (script.hook.time, script.hook.text) == ("0-3s", "Esto es un hook")
    assert script.problem.time == "3-8s"
    assert script.solution.time == "8-35s"
    assert script.proof_cta.time == "35-45s"
    assert script.proof_cta.proof == "lo vimos funcionar"
    assert script.proof_cta.cta == "escríbenos por DM"

    assert record.quality_score == 72
    assert record.quality_passed is False
    assert record.quality_breakdown.hook_strength == 25  # clamped to its maximum
    assert record.quality_breakdown.objective_alignment == 15
    assert record.risk_level_applied == "ESTRATEGICO"
    assert record.version == "legacy"
    assert record.ai_model_used == "Knowledge Pack · general"
    assert record.production_pack.screen_text == ["Esto es un hook"]


def test_legacy_times_come_from_duration_not_markdown():
    record = normalize({"script": LEGACY_MARKDOWN}, "7-15")
    assert record.script_psp.solution.time == "8-12s"
    assert record.script_psp.proof_cta.time == "12-15s"


def test_variants_keep_received_order():
    response = {"variants": [structured_payload("Primero", 60), structured_payload("Segundo", 95)]}

    records = normalize_variants(response, "30-60")

    assert [r.script_psp.hook.text for r in records] == ["Primero", "Segundo"]


def test_single_result_becomes_one_variant():
    records = normalize_variants(structured_payload(), "30-60")
    assert len(records) == 1


def test_stored_run_with_missing_fields_uses_defaults():
    row = {
        "id": "r-9",
        "selected_hook_code": "H3",
        "script_psp": {"hook": {"text": "Hook guardado"}},
    }

    record = from_stored_run(row)

    assert record.run_id == "r-9"
    assert record.hook.code == "H3"
    assert record.hook.text == "Hook guardado"
    assert record.hook.category == NOT_AVAILABLE
    assert record.script_psp.hook.time == NOT_AVAILABLE
    assert record.script_psp.problem.text == NOT_AVAILABLE
    assert record.production_pack.screen_text == []
    assert record.production_pack.cut_rhythm == NOT_AVAILABLE
    assert record.seo_pack.hashtags == []
    assert record.seo_pack.display_caption == NOT_AVAILABLE
    assert record.ai_model_used == NOT_AVAILABLE
    assert record.advanced_optimizations == []
