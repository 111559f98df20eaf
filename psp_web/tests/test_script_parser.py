import pytest

from psp_web.services.script_parser import (
    DEFAULT_ALT_TEXT,
    DEFAULT_CTA,
    DEFAULT_HASHTAGS,
    DEFAULT_KEYWORDS,
    PLACEHOLDERS,
    extract_caption,
    extract_hashtags,
    extract_keywords,
    parse_legacy_markdown,
    scan_sections,
    split_proof_and_cta,
)

FULL_SCRIPT = (
    "[0-3s] HOOK:\nEsto es un hook\n"
    "[3-8s] PROBLEMA:\nEsto es un problema\n"
    "[8-35s] SOLUCIÓN:\nEsto es la solución\n"
    "[35-45s] PRUEBA + CTA:\nPrueba: lo vimos funcionar\nCTA: escríbenos por DM"
)


def test_full_script_beats():
    parsed = parse_legacy_markdown(FULL_SCRIPT)

    assert parsed.hook == "Esto es un hook"
    assert parsed.problem == "Esto es un problema"
    assert parsed.solution == "Esto es la solución"
    assert parsed.proof == "lo vimos funcionar"
    assert parsed.cta == "escríbenos por DM"
    assert parsed.missing == ()


def test_bold_markers_and_crlf_are_ignored():
    md = "**[0-3s] HOOK:**\r\nUn hook\r\n**[3-8s] PROBLEMA:**\r\nUn problema"
    parsed = parse_legacy_markdown(md)
    assert parsed.hook == "Un hook"
    assert parsed.problem == "Un problema"


def test_missing_headers_use_placeholders():
    parsed = parse_legacy_markdown("[0-3s] HOOK:\nSolo hay hook")

    assert parsed.hook == "Solo hay hook"
    assert parsed.problem == PLACEHOLDERS["problem"]
    assert parsed.solution == PLACEHOLDERS["solution"]
    assert parsed.proof == PLACEHOLDERS["proof"]
    assert parsed.cta == DEFAULT_CTA
    assert parsed.missing == ("problem", "solution", "proof_cta")


def test_empty_input_never_raises():
    parsed = parse_legacy_markdown("")
    assert parsed.hook == PLACEHOLDERS["hook"]
    assert parsed.seo.hashtags == list(DEFAULT_HASHTAGS)
    assert parsed.seo.keywords == list(DEFAULT_KEYWORDS)
    assert parsed.seo.alt_text == DEFAULT_ALT_TEXT


def test_sections_do_not_overlap_and_keep_order():
    sections = scan_sections(FULL_SCRIPT)
    ordered = [sections[b] for b in ("hook", "problem", "solution", "proof_cta")]
    for current, following in zip(ordered, ordered[1:]):
        assert current.end == following.header_start
        assert current.body_start <= current.end


def test_header_appearing_out_of_order_is_not_matched_backwards():
    md = "[3-8s] PROBLEMA:\nantes\n[0-3s] HOOK:\nhook\n"
    sections = scan_sections(md)
    # problem header precedes the hook, so only the hook is found by the ordered scan
    assert set(sections) == {"hook"}


def test_closing_alias_and_short_solution_window():
    md = "[0-3s] HOOK:\nh\n[3-8s] PROBLEMA:\np\n[8-12s] SOLUCION:\ns\n[12-15s] CIERRE:\nPrueba: x\nCTA: y"
    parsed = parse_legacy_markdown(md)
    assert parsed.solution == "s"
    assert (parsed.proof, parsed.cta) == ("x", "y")


def test_bullets_and_quotes_are_stripped():
    md = "[0-3s] HOOK:\n- “Nadie te dice esto”\n[3-8s] PROBLEMA:\n* uno\n* dos"
    parsed = parse_legacy_markdown(md)
    assert parsed.hook == "Nadie te dice esto"
    assert parsed.problem == "uno dos"


def test_unlabelled_closing_classified_by_keywords():
    proof, cta = split_proof_and_cta("Lo he observado en cien marcas. Escríbeme por DM la palabra GUIA.")
    assert proof == "Lo he observado en cien marcas."
    assert cta == "Escríbeme por DM la palabra GUIA."


def test_first_unclassified_sentence_is_proof_then_cta():
    proof, cta = split_proof_and_cta("Funciona siempre. Hazlo hoy.")
    assert proof == "Funciona siempre."
    assert cta == "Hazlo hoy."


def test_closing_without_cta_gets_default():
    proof, cta = split_proof_and_cta("El resultado fue claro.")
    assert proof == "El resultado fue claro."
    assert cta == DEFAULT_CTA


def test_hashtags_keep_duplicates_in_order():
    assert extract_hashtags("#Uno #Dos #Uno") == ["#Uno", "#Dos", "#Uno"]


def test_caption_takes_first_line_only():
    text = "Caption:\nPrimera línea del caption\nSegunda línea\n\n#tag"
    assert extract_caption(text) == "Primera línea del caption"


def test_keywords_split_and_filter_long_tokens():
    long_token = "x" * 60
    text = f"Keywords: ventas, , marketing digital, {long_token}\n"
    assert extract_keywords(text) == ["ventas", "marketing digital"]


def test_seo_after_separator():
    md = FULL_SCRIPT + "\n---\nCaption:\nAprende a vender por DM\n\nKeywords: ventas, dm\n\n#ventas #dm"
    parsed = parse_legacy_markdown(md)

    assert parsed.cta == "escríbenos por DM"
    assert parsed.seo.caption == "Aprende a vender por DM"
    assert parsed.seo.hashtags == ["#ventas", "#dm"]
    assert parsed.seo.keywords == ["ventas", "dm"]
    assert parsed.seo.alt_text == "Video sobre Aprende a vender por DM"


@pytest.mark.parametrize(
    "closing, proof, cta",
    [
        ("Reenvía este video a tu socio.", "", "Reenvía este video a tu socio."),
        ("Lo notamos en cada cliente. Pídelo por DM.", "Lo notamos en cada cliente.", "Pídelo por DM."),
    ],
)
def test_cta_keyword_anywhere_in_sentence(closing, proof, cta):
    assert split_proof_and_cta(closing) == (proof, cta)


def test_missing_middle_header_only_affects_that_beat():
    md = "[0-3s] HOOK:\nh\n[3-8s] PROBLEMA:\np\n[35-45s] PRUEBA + CTA:\nPrueba: x\nCTA: y"
    parsed = parse_legacy_markdown(md)

    assert parsed.hook == "h"
    assert parsed.problem == "p"
    assert parsed.solution == PLACEHOLDERS["solution"]
    assert (parsed.proof, parsed.cta) == ("x", "y")
    assert parsed.missing == ("solution",)
