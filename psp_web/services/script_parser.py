"""
Best-effort extraction of script beats and SEO fields from the free-text
markdown that older generation responses return instead of structured fields.

Nothing here raises on odd input. Whatever cannot be found comes back as a
named placeholder, and `ParsedScript.missing` lists the beats whose header
was not present.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

BEATS = ("hook", "problem", "solution", "proof_cta")

# Ordered (beat, header) pairs. Each header is searched for after the previous
# match, so sections never overlap and always come back in script order.
SECTION_HEADERS: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("hook", re.compile(r"\[0-3s\]\s*HOOK:", re.IGNORECASE)),
    ("problem", re.compile(r"\[3-8s\]\s*PROBLEMA:", re.IGNORECASE)),
    ("solution", re.compile(r"\[8-\d+s\]\s*SOLUCI[ÓO]N:", re.IGNORECASE)),
    ("proof_cta", re.compile(r"\[\d+-\d+s\]\s*(?:PRUEBA\s*\+\s*CTA|CIERRE):", re.IGNORECASE)),
)

PLACEHOLDERS: Dict[str, str] = {
    "hook": "Hook generado por Knowledge Pack",
    "problem": "Problema identificado por Knowledge Pack",
    "solution": "Solución generada por Knowledge Pack",
    "proof": "Prueba generada por Knowledge Pack",
}
DEFAULT_CTA = "Escríbeme por DM y te cuento cómo aplicarlo."
DEFAULT_HASHTAGS = ("#contenido", "#estrategia")
DEFAULT_KEYWORDS = ("contenido", "estrategia", "marketing")
DEFAULT_ALT_TEXT = "Video vertical con guion PSP"

CTA_KEYWORDS = ("comparte", "envía", "escribe", "dm", "mensaje", "guarda", "manda", "pasa")
PROOF_KEYWORDS = ("observado", "marcas", "diferencia", "nota", "cuando", "porque", "resultado")

MAX_KEYWORD_LENGTH = 50
ALT_TEXT_CAPTION_CHARS = 60

_CAPTION_SPLIT = re.compile(r"\n[ \t]*-{3,}[ \t]*\n\s*(?=[^\w\n]*caption)", re.IGNORECASE)
_CAPTION = re.compile(
    r"^[^\w\n]*caption[^:\n]*:?[ \t]*\n?(?P<body>.*?)"
    r"(?=\n[ \t]*\n|\n[^\w\n]*(?:SEO|Keywords)\b|\Z)",
    re.IGNORECASE | re.MULTILINE | re.DOTALL,
)
_KEYWORDS = re.compile(
    r"^[^\w\n]*(?:SEO\s+)?Keywords[^:\n]*:?[ \t]*\n?(?P<body>.*?)(?=\n[ \t]*\n|\Z)",
    re.IGNORECASE | re.MULTILINE | re.DOTALL,
)
_HASHTAG = re.compile(r"#\w+")
_BULLET = re.compile(r"^[ \t]*[-*•][ \t]+", re.MULTILINE)
_WHITESPACE = re.compile(r"\s+")
_LABELLED_CLOSING = re.compile(r"Prueba:\s*(?P<proof>.*?)\s*CTA:\s*(?P<cta>.*)", re.IGNORECASE | re.DOTALL)
_SENTENCE = re.compile(r"[^.!?]+[.!?]*")


def _mentions(sentence: str, keywords: Tuple[str, ...]) -> bool:
    lowered = sentence.lower()
    return any(k in lowered for k in keywords)


@dataclass(frozen=True)
class Section:
    beat: str
    header_start: int
    body_start: int
    end: int


@dataclass(frozen=True)
class SeoFields:
    caption: str
    hashtags: List[str]
    keywords: List[str]
    alt_text: str


@dataclass(frozen=True)
class ParsedScript:
    hook: str
    problem: str
    solution: str
    proof: str
    cta: str
    seo: SeoFields
    missing: Tuple[str, ...] = ()


def prepare_text(markdown: str) -> str:
    text = (markdown or "").replace("**", "")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text.strip()


def split_caption_section(text: str) -> Tuple[str, Optional[str]]:
    """Returns (script part, caption section) split at a `---` rule followed by a Caption heading."""
    m = _CAPTION_SPLIT.search(text)
    if not m:
        return text, None
    return text[:m.start()], text[m.end():]


def scan_sections(script: str) -> Dict[str, Section]:
    found: List[Tuple[str, int, int]] = []
    cursor = 0
    for beat, header in SECTION_HEADERS:
        m = header.search(script, cursor)
        if m is None:
            continue
        found.append((beat, m.start(), m.end()))
        cursor = m.end()

    sections: Dict[str, Section] = {}
    for i, (beat, start, body_start) in enumerate(found):
        end = found[i + 1][1] if i + 1 < len(found) else len(script)
        sections[beat] = Section(beat=beat, header_start=start, body_start=body_start, end=end)
    return sections


def clean_beat_text(raw: str) -> str:
    text = _BULLET.sub("", raw or "")
    text = _WHITESPACE.sub(" ", text).strip()
    return text.strip("“”").strip()


def split_proof_and_cta(closing: str) -> Tuple[str, str]:
    """
    Separates the evidence sentence(s) from the call to action.
    Explicit `Prueba:` / `CTA:` labels win; otherwise sentences are classified
    by keyword, with the first unclassified sentence counted as proof.
    """
    labelled = _LABELLED_CLOSING.search(closing)
    if labelled:
        proof = labelled.group("proof").strip()
        cta = labelled.group("cta").strip()
        return proof, cta or DEFAULT_CTA

    proof_parts: List[str] = []
    cta_parts: List[str] = []
    for sentence in (s.strip() for s in _SENTENCE.findall(closing)):
        if not sentence:
            continue
        if _mentions(sentence, CTA_KEYWORDS):
            cta_parts.append(sentence)
        elif _mentions(sentence, PROOF_KEYWORDS) or not proof_parts:
            proof_parts.append(sentence)
        else:
            cta_parts.append(sentence)

    cta = " ".join(cta_parts) or DEFAULT_CTA
    return " ".join(proof_parts), cta


def extract_caption(text: str) -> str:
    m = _CAPTION.search(text)
    if not m:
        return ""
    body = m.group("body").strip()
    # multi-line captions are cut to their first line
    return body.split("\n", 1)[0].strip() if body else ""


def extract_hashtags(text: str) -> List[str]:
    # every occurrence, in order, duplicates kept
    return _HASHTAG.findall(text)


def extract_keywords(text: str) -> List[str]:
    m = _KEYWORDS.search(text)
    if not m:
        return []
    tokens = (t.strip() for t in m.group("body").split(","))
    return [t for t in tokens if t and len(t) < MAX_KEYWORD_LENGTH]


def parse_seo(text: str) -> SeoFields:
    caption = extract_caption(text)
    hashtags = extract_hashtags(text) or list(DEFAULT_HASHTAGS)
    keywords = extract_keywords(text) or list(DEFAULT_KEYWORDS)
    alt_text = f"Video sobre {caption[:ALT_TEXT_CAPTION_CHARS]}" if caption else DEFAULT_ALT_TEXT
    return SeoFields(caption=caption, hashtags=hashtags, keywords=keywords, alt_text=alt_text)


def parse_legacy_markdown(markdown: str) -> ParsedScript:
    text = prepare_text(markdown)
    script_part, _caption_section = split_caption_section(text)
    sections = scan_sections(script_part)

    beats: Dict[str, str] = {}
    for beat in BEATS:
        section = sections.get(beat)
        beats[beat] = clean_beat_text(script_part[section.body_start:section.end]) if section else ""

    missing = tuple(beat for beat in BEATS if not beats[beat])

    if beats["proof_cta"]:
        proof, cta = split_proof_and_cta(beats["proof_cta"])
    else:
        proof, cta = "", DEFAULT_CTA

    return ParsedScript(
        hook=beats["hook"] or PLACEHOLDERS["hook"],
        problem=beats["problem"] or PLACEHOLDERS["problem"],
        solution=beats["solution"] or PLACEHOLDERS["solution"],
        proof=proof or PLACEHOLDERS["proof"],
        cta=cta,
        seo=parse_seo(text),
        missing=missing,
    )
