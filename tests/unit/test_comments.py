from __future__ import annotations

from briefing_extractor.domain.models import ANONYMOUS_AUTHOR, Comment
from briefing_extractor.pdf.base import RawAnnotation
from briefing_extractor.pdf.comments import (
    build_comments,
    clean_comment_text,
    comparison_key,
    deduplicate_comments,
    normalize_annotation,
    parse_pdf_date,
    resolve_author,
    subtype_label,
    text_similarity,
)


def _comment(page: int, text: str) -> Comment:
    return Comment(page=page, author=ANONYMOUS_AUTHOR, type="Sticky Note", text=text)


def test_case_and_punctuation_variants_collapse_to_one() -> None:
    comments = [_comment(3, "Please fix the headline"), _comment(3, "please fix the headline!")]
    kept = deduplicate_comments(comments)
    assert [c.text for c in kept] == ["Please fix the headline"]
    assert text_similarity(comparison_key(comments[0].text), comparison_key(comments[1].text)) >= 0.85


def test_same_text_on_different_pages_is_kept() -> None:
    comments = [_comment(1, "Please fix the headline"), _comment(2, "Please fix the headline")]
    assert len(deduplicate_comments(comments)) == 2


def test_short_comments_are_discarded() -> None:
    comments = [_comment(1, "ok"), _comment(1, "  a "), _comment(1, "fine")]
    assert [c.text for c in deduplicate_comments(comments)] == ["fine"]


def test_deduplication_is_idempotent() -> None:
    comments = [
        _comment(1, "Change the CTA to Shop now"),
        _comment(1, "change the cta to shop now."),
        _comment(1, "Background should be Cosmos"),
        _comment(2, "Change the CTA to Shop now"),
        _comment(2, "Use the 4x5 crop for social"),
        _comment(2, "use the 4x5 crop for social!!"),
    ]
    once = deduplicate_comments(comments)
    assert deduplicate_comments(once) == once
    assert len(once) == 4


def test_similarity_rejects_very_different_lengths() -> None:
    assert text_similarity("fix", "fix the headline and the copy color please") == 0.0
    assert text_similarity("", "") == 1.0


def test_parse_pdf_date_handles_offsets_and_fallbacks() -> None:
    assert parse_pdf_date("D:20250102030405Z") == "2025-01-02T03:04:05Z"
    assert parse_pdf_date("D:20250102030405-03'00'") == "2025-01-02T06:04:05Z"
    assert parse_pdf_date("D:2025") == "2025-01-01T00:00:00Z"
    assert parse_pdf_date("2025-03-04T10:00:00+00:00") == "2025-03-04T10:00:00Z"
    assert parse_pdf_date("04/03/2025") == "2025-03-04T00:00:00Z"
    assert parse_pdf_date("yesterday") is None
    assert parse_pdf_date(None) is None


def test_author_cascade() -> None:
    assert resolve_author("joão pereira", "whatever") == "João Pereira"
    assert resolve_author(None, "By: ana costa, please review") == "Ana Costa"
    assert resolve_author(None, "[Carlos] swap the image") == "Carlos"
    assert resolve_author(None, "- Bruna\nlooks good") == "Bruna"
    assert resolve_author(None, "Marcos: approved") == "Marcos"
    assert resolve_author("[object Object]", "no hints here") == ANONYMOUS_AUTHOR
    assert resolve_author("user_123", "no hints here") == ANONYMOUS_AUTHOR


def test_subtype_labels() -> None:
    assert subtype_label("Text") == "Sticky Note"
    assert subtype_label("Highlight") == "Destaque"
    assert subtype_label(None) == "Comentário"
    assert subtype_label("Redact") == "Redact"


def test_clean_comment_text_keeps_line_structure() -> None:
    assert clean_comment_text("  Headline:   Big   news \r\n\r\n\r\nCTA:  Buy  ") == "Headline: Big news\n\nCTA: Buy"


def test_text_falls_back_to_rich_content_then_subject() -> None:
    rich = RawAnnotation(page=1, subtype="FreeText", rich_text="<body><p>Copy: <b>Hello</b> world</p></body>")
    assert "Hello" in normalize_annotation(rich).text

    subject_only = RawAnnotation(page=1, subtype="Stamp", subject="Approved")
    c = normalize_annotation(subject_only)
    assert c.text == "Approved"
    assert c.type == "Carimbo"


def test_build_comments_orders_by_page_and_keeps_discovery_order() -> None:
    raw = [
        RawAnnotation(page=2, subtype="Text", contents="second page note"),
        RawAnnotation(page=1, subtype="Text", contents="first page, first note"),
        RawAnnotation(page=1, subtype="Text", contents="first page, another remark"),
        RawAnnotation(page=1, subtype="Text", contents="First page first note!"),
    ]
    comments = build_comments(raw)
    assert [(c.page, c.text) for c in comments] == [
        (1, "first page, first note"),
        (1, "first page, another remark"),
        (2, "second page note"),
    ]
