from __future__ import annotations

from briefing_extractor.pdf.links import (
    detailed_links,
    find_links,
    rich_text_links,
    rich_text_to_plain,
    shorten_dam_link,
    unique_in_order,
)


def test_dam_links_are_rebased_on_canonical_host() -> None:
    url = "https://author-p123.adobeaemcloud.com/content/dam/dell/campaign/hero_4x5.psd"
    assert shorten_dam_link(url) == "https://dam.dell.com/content/dam/dell/campaign/hero_4x5.psd"


def test_details_page_links_are_unwrapped() -> None:
    url = "https://assets.example.com/assets.html/details.html/content/dam/dell/a.jpg"
    assert shorten_dam_link(url, host="https://dam.example.com/") == "https://dam.example.com/content/dam/dell/a.jpg"


def test_other_links_pass_through() -> None:
    url = "https://www.dell.com/en-us/shop"
    assert shorten_dam_link(url) == url


def test_find_links_stops_at_delimiters() -> None:
    text = 'See (https://a.example.com/x) and "https://b.example.com/y"'
    assert find_links(text) == ["https://a.example.com/x", "https://b.example.com/y"]
    assert find_links(None) == []


def test_rich_text_links_read_href_and_text() -> None:
    markup = '<body><p><a href="https://a.example.com/one">one</a> and https://b.example.com/two</p></body>'
    assert unique_in_order(rich_text_links(markup)) == ["https://a.example.com/one", "https://b.example.com/two"]
    assert rich_text_links("plain https://c.example.com") == ["https://c.example.com"]


def test_rich_text_to_plain_strips_markup() -> None:
    assert rich_text_to_plain("<body><p>Hello</p><p>world</p></body>") == "Hello\nworld"
    assert rich_text_to_plain("  no markup ") == "no markup"
    assert rich_text_to_plain(None) == ""


def test_unique_in_order_and_detailed_records() -> None:
    full = unique_in_order(["b", "a", "", "b", "c"])
    assert full == ["b", "a", "c"]
    records = detailed_links(full, [x.upper() for x in full])
    assert [(r.id, r.full, r.short) for r in records] == [(1, "b", "B"), (2, "a", "A"), (3, "c", "C")]
