from __future__ import annotations

import json
from pathlib import Path

import pymupdf
import pytest

from briefing_extractor.config.settings import BriefingSettings, reset_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture()
def session_state_file(tmp_path: Path) -> Path:
    path = tmp_path / "wf_state.json"
    path.write_text(
        json.dumps({"cookies": [{"name": "wf_session", "value": "x", "domain": ".workfront.com"}], "origins": []}),
        encoding="utf-8",
    )
    return path


@pytest.fixture()
def settings(tmp_path: Path, session_state_file: Path) -> BriefingSettings:
    return BriefingSettings(
        session_state_path=str(session_state_file),
        temp_download_root=str(tmp_path / "downloads"),
        persistence_enabled=False,
    )


@pytest.fixture()
def briefing_pdf(tmp_path: Path) -> Path:
    """Two-page brief with body fields on page 1 and reviewer notes as annotations."""
    path = tmp_path / "5372048_briefing.pdf"
    doc = pymupdf.open()

    page = doc.new_page()
    page.insert_text(
        (72, 72),
        "Live date: 12/05/2025\n"
        "Headline: Power your ideas\n"
        "Background: Cosmos\n"
        "Copy color: white\n"
        "Assets: https://dam-prod.example.com/content/dam/x/hero_4x5.psd",
        fontsize=10,
    )
    first = page.add_text_annot((72, 300), "Please fix the headline")
    first.set_info(title="maria silva")
    first.update()
    second = page.add_text_annot((120, 300), "please fix the headline!")
    second.update()

    page2 = doc.new_page()
    page2.insert_text((72, 72), "CTA: Shop now", fontsize=10)
    note = page2.add_text_annot((72, 200), "PO: ABC-12345")
    note.update()

    doc.save(str(path))
    doc.close()
    return path
