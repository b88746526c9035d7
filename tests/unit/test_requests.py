from __future__ import annotations

import pytest
from pydantic import ValidationError

from briefing_extractor.models.requests import ExtractionOptions, ExtractionRequest, clamp_concurrency

WF_URL = "https://acme.my.workfront.com/project/66a1b2c3/overview"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 2), (0, 2), (-3, 2), (1, 1), (3, 3), (9, 5), ("4", 4), ("abc", 2)],
)
def test_clamp_concurrency(raw, expected) -> None:
    assert clamp_concurrency(raw) == expected


def test_options_accept_camel_case_and_clamp() -> None:
    options = ExtractionOptions.model_validate(
        {"continueOnError": False, "keepFiles": True, "singleBriefing": False, "concurrency": 12}
    )
    assert not options.continue_on_error
    assert options.keep_files
    assert not options.single_briefing
    assert options.concurrency == 5
    assert options.headless


def test_request_defaults() -> None:
    request = ExtractionRequest.model_validate({"projectUrls": [f"  {WF_URL}  "]})
    assert request.project_urls == [WF_URL]
    assert request.options == ExtractionOptions()
    assert request.operation_id is None


def test_request_rejects_empty_list() -> None:
    with pytest.raises(ValidationError):
        ExtractionRequest.model_validate({"projectUrls": []})


def test_request_names_the_bad_url_position() -> None:
    with pytest.raises(ValidationError) as exc_info:
        ExtractionRequest.model_validate({"projectUrls": [WF_URL, "not a url"]})
    assert "URL 2" in str(exc_info.value)

    with pytest.raises(ValidationError) as exc_info:
        ExtractionRequest.model_validate({"projectUrls": ["https://example.com/project/1"]})
    assert "Workfront" in str(exc_info.value)
