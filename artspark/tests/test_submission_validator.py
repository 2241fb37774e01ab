import pytest

from artspark.core.errors import SubmissionValidationError
from artspark.features.submissions.validator import ensure_valid, validate_submission
from artspark.models.submission import SubmissionInput

PROMPT_ID = "3f1c2a9e-5b7d-4c1e-8f2a-6d9b0e4a7c21"


def _input(**overrides):
    values = {"prompt_id": PROMPT_ID, "image_refs": ["/tmp/a.jpg"], "notes": None, "tags": []}
    values.update(overrides)
    return SubmissionInput(**values)


def _fields(errors):
    return [e.field for e in errors]


def test_valid_submission_has_no_errors():
    assert validate_submission(_input(image_refs=["a", "b", "c"], notes="x" * 500, tags=["t" * 30] * 10)) == []


def test_image_count_bounds():
    assert _fields(validate_submission(_input(image_refs=[]))) == ["image_refs"]
    assert _fields(validate_submission(_input(image_refs=["a", "b", "c", "d"]))) == ["image_refs"]


def test_notes_length():
    assert _fields(validate_submission(_input(notes="x" * 501))) == ["notes"]


def test_tag_limits():
    assert _fields(validate_submission(_input(tags=["t"] * 11))) == ["tags"]
    assert _fields(validate_submission(_input(tags=["ok", "t" * 31]))) == ["tags[1]"]


def test_prompt_id_must_be_uuid():
    assert _fields(validate_submission(_input(prompt_id="not-a-uuid"))) == ["prompt_id"]


def test_all_violations_reported_together():
    errors = validate_submission(_input(prompt_id="nope", image_refs=[], notes="x" * 600))
    assert set(_fields(errors)) == {"prompt_id", "image_refs", "notes"}


def test_ensure_valid_raises_with_field_errors():
    with pytest.raises(SubmissionValidationError) as exc:
        ensure_valid(_input(image_refs=[]))
    assert exc.value.status_code == 400
    assert exc.value.code == "validation_error"
    assert _fields(exc.value.errors) == ["image_refs"]
