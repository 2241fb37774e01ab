"""Structural checks on a submission before any I/O."""
from __future__ import annotations

from typing import List
from uuid import UUID

from artspark.core.errors import FieldError, SubmissionValidationError
from artspark.models.submission import SubmissionInput

MIN_IMAGES = 1
MAX_IMAGES = 3
MAX_NOTES_LENGTH = 500
MAX_TAGS = 10
MAX_TAG_LENGTH = 30


def _is_uuid(value: str) -> bool:
    try:
        UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return False
    return True


def validate_submission(submission: SubmissionInput) -> List[FieldError]:
    """Return every violation; an empty list means the submission is valid."""
    errors: List[FieldError] = []

    if not _is_uuid(submission.prompt_id):
        errors.append(FieldError("prompt_id", "Must be a valid prompt id"))

    image_count = len(submission.image_refs)
    if image_count < MIN_IMAGES:
        errors.append(FieldError("image_refs", "At least one image is required"))
    elif image_count > MAX_IMAGES:
        errors.append(FieldError("image_refs", f"At most {MAX_IMAGES} images are allowed"))
    elif any(not ref for ref in submission.image_refs):
        errors.append(FieldError("image_refs", "Image references must not be empty"))

    if submission.notes is not None and len(submission.notes) > MAX_NOTES_LENGTH:
        errors.append(FieldError("notes", f"Notes must be {MAX_NOTES_LENGTH} characters or fewer"))

    if len(submission.tags) > MAX_TAGS:
        errors.append(FieldError("tags", f"At most {MAX_TAGS} tags are allowed"))
    for idx, tag in enumerate(submission.tags):
        if len(tag) > MAX_TAG_LENGTH:
            errors.append(FieldError(f"tags[{idx}]", f"Tags must be {MAX_TAG_LENGTH} characters or fewer"))

    return errors


def ensure_valid(submission: SubmissionInput) -> None:
    errors = validate_submission(submission)
    if errors:
        raise SubmissionValidationError(errors)
