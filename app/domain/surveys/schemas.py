"""
Survey payload validation.

Admin payloads report every problem at once (joined into one message), so
they are checked here rather than through per-field pydantic errors.
"""

from typing import Any, Optional

from ...shared.validators import SUPPORTED_LANGUAGES

SURVEY_TYPES = ("radio", "checkbox", "text")
CHOICE_TYPES = ("radio", "checkbox")
FLAG_FIELDS = ("is_required", "is_anonymous", "requires_rsvp")


def is_flag(value: Any) -> bool:
    return value is True or value is False or (type(value) is int and value in (0, 1))


def to_flag(value: Any) -> bool:
    return value is True or value == 1 or value in ("1", "true")


def validate_survey_payload(body: Any, for_update: bool = False, current_type: Optional[str] = None) -> list[str]:
    """
    Return the list of problems with a survey create/update payload.

    On update only the keys present are checked; ``current_type`` is the
    stored type used to check ``options`` when the payload does not change it.
    """
    if not isinstance(body, dict):
        return ["Request body must be a JSON object"]

    errors = []

    def present(key: str) -> bool:
        return not for_update or key in body

    if present("question"):
        question = body.get("question")
        if not isinstance(question, str) or not question.strip():
            errors.append("question must be a non-empty string")

    survey_type = body.get("type", current_type if for_update else None)
    if present("type") and survey_type not in SURVEY_TYPES:
        errors.append(f"type must be one of {', '.join(SURVEY_TYPES)}")

    if present("options") or (for_update and "type" in body):
        options = body.get("options")
        if survey_type in CHOICE_TYPES:
            if not isinstance(options, list) or not options:
                errors.append("options must be a non-empty array for radio/checkbox")
            elif not all(isinstance(o, str) and o.strip() for o in options):
                errors.append("each option must be a non-empty string")
            elif len({o.strip() for o in options}) != len(options):
                errors.append("options must be unique")
        elif survey_type == "text" and options:
            errors.append("options must be empty for text surveys")

    for flag in FLAG_FIELDS:
        if flag in body and not is_flag(body.get(flag)):
            errors.append(f"{flag} must be boolean")

    if present("locale"):
        locale = body.get("locale")
        if not isinstance(locale, str) or locale.strip().lower() not in SUPPORTED_LANGUAGES:
            errors.append("locale must be 'en' or 'lt'")

    if "page_id" in body:
        page_id = body.get("page_id")
        if page_id is not None and (type(page_id) is not int or page_id <= 0):
            errors.append("page_id must be an integer or null")

    if "block_order" in body and type(body.get("block_order")) is not int:
        errors.append("block_order must be an integer")

    return errors


def survey_fields(body: dict, current_type: Optional[str] = None) -> dict:
    """Normalized column values for the keys present in ``body``"""
    fields = {}
    survey_type = body.get("type", current_type)
    if "question" in body:
        fields["question"] = body["question"].strip()
    if "type" in body:
        fields["type"] = survey_type
    if "options" in body or "type" in body:
        options = body.get("options") or []
        fields["options"] = [] if survey_type == "text" else [o.strip() for o in options]
    for flag in FLAG_FIELDS:
        if flag in body:
            fields[flag] = to_flag(body[flag])
    if "locale" in body:
        fields["locale"] = body["locale"].strip().lower()
    if "page_id" in body:
        fields["page_id"] = body["page_id"]
    if "block_order" in body:
        fields["block_order"] = body["block_order"]
    return fields
