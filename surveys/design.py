"""
Import and export of survey designs as JSON.

A design carries a survey's title, description and ordered questions, so the
same survey can be recreated for another creator or on another deployment.
Responses are never part of a design.
"""
from __future__ import annotations

import logging

import jsonschema
from django.contrib.auth.models import AbstractUser

from .models import Survey, Question
from .services import create_survey

logger = logging.getLogger(__name__)


SURVEY_DESIGN_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "minLength": 1},
        "description": {"type": "string"},
        "is_active": {"type": "boolean"},
        "questions": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "properties": {
                    "text": {"type": "string", "minLength": 1},
                    "type": {"enum": [choice.value for choice in Question.QuestionType]},
                    "options": {"type": "array", "items": {"type": "string"}, "uniqueItems": True},
                    "is_required": {"type": "boolean"},
                },
                "required": ["text", "type"],
                "allOf": [
                    {
                        "if": {"properties": {"type": {"enum": ["single_choice", "multiple_choice"]}}},
                        "then": {"required": ["options"], "properties": {"options": {"minItems": 2}}},
                    },
                ],
            },
        },
    },
    "required": ["title", "questions"],
}


def validate_survey_design(data: dict) -> list[str]:
    """
    Validate a survey design dict using JSON Schema.

    Returns:
        A list of error messages. Empty list if valid.
    """
    validator = jsonschema.Draft7Validator(SURVEY_DESIGN_SCHEMA)
    errors = []
    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        path = '/'.join(str(p) for p in error.path)
        errors.append(f"{error.message} (at path: {path})" if path else error.message)
    return errors


def survey_to_design(survey: Survey) -> dict:
    """Export a survey to a JSON-serializable design dict."""
    return {
        "title": survey.title,
        "description": survey.description,
        "is_active": survey.is_active,
        "questions": [
            {
                "text": question.text,
                "type": question.question_type,
                "options": list(question.options or []),
                "is_required": question.is_required,
            }
            for question in survey.questions.order_by('order')
        ],
    }


def import_survey_design(data: dict, *, creator: AbstractUser, validate: bool = True) -> Survey:
    """
    Create a survey owned by `creator` from a design dict.

    Raises:
        ValueError: If validate=True and the design does not match the schema.
        ValidationError: If the draft fails the authoring checks in create_survey.
    """
    if validate:
        errors = validate_survey_design(data)
        if errors:
            raise ValueError(f"Invalid survey design: {'; '.join(errors)}")

    survey = create_survey(
        creator=creator,
        title=data["title"],
        description=data.get("description", ""),
        is_active=data.get("is_active", True),
        questions=[
            {
                "text": q_data["text"],
                "question_type": q_data["type"],
                "options": q_data.get("options", []),
                "is_required": q_data.get("is_required", True),
            }
            for q_data in data["questions"]
        ],
    )
    logger.info("Imported survey design '%s' as survey %s", survey.title, survey.pk)
    return survey
