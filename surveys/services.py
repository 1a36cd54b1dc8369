from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from .exceptions import AlreadySubmittedError, SurveyClosedError
from .models import Survey, Question, Response, Answer

logger = logging.getLogger(__name__)


def is_empty_answer(value: Any) -> bool:
    """None, a blank string and an empty selection all count as unanswered."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def first_missing_required(questions: Iterable[Question], answers: Mapping[int, Any]) -> Question | None:
    """Returns the first required question, in display order, that has no answer."""
    for question in questions:
        if question.is_required and is_empty_answer(answers.get(question.id)):
            return question
    return None


def unique_options(options: Iterable[str] | None) -> list[str]:
    """Options with duplicates dropped, keeping the first occurrence of each."""
    return list(dict.fromkeys(options or []))


def validate_survey_draft(title: str, questions: list[dict]) -> None:
    """
    Checks a survey draft before anything is written.
    Raises a ValidationError carrying a single message for the first problem found.

    A question draft may carry an `index`, its position in the authoring form.
    Question errors are numbered from it and carry it in their params.
    """
    if not title or not title.strip():
        raise ValidationError("Please enter a survey title.", code='title')

    if not questions:
        raise ValidationError("Please add at least one question.", code='no_questions')

    for i, q_data in enumerate(questions):
        index = q_data.get("index", i)
        params = {'number': index + 1, 'index': index}
        if not (q_data.get("text") or "").strip():
            raise ValidationError("Question %(number)s text cannot be empty.", code='question_text', params=params)
        if q_data.get("question_type", Question.QuestionType.SINGLE_CHOICE) in Question.CHOICE_TYPES:
            if len(unique_options(q_data.get("options"))) < 2:
                raise ValidationError("Question %(number)s needs at least two options.", code='options', params=params)


@transaction.atomic
def create_survey(
    *,
    creator: AbstractUser,
    title: str,
    description: str = "",
    questions: list[dict],
    is_active: bool = True,
) -> Survey:
    """
    Creates a Survey and its ordered Questions from a validated draft.

    Each question dict has `text`, `question_type`, `options` and `is_required`.
    The question's position in the list becomes its `order`.
    """
    validate_survey_draft(title, questions)

    survey = Survey.objects.create(
        title=title.strip(),
        description=(description or "").strip(),
        creator=creator,
        is_active=is_active,
    )
    Question.objects.bulk_create([
        Question(
            survey=survey,
            text=q_data["text"].strip(),
            question_type=q_data.get("question_type", Question.QuestionType.SINGLE_CHOICE),
            options=unique_options(q_data.get("options")) if q_data.get("question_type") != Question.QuestionType.TEXT else [],
            is_required=q_data.get("is_required", True),
            order=i,
        )
        for i, q_data in enumerate(questions)
    ])
    logger.info("Survey %s created by user %s with %d questions", survey.pk, creator.pk, len(questions))
    return survey


def has_responded(survey: Survey, user: AbstractUser) -> bool:
    return Response.objects.filter(survey=survey, respondent=user).exists()


def submit_response(
    *,
    survey: Survey,
    respondent: AbstractUser,
    answers: Mapping[int, Any],
) -> Response:
    """
    Creates a Response and one Answer per answered question.

    `answers` maps question id to a string (single choice or text) or a list of
    strings (multiple choice). Nothing is written unless every required question
    is answered and the respondent has no response on file yet.
    """
    if not survey.is_active:
        raise SurveyClosedError(f"'{survey.title}' is not accepting responses.")

    if has_responded(survey, respondent):
        raise AlreadySubmittedError(f"You have already completed '{survey.title}'.")

    questions = list(survey.questions.all())
    missing = first_missing_required(questions, answers)
    if missing is not None:
        raise ValidationError(f"Please answer the question: {missing.text}", code='required')

    try:
        with transaction.atomic():
            response = Response.objects.create(survey=survey, respondent=respondent)
            Answer.objects.bulk_create([
                Answer(response=response, question=question, value=_normalize_value(answers[question.id]))
                for question in questions
                if not is_empty_answer(answers.get(question.id))
            ])
    except IntegrityError:
        # Another submission for the same (survey, respondent) won the race.
        logger.info("Duplicate response for survey %s by user %s rejected", survey.pk, respondent.pk)
        raise AlreadySubmittedError(f"You have already completed '{survey.title}'.")

    logger.info("Response %s submitted for survey %s", response.pk, survey.pk)
    return response


def _normalize_value(value: Any) -> str | list[str]:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return str(value)
