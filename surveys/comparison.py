from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from django.contrib.auth.models import AbstractUser

from .models import Survey, Question, Response, Answer

MAX_COMPARED_RESPONSES = 3


@dataclass
class ComparisonRow:
    question: Question
    # One entry per selected response, None where the question went unanswered.
    cells: list[Any]


@dataclass
class ResponseComparison:
    survey: Survey
    respondent: AbstractUser
    history: list[Response]
    selected: list[Response]
    rows: list[ComparisonRow]

    @property
    def is_comparable(self) -> bool:
        return len(self.history) >= 2

    @property
    def selected_ids(self) -> list[int]:
        return [response.id for response in self.selected]


def default_selection(responses: Sequence[Response]) -> list[int]:
    """The two most recent responses. `responses` must be ordered newest first."""
    return [response.id for response in responses[:2]]


def normalize_selection(requested: Iterable[Any], responses: Sequence[Response]) -> list[int]:
    """
    Keeps the requested ids that belong to `responses`, in request order and without
    duplicates, capped at MAX_COMPARED_RESPONSES. Falls back to the default selection
    when nothing usable was requested.
    """
    available = {response.id for response in responses}
    selected: list[int] = []
    for raw in requested:
        try:
            response_id = int(raw)
        except (TypeError, ValueError):
            continue
        if response_id in available and response_id not in selected:
            selected.append(response_id)
        if len(selected) == MAX_COMPARED_RESPONSES:
            break
    return selected or default_selection(responses)


def compare_responses(
    questions: Iterable[Question],
    responses: Sequence[Response],
    answers: Iterable[Answer],
) -> list[ComparisonRow]:
    """Aligns each question's answer across `responses`."""
    lookup = {(answer.response_id, answer.question_id): answer.value for answer in answers}
    return [
        ComparisonRow(
            question=question,
            cells=[lookup.get((response.id, question.id)) for response in responses],
        )
        for question in questions
    ]


def load_comparison(survey: Survey, respondent: AbstractUser, requested: Iterable[Any] = ()) -> ResponseComparison:
    history = list(Response.objects.filter(survey=survey, respondent=respondent).order_by('-created_at', '-id'))
    selected_ids = normalize_selection(requested, history)
    by_id = {response.id: response for response in history}
    selected = [by_id[response_id] for response_id in selected_ids]

    questions = list(survey.questions.order_by('order'))
    answers = Answer.objects.filter(response__in=selected)
    return ResponseComparison(
        survey=survey,
        respondent=respondent,
        history=history,
        selected=selected,
        rows=compare_responses(questions, selected, answers),
    )
