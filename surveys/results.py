"""
Per-question tallies over all responses to a survey.

Choice questions are reported as a count for every declared option (zero counts
included, so shares compare across the full option set). Text questions are
reported as the submitted values in arrival order.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .models import Survey, Question, Answer


def percentage(count: int, total: int) -> int:
    """Whole-number share of `count` in `total`, rounding halves up. Zero when nothing was answered."""
    if total == 0:
        return 0
    return (count * 200 + total) // (total * 2)


@dataclass
class OptionTally:
    option: str
    count: int
    percentage: int


@dataclass
class QuestionStats:
    question: Question
    total: int = 0
    counts: dict[str, int] = field(default_factory=dict)
    text_answers: list[str] = field(default_factory=list)

    @property
    def is_text(self) -> bool:
        return self.question.question_type == Question.QuestionType.TEXT

    def rows(self) -> Iterator[OptionTally]:
        """Yields one tally per declared option, in declared order."""
        for option, count in self.counts.items():
            yield OptionTally(option=option, count=count, percentage=percentage(count, self.total))


@dataclass
class SurveyResults:
    survey: Survey
    total_responses: int
    stats: list[QuestionStats]


def tally_question(question: Question, answers: Iterable[Answer]) -> QuestionStats:
    answers = list(answers)
    stats = QuestionStats(question=question, total=len(answers))

    if question.question_type == Question.QuestionType.TEXT:
        stats.text_answers = [answer.value for answer in answers]
        return stats

    stats.counts = {option: 0 for option in question.options or []}
    for answer in answers:
        selected = answer.value if isinstance(answer.value, list) else [answer.value]
        for option in selected:
            # Values outside the declared options are not counted.
            if option in stats.counts:
                stats.counts[option] += 1
    return stats


def aggregate_answers(questions: Iterable[Question], answers: Iterable[Answer]) -> list[QuestionStats]:
    """
    Tallies `answers` against `questions`, returning one QuestionStats per question in the given order.
    Answers to questions not in `questions` are ignored.
    """
    by_question: dict[int, list[Answer]] = defaultdict(list)
    for answer in answers:
        by_question[answer.question_id].append(answer)
    return [tally_question(question, by_question.get(question.id, [])) for question in questions]


def load_survey_results(survey: Survey) -> SurveyResults:
    """Fetches a survey's questions and answers and aggregates them."""
    questions = list(survey.questions.order_by('order'))
    answers = Answer.objects.filter(response__survey=survey).order_by('created_at', 'id')
    return SurveyResults(
        survey=survey,
        total_responses=survey.responses.count(),
        stats=aggregate_answers(questions, answers),
    )
