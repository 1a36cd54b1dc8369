from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class SurveyQuerySet(models.QuerySet):
    def visible_to(self, user) -> SurveyQuerySet:
        """Active surveys, plus every survey the user created."""
        return self.filter(Q(is_active=True) | Q(creator=user))

    def owned_by(self, user) -> SurveyQuerySet:
        return self.filter(creator=user)


class Survey(models.Model):
    """A titled, ordered collection of questions authored by one user."""
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    creator = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='surveys')
    is_active = models.BooleanField(default=True, help_text="Inactive surveys are hidden from other users and accept no responses.")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SurveyQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return self.title

    def clean(self):
        if not self.title or not self.title.strip():
            raise ValidationError({'title': "Please enter a survey title."})

    def is_owned_by(self, user) -> bool:
        return user.is_authenticated and self.creator_id == user.pk


class Question(models.Model):
    """A single prompt within a survey."""
    class QuestionType(models.TextChoices):
        SINGLE_CHOICE = 'single_choice', _('Single choice')
        MULTIPLE_CHOICE = 'multiple_choice', _('Multiple choice')
        TEXT = 'text', _('Text')

    CHOICE_TYPES = (QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE)

    survey = models.ForeignKey(Survey, on_delete=models.CASCADE, related_name='questions')
    text = models.CharField(max_length=3000, help_text="The question text presented to the respondent.")
    question_type = models.CharField(max_length=20, choices=QuestionType.choices, default=QuestionType.SINGLE_CHOICE)
    # Declared options for choice questions, stored as a JSON list: ["Yes", "No"]
    options = models.JSONField(default=list, blank=True)
    is_required = models.BooleanField(default=True)
    order = models.PositiveIntegerField(default=0, help_text="The order in which the question appears in the survey.")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['survey', 'order']
        unique_together = ['survey', 'order']

    def __str__(self) -> str:
        return f"{self.survey.title} - {self.text[:50]}"

    @property
    def is_choice(self) -> bool:
        return self.question_type in self.CHOICE_TYPES

    def clean(self):
        if not self.text or not self.text.strip():
            raise ValidationError({'text': "Question text cannot be empty."})
        if self.is_choice and len(set(self.options or [])) < 2:
            raise ValidationError({'options': "Choice questions need at least two options."})


class ResponseQuerySet(models.QuerySet):
    def visible_to(self, user) -> ResponseQuerySet:
        """The user's own responses, plus all responses to surveys the user created."""
        return self.filter(Q(respondent=user) | Q(survey__creator=user))


class Response(models.Model):
    """One respondent's single completed submission against a survey."""
    survey = models.ForeignKey(Survey, on_delete=models.CASCADE, related_name='responses')
    respondent = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='survey_responses')
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ResponseQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(fields=['survey', 'respondent'], name='unique_response_per_respondent'),
        ]

    def __str__(self) -> str:
        return f"Response to {self.survey.title} on {self.created_at.strftime('%Y-%m-%d')}"

    def answer_for(self, question: Question) -> Answer | None:
        """
        Returns this response's answer to `question`, or None if it was left unanswered.
        This is most efficient when `answers` has been prefetched.
        """
        for answer in self.answers.all():
            if answer.question_id == question.id:
                return answer
        return None


class Answer(models.Model):
    """A respondent's value for one question within a response."""
    response = models.ForeignKey(Response, on_delete=models.CASCADE, related_name='answers')
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name='answers')
    # A single option or free text is stored as a string, multiple choices as a list of strings.
    value = models.JSONField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        unique_together = ['response', 'question']

    def __str__(self):
        return f"Answer to question {self.question_id} in response {self.response_id}"
