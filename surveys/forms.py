from typing import Any, Dict, Iterator, List, Tuple

from django import forms
from django.forms.widgets import Textarea, TextInput, RadioSelect, CheckboxSelectMultiple

from .models import Survey, Question
from .services import first_missing_required, unique_options

import logging

logger = logging.getLogger(__name__)

INPUT_CLASSES = 'w-full px-3 py-2 border border-gray-300 rounded-md shadow-sm focus:ring-blue-500 focus:border-blue-500'


class SurveyForm(forms.ModelForm):
    """Title and description of a new survey."""
    class Meta:
        model = Survey
        fields = ['title', 'description']
        widgets = {
            'title': forms.TextInput(attrs={
                'class': INPUT_CLASSES,
                'placeholder': 'Survey title',
            }),
            'description': forms.Textarea(attrs={
                'class': INPUT_CLASSES,
                'rows': 3,
                'placeholder': 'Describe the survey (optional)',
            }),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Blank titles are reported by create_survey with its own message.
        self.fields['title'].required = False


class QuestionForm(forms.Form):
    """One question of a survey draft. Options are entered one per line."""
    text = forms.CharField(
        max_length=3000,
        required=False,
        widget=TextInput(attrs={'class': INPUT_CLASSES, 'placeholder': 'Question text'}),
    )
    question_type = forms.ChoiceField(
        choices=Question.QuestionType.choices,
        initial=Question.QuestionType.SINGLE_CHOICE,
        widget=forms.Select(attrs={'class': INPUT_CLASSES}),
    )
    options = forms.CharField(
        required=False,
        widget=Textarea(attrs={'class': INPUT_CLASSES, 'rows': 3, 'placeholder': 'One option per line'}),
        help_text="Choice questions need at least two options.",
    )
    is_required = forms.BooleanField(required=False, initial=True, label="Required")

    def clean_options(self) -> List[str]:
        raw = self.cleaned_data.get('options') or ""
        return unique_options(line.strip() for line in raw.splitlines() if line.strip())

    def is_blank(self) -> bool:
        """True for a form the author left untouched or emptied."""
        data = getattr(self, 'cleaned_data', {})
        return not (data.get('text') or "").strip() and not data.get('options')

    def to_draft(self) -> Dict[str, Any]:
        return {
            'text': self.cleaned_data.get('text', ""),
            'question_type': self.cleaned_data.get('question_type'),
            'options': self.cleaned_data.get('options', []),
            'is_required': self.cleaned_data.get('is_required', False),
        }


class BaseQuestionFormSet(forms.BaseFormSet):
    def drafts(self) -> List[Dict[str, Any]]:
        """
        Question drafts in display order, skipping deleted and blank forms.
        Each draft keeps the `index` of the form it came from.
        """
        return [
            dict(form.to_draft(), index=index)
            for index, form in enumerate(self.forms)
            if not self._should_delete_form(form) and not form.is_blank()
        ]

    def add_draft_error(self, error) -> bool:
        """Attach a question-level ValidationError to the form it names. False if it names none."""
        field = {'question_text': 'text', 'options': 'options'}.get(error.code)
        index = (error.params or {}).get('index')
        if field is None or index is None or not 0 <= index < len(self.forms):
            return False
        self.forms[index].add_error(field, error)
        return True


QuestionFormSet = forms.formset_factory(
    QuestionForm,
    formset=BaseQuestionFormSet,
    extra=1,
    can_delete=True,
)


class DynamicSurveyForm(forms.Form):
    """
    A form that is dynamically built from a Survey's Questions.
    """
    def __init__(self, *args, survey, **kwargs):
        self.survey = survey
        super().__init__(*args, **kwargs)
        self.questions = list(self.survey.questions.order_by('order'))

        for question in self.questions:
            field_class = self.get_field_class(question.question_type)
            field_kwargs = {
                'label': question.text,
                # Required answers are checked together in clean() so only the first gap is reported.
                'required': False,
                'widget': self.get_field_widget(question),
            }
            if question.is_choice:
                field_kwargs['choices'] = [(option, option) for option in question.options]

            self.fields[self.field_key(question)] = field_class(**field_kwargs)

    @staticmethod
    def field_key(question: Question) -> str:
        return f"question_{question.id}"

    def get_field_class(self, question_type):
        if question_type == Question.QuestionType.SINGLE_CHOICE:
            return forms.ChoiceField
        if question_type == Question.QuestionType.MULTIPLE_CHOICE:
            return forms.MultipleChoiceField
        return forms.CharField

    def get_field_widget(self, question):
        """Get the widget instance for a given question."""
        if question.question_type == Question.QuestionType.SINGLE_CHOICE:
            return RadioSelect(attrs={'class': 'h-4 w-4 text-blue-600 border-gray-300 focus:ring-blue-500'})
        if question.question_type == Question.QuestionType.MULTIPLE_CHOICE:
            return CheckboxSelectMultiple(attrs={'class': 'h-4 w-4 text-blue-600 border-gray-300 rounded focus:ring-blue-500'})
        return Textarea(attrs={'class': INPUT_CLASSES, 'rows': 3})

    def question_fields(self) -> Iterator[Tuple[Question, forms.BoundField]]:
        for question in self.questions:
            yield question, self[self.field_key(question)]

    def answers(self) -> Dict[int, Any]:
        """Cleaned answers keyed by question id."""
        return {
            question.id: self.cleaned_data.get(self.field_key(question))
            for question in self.questions
        }

    def clean(self):
        cleaned_data = super().clean()
        missing = first_missing_required(self.questions, self.answers())
        if missing is not None:
            logger.info("Survey %s submission blocked on required question %s", self.survey.pk, missing.pk)
            self.add_error(self.field_key(missing), f"Please answer the question: {missing.text}")
        return cleaned_data
