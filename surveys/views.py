import csv
import logging
from datetime import datetime
from typing import Any, Dict

from django.contrib import messages
from django.contrib.auth import get_user_model
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.db.models import Count
from django.http import Http404, HttpRequest, HttpResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.utils.decorators import method_decorator
from django.views.generic import DetailView, ListView, TemplateView
from django.views.generic.edit import FormView

from .comparison import MAX_COMPARED_RESPONSES, load_comparison
from .exceptions import AlreadySubmittedError, SurveyClosedError
from .forms import DynamicSurveyForm, QuestionFormSet, SurveyForm
from .models import Response, Survey
from .results import load_survey_results
from .services import create_survey, has_responded, submit_response

logger = logging.getLogger(__name__)

User = get_user_model()

GENERIC_FAILURE_MESSAGE = "Something went wrong while talking to the database. Please try again."


@method_decorator(login_required, name='dispatch')
class SurveyListView(ListView):
    """All surveys visible to the user, or only the user's own on the 'mine' tab."""
    template_name = "surveys/survey_list.html"
    context_object_name = "surveys"

    def get_tab(self) -> str:
        return 'mine' if self.request.GET.get('tab') == 'mine' else 'all'

    def get_queryset(self):
        if self.get_tab() == 'mine':
            queryset = Survey.objects.owned_by(self.request.user)
        else:
            queryset = Survey.objects.visible_to(self.request.user)
        return queryset.select_related('creator').annotate(response_count=Count('responses')).order_by('-created_at', '-id')

    def get_context_data(self, **kwargs: Any) -> Dict[str, Any]:
        context = super().get_context_data(**kwargs)
        context.update({
            'tab': self.get_tab(),
            'responded_ids': set(
                Response.objects.filter(respondent=self.request.user).values_list('survey_id', flat=True)
            ),
        })
        return context


@login_required
def survey_create(request: HttpRequest) -> HttpResponse:
    """Author a survey and its ordered questions."""
    if request.method == 'POST':
        form = SurveyForm(request.POST)
        formset = QuestionFormSet(request.POST, prefix='questions')

        if 'add_question' in request.POST:
            # Re-render the draft with one more blank question form.
            data = request.POST.copy()
            data['questions-TOTAL_FORMS'] = str(formset.total_form_count() + 1)
            form = SurveyForm(data)
            formset = QuestionFormSet(data, prefix='questions')
            return render(request, 'surveys/survey_create.html', {'form': form, 'formset': formset})

        if form.is_valid() and formset.is_valid():
            try:
                survey = create_survey(
                    creator=request.user,
                    title=form.cleaned_data.get('title') or "",
                    description=form.cleaned_data.get('description') or "",
                    questions=formset.drafts(),
                )
            except ValidationError as e:
                logger.info("Survey draft rejected: %s", e.messages[0])
                if not formset.add_draft_error(e):
                    form.add_error('title' if e.code == 'title' else None, e)
            except DatabaseError:
                logger.exception("Failed to save survey for user %s", request.user.pk)
                messages.error(request, GENERIC_FAILURE_MESSAGE)
            else:
                messages.success(request, f"'{survey.title}' created successfully!")
                return redirect('surveys:survey_list')
    else:
        form = SurveyForm()
        formset = QuestionFormSet(prefix='questions')

    return render(request, 'surveys/survey_create.html', {
        'form': form,
        'formset': formset,
    })


@method_decorator(login_required, name='dispatch')
class SurveyTakeView(FormView):
    """
    Displays a survey's questions and records the user's single response.
    """
    form_class = DynamicSurveyForm
    template_name = "surveys/survey_form.html"

    def setup(self, request: HttpRequest, *args: Any, **kwargs: Any) -> None:
        """Initialize attributes for the view."""
        super().setup(request, *args, **kwargs)
        self.survey_id = self.kwargs['survey_id']

    def dispatch(self, request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        """
        Central entry point for the view. Handles visibility and the one-response rule.
        """
        self.survey = get_object_or_404(Survey.objects.visible_to(request.user), pk=self.survey_id)

        if not self.survey.is_active:
            messages.info(request, f"'{self.survey.title}' is not accepting responses.")
            return redirect('surveys:survey_list')

        if has_responded(self.survey, request.user):
            messages.info(request, f"You have already completed '{self.survey.title}'.")
            return redirect('surveys:survey_list')

        return super().dispatch(request, *args, **kwargs)

    def get_form_kwargs(self) -> Dict[str, Any]:
        """Pass the survey object to the form's constructor."""
        kwargs = super().get_form_kwargs()
        kwargs['survey'] = self.survey
        return kwargs

    def get_context_data(self, **kwargs: Any) -> Dict[str, Any]:
        context = super().get_context_data(**kwargs)
        context.update({
            'survey': self.survey,
            'page_title': self.survey.title,
        })
        return context

    def form_valid(self, form: DynamicSurveyForm) -> HttpResponse:
        """Process the valid form and create the response."""
        try:
            submit_response(survey=self.survey, respondent=self.request.user, answers=form.answers())
        except (AlreadySubmittedError, SurveyClosedError) as e:
            messages.info(self.request, str(e))
            return redirect('surveys:survey_list')
        except ValidationError as e:
            form.add_error(None, e)
            return self.form_invalid(form)
        except DatabaseError:
            logger.exception("Failed to save response to survey %s", self.survey.pk)
            messages.error(self.request, GENERIC_FAILURE_MESSAGE)
            return self.form_invalid(form)

        messages.success(self.request, f"Thanks! Your response to '{self.survey.title}' was recorded.")
        return redirect('surveys:survey_list')


@method_decorator(login_required, name='dispatch')
class SurveyResultsView(DetailView):
    """Aggregated results, visible to the survey's creator only."""
    template_name = "surveys/survey_results.html"
    context_object_name = "survey"
    pk_url_kwarg = 'survey_id'

    def get_queryset(self):
        return Survey.objects.owned_by(self.request.user)

    def get_context_data(self, **kwargs: Any) -> Dict[str, Any]:
        context = super().get_context_data(**kwargs)
        context.update({
            'results': load_survey_results(self.object),
            'responses': self.object.responses.select_related('respondent').order_by('-created_at', '-id'),
        })
        return context


@login_required
def survey_results_csv(request: HttpRequest, survey_id: int) -> HttpResponse:
    """Export a survey's aggregated results as CSV."""
    survey = get_object_or_404(Survey.objects.owned_by(request.user), pk=survey_id)
    results = load_survey_results(survey)

    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="survey_{survey.pk}_results_{datetime.now().strftime("%Y%m%d")}.csv"'

    writer = csv.writer(response)
    writer.writerow(['Question', 'Type', 'Option / Answer', 'Count', 'Percentage'])

    for stats in results.stats:
        question = stats.question
        if stats.is_text:
            for text in stats.text_answers:
                writer.writerow([question.text, question.question_type, text, '', ''])
        else:
            for row in stats.rows():
                writer.writerow([question.text, question.question_type, row.option, row.count, f"{row.percentage}%"])

    return response


@method_decorator(login_required, name='dispatch')
class ResponseDetailView(DetailView):
    """One response shown against its survey's questions."""
    template_name = "surveys/response_detail.html"
    context_object_name = "response"
    pk_url_kwarg = 'response_id'

    def get_queryset(self):
        return Response.objects.visible_to(self.request.user).select_related('survey', 'respondent').prefetch_related('answers')

    def get_context_data(self, **kwargs: Any) -> Dict[str, Any]:
        context = super().get_context_data(**kwargs)
        response = self.object
        context.update({
            'survey': response.survey,
            'rows': [(question, response.answer_for(question)) for question in response.survey.questions.order_by('order')],
        })
        return context


@method_decorator(login_required, name='dispatch')
class ResponseComparisonView(TemplateView):
    """Side-by-side view of up to three of one respondent's responses to a survey."""
    template_name = "surveys/response_comparison.html"

    def get_context_data(self, **kwargs: Any) -> Dict[str, Any]:
        context = super().get_context_data(**kwargs)
        survey = get_object_or_404(Survey, pk=self.kwargs['survey_id'])
        respondent = get_object_or_404(User, pk=self.kwargs['user_id'])

        # Only the survey's creator and the respondent themself may look.
        if not (survey.is_owned_by(self.request.user) or respondent.pk == self.request.user.pk):
            raise Http404("No responses found.")

        comparison = load_comparison(survey, respondent, self.request.GET.getlist('response'))
        context.update({
            'survey': survey,
            'respondent': respondent,
            'comparison': comparison,
            'max_compared': MAX_COMPARED_RESPONSES,
        })
        return context
