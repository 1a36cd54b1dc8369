"""
Tests for the survey pages.

Covers:
- Login requirement and the survey list tabs
- Authoring a survey through the question formset
- Taking a survey, required answers and the one-response rule
- Owner-only results, CSV export, response detail and comparison
"""
from unittest import mock

from django.contrib.auth import get_user_model
from django.contrib.messages import get_messages
from django.db import DatabaseError
from django.test import TestCase, Client
from django.urls import reverse

from .models import Survey, Question, Response, Answer
from .services import create_survey, submit_response
from .views import GENERIC_FAILURE_MESSAGE

User = get_user_model()


def lunch_survey(creator, **kwargs):
    return create_survey(
        creator=creator,
        title=kwargs.pop('title', "Lunch"),
        description="Where should we eat?",
        questions=[
            {"text": "Which day?", "question_type": Question.QuestionType.SINGLE_CHOICE, "options": ["A", "B"]},
            {"text": "Which cuisines?", "question_type": Question.QuestionType.MULTIPLE_CHOICE, "options": ["Thai", "Pizza"], "is_required": False},
            {"text": "Anything else?", "question_type": Question.QuestionType.TEXT},
        ],
        **kwargs,
    )


class SurveyViewTestCase(TestCase):

    def setUp(self):
        self.client = Client()
        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='pw')
        self.respondent = User.objects.create_user(username='resp', email='resp@example.com', password='pw')
        self.stranger = User.objects.create_user(username='stranger', email='stranger@example.com', password='pw')
        self.survey = lunch_survey(self.owner)
        self.day, self.cuisines, self.notes = list(self.survey.questions.order_by('order'))

    def field(self, question):
        return f"question_{question.id}"


class SurveyListViewTests(SurveyViewTestCase):

    def test_login_required(self):
        response = self.client.get(reverse('surveys:survey_list'))

        self.assertEqual(response.status_code, 302)
        self.assertIn('/accounts/login/', response['Location'])

    def test_all_tab_hides_other_users_inactive_surveys(self):
        closed = lunch_survey(self.owner, title="Closed survey", is_active=False)
        self.client.force_login(self.respondent)

        response = self.client.get(reverse('surveys:survey_list'))

        self.assertEqual(response.status_code, 200)
        self.assertIn(self.survey, response.context['surveys'])
        self.assertNotIn(closed, response.context['surveys'])

    def test_owner_sees_own_inactive_survey(self):
        closed = lunch_survey(self.owner, title="Closed survey", is_active=False)
        self.client.force_login(self.owner)

        response = self.client.get(reverse('surveys:survey_list'))

        self.assertIn(closed, response.context['surveys'])

    def test_mine_tab_only_lists_own_surveys(self):
        own = lunch_survey(self.respondent, title="My own")
        self.client.force_login(self.respondent)

        response = self.client.get(reverse('surveys:survey_list'), {'tab': 'mine'})

        self.assertEqual(response.context['tab'], 'mine')
        self.assertEqual(list(response.context['surveys']), [own])

    def test_completed_surveys_marked(self):
        submit_response(survey=self.survey, respondent=self.respondent, answers={self.day.id: "A", self.notes.id: "ok"})
        self.client.force_login(self.respondent)

        response = self.client.get(reverse('surveys:survey_list'))

        self.assertIn(self.survey.id, response.context['responded_ids'])
        self.assertContains(response, "Completed")


class SurveyCreateViewTests(SurveyViewTestCase):

    def _post_data(self, title="Team offsite", questions=()):
        data = {
            'title': title,
            'description': "Planning",
            'questions-TOTAL_FORMS': str(len(questions)),
            'questions-INITIAL_FORMS': '0',
            'questions-MIN_NUM_FORMS': '0',
            'questions-MAX_NUM_FORMS': '1000',
            'save': '1',
        }
        for i, q in enumerate(questions):
            for key, value in q.items():
                data[f'questions-{i}-{key}'] = value
        return data

    def test_get_renders_empty_draft(self):
        self.client.force_login(self.owner)

        response = self.client.get(reverse('surveys:survey_create'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['formset'].total_form_count(), 1)

    def test_creates_survey_and_questions(self):
        self.client.force_login(self.owner)
        data = self._post_data(questions=[
            {'text': "Where?", 'question_type': 'single_choice', 'options': "Beach\n\nMountains\n", 'is_required': 'on'},
            {'text': "Comments", 'question_type': 'text', 'options': ""},
            {'text': "", 'question_type': 'single_choice', 'options': ""},
        ])

        response = self.client.post(reverse('surveys:survey_create'), data)

        self.assertRedirects(response, reverse('surveys:survey_list'))
        survey = Survey.objects.get(title="Team offsite")
        self.assertEqual(survey.creator, self.owner)
        questions = list(survey.questions.order_by('order'))
        self.assertEqual(len(questions), 2)
        self.assertEqual(questions[0].options, ["Beach", "Mountains"])
        self.assertTrue(questions[0].is_required)
        self.assertFalse(questions[1].is_required)

    def test_deleted_questions_are_skipped(self):
        self.client.force_login(self.owner)
        data = self._post_data(questions=[
            {'text': "Keep", 'question_type': 'text'},
            {'text': "Drop", 'question_type': 'text', 'DELETE': 'on'},
        ])

        self.client.post(reverse('surveys:survey_create'), data)

        survey = Survey.objects.get(title="Team offsite")
        self.assertEqual([q.text for q in survey.questions.all()], ["Keep"])

    def test_missing_title_reported_on_form(self):
        self.client.force_login(self.owner)
        data = self._post_data(title="", questions=[{'text': "Q", 'question_type': 'text'}])

        response = self.client.post(reverse('surveys:survey_create'), data)

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Please enter a survey title.")
        self.assertFalse(Survey.objects.filter(creator=self.owner).exclude(pk=self.survey.pk).exists())

    def test_no_questions_reported(self):
        self.client.force_login(self.owner)

        response = self.client.post(reverse('surveys:survey_create'), self._post_data())

        self.assertContains(response, "Please add at least one question.")
        self.assertFalse(Survey.objects.filter(title="Team offsite").exists())

    def test_choice_question_with_one_option_reported(self):
        self.client.force_login(self.owner)
        data = self._post_data(questions=[{'text': "Pick", 'question_type': 'multiple_choice', 'options': "Only one"}])

        response = self.client.post(reverse('surveys:survey_create'), data)

        self.assertContains(response, "Question 1 needs at least two options.")
        self.assertFalse(Survey.objects.filter(title="Team offsite").exists())

    def test_question_error_attached_to_offending_form(self):
        self.client.force_login(self.owner)
        data = self._post_data(questions=[
            {'text': "First", 'question_type': 'text'},
            {'text': "", 'question_type': 'single_choice', 'options': "A\nB"},
        ])

        response = self.client.post(reverse('surveys:survey_create'), data)

        formset = response.context['formset']
        self.assertEqual(formset.forms[1].errors['text'], ["Question 2 text cannot be empty."])
        self.assertEqual(formset.forms[0].errors, {})
        self.assertFalse(response.context['form'].non_field_errors())

    def test_question_number_matches_position_after_blank_form(self):
        self.client.force_login(self.owner)
        data = self._post_data(questions=[
            {'text': "", 'question_type': 'single_choice', 'options': ""},
            {'text': "Pick", 'question_type': 'single_choice', 'options': "Only"},
        ])

        response = self.client.post(reverse('surveys:survey_create'), data)

        formset = response.context['formset']
        self.assertEqual(formset.forms[1].errors['options'], ["Question 2 needs at least two options."])
        self.assertFalse(Survey.objects.filter(title="Team offsite").exists())

    def test_repeated_options_count_once(self):
        self.client.force_login(self.owner)
        data = self._post_data(questions=[{'text': "Pick", 'question_type': 'single_choice', 'options': "A\nA"}])

        response = self.client.post(reverse('surveys:survey_create'), data)

        self.assertContains(response, "Question 1 needs at least two options.")
        self.assertFalse(Survey.objects.filter(title="Team offsite").exists())

    def test_database_failure_rerenders_with_generic_message(self):
        self.client.force_login(self.owner)
        data = self._post_data(questions=[{'text': "Q", 'question_type': 'text'}])

        with mock.patch('surveys.views.create_survey', side_effect=DatabaseError("connection lost")):
            response = self.client.post(reverse('surveys:survey_create'), data)

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, GENERIC_FAILURE_MESSAGE)
        self.assertEqual(response.context['form']['title'].value(), "Team offsite")
        self.assertFalse(Survey.objects.filter(title="Team offsite").exists())

    def test_add_question_with_malformed_form_count(self):
        self.client.force_login(self.owner)
        data = self._post_data()
        del data['save']
        data['add_question'] = '1'
        data['questions-TOTAL_FORMS'] = 'many'

        response = self.client.post(reverse('surveys:survey_create'), data)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['formset'].total_form_count(), 1)

    def test_add_question_rerenders_with_extra_form(self):
        self.client.force_login(self.owner)
        data = self._post_data(questions=[{'text': "First", 'question_type': 'text'}])
        del data['save']
        data['add_question'] = '1'

        response = self.client.post(reverse('surveys:survey_create'), data)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['formset'].total_form_count(), 2)
        self.assertFalse(Survey.objects.filter(title="Team offsite").exists())


class SurveyTakeViewTests(SurveyViewTestCase):

    def test_renders_questions_in_order(self):
        self.client.force_login(self.respondent)

        response = self.client.get(reverse('surveys:survey_take', args=[self.survey.id]))

        self.assertEqual(response.status_code, 200)
        form = response.context['form']
        self.assertEqual(list(form.fields), [self.field(self.day), self.field(self.cuisines), self.field(self.notes)])

    def test_submission_records_response(self):
        self.client.force_login(self.respondent)

        response = self.client.post(reverse('surveys:survey_take', args=[self.survey.id]), {
            self.field(self.day): "B",
            self.field(self.cuisines): ["Thai", "Pizza"],
            self.field(self.notes): "See you there",
        })

        self.assertRedirects(response, reverse('surveys:survey_list'))
        submitted = Response.objects.get(survey=self.survey, respondent=self.respondent)
        self.assertEqual(submitted.answers.get(question=self.cuisines).value, ["Thai", "Pizza"])
        self.assertEqual(submitted.answers.get(question=self.day).value, "B")

    def test_empty_required_text_blocks_submission(self):
        self.client.force_login(self.respondent)

        response = self.client.post(reverse('surveys:survey_take', args=[self.survey.id]), {
            self.field(self.day): "A",
            self.field(self.notes): "",
        })

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Please answer the question: Anything else?")
        self.assertEqual(response.context['form'].errors, {
            self.field(self.notes): ["Please answer the question: Anything else?"],
        })
        self.assertEqual(Response.objects.count(), 0)
        self.assertEqual(Answer.objects.count(), 0)

    def test_only_first_missing_required_question_reported(self):
        self.client.force_login(self.respondent)

        response = self.client.post(reverse('surveys:survey_take', args=[self.survey.id]), {})

        self.assertEqual(list(response.context['form'].errors), [self.field(self.day)])

    def test_invalid_option_rejected(self):
        self.client.force_login(self.respondent)

        response = self.client.post(reverse('surveys:survey_take', args=[self.survey.id]), {
            self.field(self.day): "Not an option",
            self.field(self.notes): "x",
        })

        self.assertEqual(response.status_code, 200)
        self.assertIn(self.field(self.day), response.context['form'].errors)
        self.assertEqual(Response.objects.count(), 0)

    def test_database_failure_rerenders_with_generic_message(self):
        self.client.force_login(self.respondent)

        with mock.patch('surveys.views.submit_response', side_effect=DatabaseError("connection lost")):
            response = self.client.post(reverse('surveys:survey_take', args=[self.survey.id]), {
                self.field(self.day): "A",
                self.field(self.notes): "x",
            })

        self.assertEqual(response.status_code, 200)
        messages = [str(m) for m in get_messages(response.wsgi_request)]
        self.assertIn(GENERIC_FAILURE_MESSAGE, messages)
        self.assertEqual(Response.objects.count(), 0)
        self.assertEqual(Answer.objects.count(), 0)

    def test_already_submitted_state(self):
        submit_response(survey=self.survey, respondent=self.respondent, answers={self.day.id: "A", self.notes.id: "x"})
        self.client.force_login(self.respondent)

        for method in (self.client.get, self.client.post):
            response = method(reverse('surveys:survey_take', args=[self.survey.id]))

            self.assertRedirects(response, reverse('surveys:survey_list'))
            messages = [str(m) for m in get_messages(response.wsgi_request)]
            self.assertIn("You have already completed 'Lunch'.", messages)

        self.assertEqual(Response.objects.filter(respondent=self.respondent).count(), 1)

    def test_inactive_survey_of_another_user_not_found(self):
        self.survey.is_active = False
        self.survey.save()
        self.client.force_login(self.respondent)

        response = self.client.get(reverse('surveys:survey_take', args=[self.survey.id]))

        self.assertEqual(response.status_code, 404)

    def test_owner_cannot_answer_own_closed_survey(self):
        self.survey.is_active = False
        self.survey.save()
        self.client.force_login(self.owner)

        response = self.client.get(reverse('surveys:survey_take', args=[self.survey.id]))

        self.assertRedirects(response, reverse('surveys:survey_list'))


class SurveyResultsViewTests(SurveyViewTestCase):

    def setUp(self):
        super().setUp()
        for i, day in enumerate(["A", "A", "B"]):
            user = User.objects.create_user(username=f'voter{i}', email=f'voter{i}@example.com', password='pw')
            submit_response(survey=self.survey, respondent=user, answers={self.day.id: day, self.notes.id: f"note {i}"})

    def test_owner_sees_aggregated_results(self):
        self.client.force_login(self.owner)

        response = self.client.get(reverse('surveys:survey_results', args=[self.survey.id]))

        self.assertEqual(response.status_code, 200)
        results = response.context['results']
        self.assertEqual(results.total_responses, 3)
        self.assertContains(response, "2 (67%)")
        self.assertContains(response, "1 (33%)")
        # Nobody picked a cuisine, the options are still listed.
        self.assertContains(response, "Thai")
        self.assertContains(response, "0 (0%)")
        self.assertContains(response, "note 2")

    def test_non_owner_gets_not_found(self):
        self.client.force_login(self.respondent)

        response = self.client.get(reverse('surveys:survey_results', args=[self.survey.id]))

        self.assertEqual(response.status_code, 404)

    def test_csv_export(self):
        self.client.force_login(self.owner)

        response = self.client.get(reverse('surveys:survey_results_csv', args=[self.survey.id]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'text/csv')
        lines = response.content.decode().splitlines()
        self.assertEqual(lines[0], "Question,Type,Option / Answer,Count,Percentage")
        self.assertIn("Which day?,single_choice,A,2,67%", lines)
        self.assertIn("Which cuisines?,multiple_choice,Pizza,0,0%", lines)
        self.assertIn("Anything else?,text,note 0,,", lines)

    def test_csv_export_owner_only(self):
        self.client.force_login(self.stranger)

        response = self.client.get(reverse('surveys:survey_results_csv', args=[self.survey.id]))

        self.assertEqual(response.status_code, 404)


class ResponseDetailViewTests(SurveyViewTestCase):

    def setUp(self):
        super().setUp()
        self.response_obj = submit_response(
            survey=self.survey,
            respondent=self.respondent,
            answers={self.day.id: "A", self.notes.id: "Bring snacks"},
        )

    def test_respondent_sees_own_response(self):
        self.client.force_login(self.respondent)

        response = self.client.get(reverse('surveys:response_detail', args=[self.response_obj.id]))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Bring snacks")
        # The optional multiple-choice question was skipped.
        self.assertContains(response, "Unanswered")

    def test_owner_sees_response(self):
        self.client.force_login(self.owner)

        response = self.client.get(reverse('surveys:response_detail', args=[self.response_obj.id]))

        self.assertEqual(response.status_code, 200)

    def test_stranger_gets_not_found(self):
        self.client.force_login(self.stranger)

        response = self.client.get(reverse('surveys:response_detail', args=[self.response_obj.id]))

        self.assertEqual(response.status_code, 404)


class ResponseComparisonViewTests(SurveyViewTestCase):

    def test_single_response_reports_nothing_to_compare(self):
        submit_response(survey=self.survey, respondent=self.respondent, answers={self.day.id: "A", self.notes.id: "x"})
        self.client.force_login(self.owner)

        response = self.client.get(reverse('surveys:response_comparison', args=[self.survey.id, self.respondent.id]))

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.context['comparison'].is_comparable)
        self.assertContains(response, "Only 1 response on file; nothing to compare.")

    def test_respondent_may_view_own_history(self):
        self.client.force_login(self.respondent)

        response = self.client.get(reverse('surveys:response_comparison', args=[self.survey.id, self.respondent.id]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['comparison'].selected, [])

    def test_stranger_gets_not_found(self):
        self.client.force_login(self.stranger)

        response = self.client.get(reverse('surveys:response_comparison', args=[self.survey.id, self.respondent.id]))

        self.assertEqual(response.status_code, 404)
