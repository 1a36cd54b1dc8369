from django.urls import path
from . import views

app_name = 'surveys'

urlpatterns = [
    path('', views.SurveyListView.as_view(), name='survey_list'),
    path('surveys/new/', views.survey_create, name='survey_create'),
    path('surveys/<int:survey_id>/take/', views.SurveyTakeView.as_view(), name='survey_take'),
    path('surveys/<int:survey_id>/results/', views.SurveyResultsView.as_view(), name='survey_results'),
    path('surveys/<int:survey_id>/results.csv', views.survey_results_csv, name='survey_results_csv'),
    path('surveys/<int:survey_id>/respondents/<int:user_id>/compare/', views.ResponseComparisonView.as_view(), name='response_comparison'),
    path('responses/<int:response_id>/', views.ResponseDetailView.as_view(), name='response_detail'),
]
