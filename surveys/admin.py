from django.contrib import admin
from .models import Survey, Question, Response, Answer


class QuestionInline(admin.TabularInline):
    """
    Inline view of Questions within the Survey admin page.
    """
    model = Question
    extra = 0
    ordering = ['order']
    fields = ('order', 'text', 'question_type', 'options', 'is_required')


@admin.register(Survey)
class SurveyAdmin(admin.ModelAdmin):
    """
    Admin view for Surveys, with inline Questions.
    Toggling `is_active` here is the only way to close a survey to new responses.
    """
    list_display = ('title', 'creator', 'is_active', 'get_response_count', 'created_at')
    list_filter = ('is_active', 'created_at')
    search_fields = ('title', 'creator__email')
    readonly_fields = ('creator', 'created_at', 'updated_at')
    inlines = [QuestionInline]

    def get_response_count(self, obj):
        return obj.responses.count()
    get_response_count.short_description = 'Responses'

    def save_model(self, request, obj, form, change):
        if not change:
            obj.creator = request.user
        super().save_model(request, obj, form, change)


class AnswerInline(admin.TabularInline):
    """
    Read-only view of Answers within the Response admin page.
    """
    model = Answer
    extra = 0
    fields = ('question', 'value', 'created_at')
    readonly_fields = ('question', 'value', 'created_at')

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Response)
class ResponseAdmin(admin.ModelAdmin):
    list_display = ('survey', 'respondent', 'created_at')
    list_filter = ('survey', 'created_at')
    search_fields = ('survey__title', 'respondent__email')
    date_hierarchy = 'created_at'
    readonly_fields = ('survey', 'respondent', 'created_at')
    inlines = [AnswerInline]
