from django.contrib.auth.models import AbstractUser

from .design import import_survey_design
from .models import Survey


SURVEYS_TO_CREATE = [
    {
        "title": "Team Lunch Preferences",
        "description": "Help us plan the next team lunch.",
        "questions": [
            {"text": "Which day works best?", "type": "single_choice", "options": ["Monday", "Wednesday", "Friday"]},
            {"text": "Which cuisines would you enjoy?", "type": "multiple_choice", "options": ["Italian", "Thai", "Mexican", "Indian"]},
            {"text": "Any dietary restrictions we should know about?", "type": "text", "is_required": False},
        ]
    },
    {
        "title": "Workshop Feedback",
        "description": "Tell us how the workshop went so we can improve the next one.",
        "questions": [
            {"text": "How would you rate the workshop overall?", "type": "single_choice", "options": ["Poor", "Fair", "Good", "Excellent"]},
            {"text": "Which sessions did you attend?", "type": "multiple_choice", "options": ["Keynote", "Hands-on lab", "Panel", "Q&A"], "is_required": False},
            {"text": "What should we change next time?", "type": "text"},
        ]
    },
]


def seed_surveys(creator: AbstractUser):
    """
    Creates the demo surveys in SURVEYS_TO_CREATE for `creator`.
    A title the creator already has is left untouched, so this can run repeatedly.
    """
    for design in SURVEYS_TO_CREATE:
        existing = Survey.objects.filter(creator=creator, title=design["title"]).first()
        if existing:
            yield existing, False
            continue
        yield import_survey_design(design, creator=creator), True
