"""
Import a survey design from JSON.

Usage:
    python manage.py import_survey_design <file.json> --email <creator> [options]

Examples:
    # Create a survey owned by alice@example.com
    python manage.py import_survey_design lunch.json --email alice@example.com

    # Validate only (don't create anything)
    python manage.py import_survey_design lunch.json --validate-only
"""
import json
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from surveys.design import validate_survey_design, import_survey_design

User = get_user_model()


class Command(BaseCommand):
    help = 'Create a survey from a JSON design file'

    def add_arguments(self, parser):
        parser.add_argument(
            'json_file',
            type=str,
            help='Path to the JSON file containing the survey design'
        )
        parser.add_argument(
            '--email',
            type=str,
            help='Email of the user who will own the survey'
        )
        parser.add_argument(
            '--validate-only',
            action='store_true',
            help='Only validate the JSON, do not create anything'
        )

    def handle(self, *args, **options):
        json_file = options['json_file']
        email = options.get('email')
        validate_only = options.get('validate_only', False)

        # Load the JSON file
        try:
            with open(json_file, 'r') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise CommandError(f"File not found: {json_file}")
        except json.JSONDecodeError as e:
            raise CommandError(f"Invalid JSON in {json_file}: {e}")

        errors = validate_survey_design(data)
        if errors:
            self.stdout.write(self.style.ERROR("Validation errors:"))
            for error in errors:
                self.stdout.write(self.style.ERROR(f"  - {error}"))
            raise CommandError("JSON validation failed")

        if validate_only:
            self.stdout.write(self.style.SUCCESS("JSON is valid!"))
            self._print_summary(data)
            return

        if not email:
            raise CommandError("--email is required unless --validate-only is given")
        try:
            creator = User.objects.get(email=email)
        except User.DoesNotExist:
            raise CommandError(f"User with email {email} does not exist")

        try:
            survey = import_survey_design(data, creator=creator, validate=False)
        except ValidationError as e:
            raise CommandError("; ".join(e.messages))

        self.stdout.write(self.style.SUCCESS(f"\nSuccessfully created survey:"))
        self.stdout.write(f"  Title: {survey.title}")
        self.stdout.write(f"  ID: {survey.pk}")
        self.stdout.write(f"  Questions: {survey.questions.count()}")

    def _print_summary(self, data):
        """Print a summary of what the JSON contains."""
        questions = data.get("questions", [])
        self.stdout.write(f"\nSurvey Design:")
        self.stdout.write(f"  Title: {data.get('title', '(not specified)')}")
        self.stdout.write(f"\nQuestions ({len(questions)}):")
        for question in questions:
            self.stdout.write(f"  - [{question.get('type', '?')}] {question.get('text', '?')}")
