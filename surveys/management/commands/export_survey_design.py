"""
Export a survey design to JSON.

Usage:
    python manage.py export_survey_design <survey_id> [--output <file.json>]
"""
import json
from django.core.management.base import BaseCommand, CommandError

from surveys.design import survey_to_design
from surveys.models import Survey


class Command(BaseCommand):
    help = 'Export a survey design (title, description and questions) to JSON'

    def add_arguments(self, parser):
        parser.add_argument(
            'survey_id',
            type=int,
            help='ID of the survey to export'
        )
        parser.add_argument(
            '--output', '-o',
            type=str,
            help='Output file path (default: stdout)'
        )
        parser.add_argument(
            '--indent',
            type=int,
            default=2,
            help='JSON indentation level (default: 2)'
        )

    def handle(self, *args, **options):
        survey_id = options['survey_id']
        output_file = options.get('output')

        try:
            survey = Survey.objects.get(pk=survey_id)
        except Survey.DoesNotExist:
            raise CommandError(f"Survey with ID {survey_id} does not exist")

        json_output = json.dumps(survey_to_design(survey), indent=options['indent'], ensure_ascii=False)

        if output_file:
            with open(output_file, 'w') as f:
                f.write(json_output)
            self.stdout.write(self.style.SUCCESS(f"Exported survey '{survey.title}' to {output_file}"))
        else:
            self.stdout.write(json_output)
