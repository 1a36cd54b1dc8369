from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from surveys.seed import seed_surveys

User = get_user_model()


class Command(BaseCommand):
    help = 'Seeds the database with a default set of demo surveys owned by the given user.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--email',
            type=str,
            required=True,
            help='Email of the user who will own the demo surveys'
        )

    def handle(self, *args, **options):
        email = options['email']
        try:
            creator = User.objects.get(email=email)
        except User.DoesNotExist:
            raise CommandError(f"User with email {email} does not exist")

        self.stdout.write(self.style.SUCCESS(f'Seeding demo surveys for {email}...'))

        for survey, created in seed_surveys(creator):
            if created:
                self.stdout.write(self.style.SUCCESS(f'  Created Survey: "{survey.title}"'))
            else:
                self.stdout.write(self.style.NOTICE(f'  Survey "{survey.title}" already exists, skipping.'))

        self.stdout.write(self.style.SUCCESS('Successfully seeded survey data.'))
