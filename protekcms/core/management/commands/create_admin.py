from django.core.management.base import BaseCommand, CommandError
from django.contrib.auth import get_user_model

User = get_user_model()


class Command(BaseCommand):
    help = 'Create a dashboard administrator without prompts (for containers and first deploys)'

    def add_arguments(self, parser):
        parser.add_argument('--email', required=True, help='Administrator email (also used as username)')
        parser.add_argument('--password', required=True, help='Administrator password')
        parser.add_argument('--name', default='', help='Display name')
        parser.add_argument(
            '--skip-existing',
            action='store_true',
            help='Exit quietly when a user with this email already exists',
        )

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        if User.objects.filter(email__iexact=email).exists():
            if options['skip_existing']:
                self.stdout.write(self.style.WARNING(f'User {email} already exists, skipping'))
                return
            raise CommandError(f'User with email {email} already exists')

        user = User(
            username=email,
            email=email,
            name=options['name'],
            role=User.ROLE_ADMIN,
            is_staff=True,
            is_superuser=True,
            is_active=True,
        )
        user.set_password(options['password'])
        user.save()
        self.stdout.write(self.style.SUCCESS(f'Created administrator {email} (id={user.pk})'))
