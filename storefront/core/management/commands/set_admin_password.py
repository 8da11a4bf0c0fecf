from getpass import getpass

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

User = get_user_model()


class Command(BaseCommand):
    help = 'Set the password of a staff account, creating the account with --create'

    def add_arguments(self, parser):
        parser.add_argument('email', help='Email of the admin account')
        parser.add_argument('--password', help='New password (prompted for when omitted)')
        parser.add_argument('--create', action='store_true', help='Create the staff account if it does not exist')

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        user = User.objects.filter(email__iexact=email).first()
        if not user and not options['create']:
            raise CommandError(f'No user with email {email}; pass --create to add one')

        password = options['password'] or getpass('New password: ')
        try:
            validate_password(password, user)
        except ValidationError as e:
            raise CommandError(' '.join(e.messages))

        if not user:
            user = User.objects.create_user(username=email, email=email, password=password, is_staff=True)
            self.stdout.write(self.style.SUCCESS(f'Created admin {email}'))
            return

        user.set_password(password)
        user.is_staff = True
        user.save(update_fields=['password', 'is_staff'])
        self.stdout.write(self.style.SUCCESS(f'Password updated for {email}'))
