"""
Input validators shared by the customer, checkout and admin endpoints
"""
import re

from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator

UK_PHONE_REGEX = r'^(\+44|0)[1-9]\d{1,4}\s?\d{3,4}\s?\d{3,4}$'
UK_POSTCODE_REGEX = r'^[A-Z]{1,2}\d[A-Z\d]?\s?\d[A-Z]{2}$'

validate_uk_phone = RegexValidator(
    regex=UK_PHONE_REGEX,
    message='Please enter a valid UK phone number',
    code='invalid_phone',
)

validate_uk_postcode = RegexValidator(
    regex=re.compile(UK_POSTCODE_REGEX, re.IGNORECASE),
    message='Please enter a valid UK postcode',
    code='invalid_postcode',
)


def normalize_postcode(value):
    """Upper-case and trim a postcode"""
    return (value or '').strip().upper()


class PasswordComplexityValidator:
    """
    Require upper case, lower case, a digit and a special character.
    Length and common-password checks are left to Django's own validators.
    """

    def validate(self, password, user=None):
        errors = []
        if not re.search(r'[A-Z]', password):
            errors.append('Password must contain at least one uppercase letter')
        if not re.search(r'[a-z]', password):
            errors.append('Password must contain at least one lowercase letter')
        if not re.search(r'\d', password):
            errors.append('Password must contain at least one number')
        if not re.search(r'[^A-Za-z0-9]', password):
            errors.append('Password must contain at least one special character')
        if errors:
            raise ValidationError(errors, code='password_too_simple')

    def get_help_text(self):
        return 'Your password must contain upper and lower case letters, a number and a special character.'
