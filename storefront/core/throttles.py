"""
Request rate limits.

Rates are read from REST_FRAMEWORK['DEFAULT_THROTTLE_RATES'] and accept a
period multiplier, e.g. ``5/15m`` (five requests per fifteen minutes) or
``3/1h``.
"""
import logging
import re

from rest_framework.throttling import SimpleRateThrottle

security_logger = logging.getLogger('storefront.security')

PERIOD_SECONDS = {'s': 1, 'm': 60, 'h': 3600, 'd': 86400}
PERIOD_REGEX = re.compile(r'^(\d*)\s*([smhd])')


class MultiplierRateThrottle(SimpleRateThrottle):
    """SimpleRateThrottle whose period may carry a numeric multiplier"""

    def parse_rate(self, rate):
        if rate is None:
            return (None, None)
        num, period = rate.split('/')
        match = PERIOD_REGEX.match(period.strip().lower())
        if not match:
            raise ValueError(f'Invalid throttle rate: {rate}')
        multiplier = int(match.group(1) or 1)
        return (int(num), multiplier * PERIOD_SECONDS[match.group(2)])

    def throttle_failure(self):
        security_logger.warning(f"Rate limit exceeded for scope={self.scope} key={self.key}")
        return super().throttle_failure()


class ApiRateThrottle(MultiplierRateThrottle):
    """General API limit, per user when authenticated and per IP otherwise"""
    scope = 'api'

    def get_cache_key(self, request, view):
        if request.user and request.user.is_authenticated:
            ident = request.user.pk
        else:
            ident = self.get_ident(request)
        return self.cache_format % {'scope': self.scope, 'ident': ident}


class IPRateThrottle(MultiplierRateThrottle):
    """Limit keyed on the client IP regardless of authentication"""

    def get_cache_key(self, request, view):
        return self.cache_format % {'scope': self.scope, 'ident': self.get_ident(request)}


class RegisterRateThrottle(IPRateThrottle):
    scope = 'register'


class LoginRateThrottle(IPRateThrottle):
    scope = 'login'


class ForgotPasswordRateThrottle(IPRateThrottle):
    scope = 'forgot_password'
