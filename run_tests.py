#!/usr/bin/env python
"""
Run every app's test suite
Usage: python run_tests.py [app ...]
"""
import os
import sys
import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'storefront.core',
    'storefront.catalog',
    'storefront.inventory',
    'storefront.orders',
    'storefront.payments',
    'storefront.vouchers',
    'storefront.supplies',
    'storefront.custom_orders',
    'storefront.reports',
]

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'storefront.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests(sys.argv[1:] or APPS)
    sys.exit(bool(failures))
