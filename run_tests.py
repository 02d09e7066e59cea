#!/usr/bin/env python
"""
Test runner script for the whole back office suite
Usage: python run_tests.py [app ...]
"""
import os
import sys
import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'backend.core',
    'backend.companies',
    'backend.addresses',
    'backend.drivers',
    'backend.orders',
    'backend.charges',
    'backend.distance',
    'backend.sms',
    'backend.dashboard',
]

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'backend.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    labels = [f'backend.{name}' for name in sys.argv[1:]] or APPS
    failures = test_runner.run_tests(labels)
    sys.exit(bool(failures))
