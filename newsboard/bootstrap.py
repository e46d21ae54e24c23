import logging
import os

import django
from django.core.management import call_command
from django.db import DEFAULT_DB_ALIAS


logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_MODULE = 'newsboard.settings'


def setup(settings_module=None):
    """Configure Django for use outside manage.py (scripts, workers, notebooks)."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', settings_module or DEFAULT_SETTINGS_MODULE)
    django.setup()


def migrate_schema(using=DEFAULT_DB_ALIAS, verbosity=0):
    """Bring the tables of database 'using' up to date with the models.

    The data access functions never create or alter tables; call this once, deliberately, when the
    process starts (or run 'manage.py migrate').
    """
    logger.info('Migrating database schema for %r', using)
    call_command('migrate', database=using, interactive=False, verbosity=verbosity)
