import logging

from asgiref.sync import sync_to_async
from django.contrib.auth.hashers import make_password
from django.core.exceptions import ValidationError
from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction

from newsboard.errors import (ConstraintViolation, NotFound, constraint_violation_from,
                              provider_errors)
from users.models import UserModel


logger = logging.getLogger(__name__)


def create_new_user(username, password, email=None, *, using=DEFAULT_DB_ALIAS):
    """Insert a new user and return it, with its id and timestamps filled in.

    The password is hashed before it is stored. Raises ConstraintViolation for a blank or
    malformed field, or if the username or email is already taken, and ProviderError if the
    database fails.
    """
    user = UserModel(
        username=username,
        # make_password() turns None into an unusable password, which would hide a missing one
        password=make_password(password) if password else '',
        email=email or None,
    )
    try:
        # uniqueness is left to the database, so that it is checked on the database in 'using'
        user.full_clean(validate_unique=False, validate_constraints=False)
    except ValidationError as e:
        logger.info('Rejected new user %r: %s', username, e.messages)
        raise constraint_violation_from(e, 'user') from e

    with provider_errors('create_new_user'):
        try:
            with transaction.atomic(using=using):
                user.save(using=using, force_insert=True)
        except IntegrityError as e:
            logger.info('Rejected new user %r: %s', username, e)
            raise ConstraintViolation(
                'A user with that username or email address already exists!') from e

    logger.info('Created user %s (%r)', user.pk, user.username)
    return user


def get_user(user_id, *, using=DEFAULT_DB_ALIAS):
    """Return the user with primary key 'user_id', or raise NotFound."""
    with provider_errors('get_user'):
        try:
            return UserModel.objects.using(using).get(pk=user_id)
        except (UserModel.DoesNotExist, ValueError, TypeError):
            raise NotFound('User {} not found!'.format(user_id)) from None


async def acreate_new_user(username, password, email=None, *, using=DEFAULT_DB_ALIAS):
    return await sync_to_async(create_new_user)(username, password, email, using=using)


async def aget_user(user_id, *, using=DEFAULT_DB_ALIAS):
    return await sync_to_async(get_user)(user_id, using=using)
