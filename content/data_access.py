import logging
from collections import namedtuple

from asgiref.sync import sync_to_async
from django.core.exceptions import ValidationError
from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction
from django.db.models import Count, Q

from content.models import ContentModel, VoteModel
from newsboard.errors import (ConstraintViolation, DuplicateVote, NotFound,
                              constraint_violation_from, provider_errors)
from users.models import UserModel


logger = logging.getLogger(__name__)


VoteTally = namedtuple('VoteTally', ['up', 'down', 'score'])


def _get_or_not_found(queryset, pk, what):
    try:
        return queryset.get(pk=pk)
    except (queryset.model.DoesNotExist, ValueError, TypeError):
        raise NotFound('{} {} not found!'.format(what, pk)) from None


# ========== Content ==========

def create_new_content(user_id, url, title, *, using=DEFAULT_DB_ALIAS):
    """Create a content item owned by user 'user_id' and return it.

    The owner lookup and the insert happen in one transaction, so there is never a content row
    without an owner. Raises NotFound if the user does not exist, ConstraintViolation for a blank
    or malformed url or title, and ProviderError if the database fails.
    """
    with provider_errors('create_new_content'):
        with transaction.atomic(using=using):
            # lock the owner so it can't be deleted between the lookup and the insert
            owner = _get_or_not_found(
                UserModel.objects.using(using).select_for_update(), user_id, 'User')
            content = ContentModel(owner=owner, url=url, title=title)
            try:
                # the owner was just fetched from 'using'; don't re-check it against the default db
                content.full_clean(exclude=['owner'], validate_unique=False,
                                   validate_constraints=False)
            except ValidationError as e:
                logger.info('Rejected new content for user %s: %s', user_id, e.messages)
                raise constraint_violation_from(e, 'content') from e
            content.save(using=using, force_insert=True)

    logger.info('Created content %s (%r) for user %s', content.pk, content.url, owner.pk)
    return content


def get_content(content_id, *, using=DEFAULT_DB_ALIAS):
    """Return the content item with primary key 'content_id', or raise NotFound."""
    with provider_errors('get_content'):
        return _get_or_not_found(ContentModel.objects.using(using), content_id, 'Content')


# ========== Vote ==========

def vote_on_content(content_id, user_id, is_up_vote, *, using=DEFAULT_DB_ALIAS):
    """Record user 'user_id' voting on content 'content_id', up if is_up_vote, else down.

    A user gets one vote per content item, whichever the direction: a second attempt raises
    DuplicateVote and the first vote stands. Duplicates are refused by the vote table's primary
    key, so concurrent attempts on the same pair are safe: one wins, the others raise
    DuplicateVote. Also raises NotFound if the user or the content does not exist,
    ConstraintViolation if is_up_vote is not a bool, and ProviderError if the database fails.
    """
    if not isinstance(is_up_vote, bool):
        logger.info('Rejected vote by user %s on content %s: direction %r', user_id, content_id,
                    is_up_vote)
        raise ConstraintViolation(
            'Invalid vote: up_vote: {!r} is not true or false.'.format(is_up_vote),
            errors={'up_vote': ['Must be true or false.']})

    with provider_errors('vote_on_content'):
        with transaction.atomic(using=using):
            # lock both rows so neither can be deleted between the lookups and the insert
            user = _get_or_not_found(
                UserModel.objects.using(using).select_for_update(), user_id, 'User')
            content = _get_or_not_found(
                ContentModel.objects.using(using).select_for_update(), content_id, 'Content')
            try:
                # savepoint, so the surrounding transaction survives a refused insert
                with transaction.atomic(using=using):
                    vote = VoteModel.objects.using(using).create(
                        user=user,
                        content=content,
                        up_vote=is_up_vote,
                    )
            except IntegrityError as e:
                if VoteModel.objects.using(using).filter(user=user, content=content).exists():
                    logger.info('User %s has already voted on content %s', user.pk, content.pk)
                    raise DuplicateVote('A vote already exists for this user and content!') from e
                raise ConstraintViolation(
                    'Vote by user {} on content {} violates a database constraint: {}'
                    .format(user.pk, content.pk, e)) from e

    logger.info('User %s voted %s on content %s', user.pk, 'up' if vote.up_vote else 'down',
                content.pk)
    return vote


def get_vote(content_id, user_id, *, using=DEFAULT_DB_ALIAS):
    """Return the vote user 'user_id' cast on content 'content_id', or raise NotFound."""
    with provider_errors('get_vote'):
        try:
            return VoteModel.objects.using(using).get(user_id=user_id, content_id=content_id)
        except (VoteModel.DoesNotExist, ValueError, TypeError):
            raise NotFound('No vote by user {} on content {}!'.format(user_id, content_id)) \
                from None


def tally_votes(content_id, *, using=DEFAULT_DB_ALIAS):
    """Return a VoteTally(up, down, score) for content 'content_id'; score is up - down."""
    with provider_errors('tally_votes'):
        content = _get_or_not_found(ContentModel.objects.using(using), content_id, 'Content')
        counts = VoteModel.objects.using(using).filter(content=content).aggregate(
            up=Count('up_vote', filter=Q(up_vote=True)),
            down=Count('up_vote', filter=Q(up_vote=False)),
        )
    return VoteTally(up=counts['up'], down=counts['down'], score=counts['up'] - counts['down'])


# ========== async variants ==========

# Each of these runs its sync counterpart through sync_to_async, so it keeps the transaction and
# error behaviour described above; cancelling the awaiting task never leaves a partial write.

async def acreate_new_content(user_id, url, title, *, using=DEFAULT_DB_ALIAS):
    return await sync_to_async(create_new_content)(user_id, url, title, using=using)


async def aget_content(content_id, *, using=DEFAULT_DB_ALIAS):
    return await sync_to_async(get_content)(content_id, using=using)


async def avote_on_content(content_id, user_id, is_up_vote, *, using=DEFAULT_DB_ALIAS):
    return await sync_to_async(vote_on_content)(content_id, user_id, is_up_vote, using=using)


async def aget_vote(content_id, user_id, *, using=DEFAULT_DB_ALIAS):
    return await sync_to_async(get_vote)(content_id, user_id, using=using)


async def atally_votes(content_id, *, using=DEFAULT_DB_ALIAS):
    return await sync_to_async(tally_votes)(content_id, using=using)
