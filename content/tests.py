# newsboard -- content/tests.py
#
# Copyright © 2017 Sean Bolton.
#
# Permission is hereby granted, free of charge, to any person obtaining
# a copy of this software and associated documentation files (the
# "Software"), to deal in the Software without restriction, including
# without limitation the rights to use, copy, modify, merge, publish,
# distribute, sublicense, and/or sell copies of the Software, and to
# permit persons to whom the Software is furnished to do so, subject to
# the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS BE
# LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
# OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION
# WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.

import asyncio
import threading
from unittest import mock

from django.db import IntegrityError, OperationalError, connection
from django.db.models import QuerySet
from django.test import TestCase, TransactionTestCase

import graphene
from graphene.relay import Node

from newsboard.errors import (ConstraintViolation, DataAccessError, DuplicateVote, NotFound,
                              ProviderError)
from newsboard.schema import Mutation, Query
from newsboard.utils import format_graphql_errors
from users.models import UserModel
from users.tests import create_test_user
from .data_access import (aget_vote, atally_votes, avote_on_content, acreate_new_content,
                          create_new_content, get_content, get_vote, tally_votes, vote_on_content)
from .models import ContentModel, VoteModel


# ========== create_new_content() tests ==========

class CreateNewContentTests(TestCase):
    def setUp(self):
        self.user = create_test_user()

    def test_create_new_content(self):
        """new content is owned by the given user"""
        content = create_new_content(self.user.pk, 'http://x.com', 'X')
        self.assertIsNotNone(content.pk)
        self.assertEqual(content.owner_id, self.user.pk)
        self.assertEqual((content.url, content.title), ('http://x.com', 'X'))
        self.assertIsNotNone(content.created_at)
        self.assertIsNotNone(content.updated_at)
        found = get_content(content.pk)
        self.assertEqual(found, content)
        self.assertEqual(found.owner, self.user)
        self.assertEqual(list(self.user.content.all()), [content])

    def test_unknown_user(self):
        """content for a user that doesn't exist is refused, and no row is written"""
        with self.assertRaises(NotFound):
            create_new_content(self.user.pk + 1, 'http://x.com', 'X')
        self.assertEqual(ContentModel.objects.count(), 0)

    def test_blank_fields(self):
        for url, title, field in (
                ('', 'X', 'url'),
                ('http://x.com', '', 'title'),
                (None, 'X', 'url'),
                ('not a url', 'X', 'url')):
            with self.assertRaises(ConstraintViolation) as cm:
                create_new_content(self.user.pk, url, title)
            self.assertIn(field, cm.exception.errors)
        self.assertEqual(ContentModel.objects.count(), 0)

    def test_database_failure(self):
        with mock.patch.object(ContentModel, 'save',
                               side_effect=OperationalError('database is locked')):
            with self.assertRaises(ProviderError):
                create_new_content(self.user.pk, 'http://x.com', 'X')

    def test_get_content_not_found(self):
        with self.assertRaises(NotFound):
            get_content(1)


# ========== vote_on_content() tests ==========

class VoteOnContentTests(TestCase):
    def setUp(self):
        self.user = create_test_user()
        self.content = create_new_content(self.user.pk, 'http://x.com', 'X')

    def test_vote(self):
        vote = vote_on_content(self.content.pk, self.user.pk, True)
        self.assertEqual((vote.user_id, vote.content_id, vote.up_vote),
                         (self.user.pk, self.content.pk, True))
        self.assertEqual(vote.pk, (self.user.pk, self.content.pk))
        self.assertIsNotNone(vote.created_at)
        self.assertIsNotNone(vote.updated_at)
        self.assertEqual(list(self.content.voters.all()), [self.user])
        self.assertEqual(list(self.user.voted_content.all()), [self.content])

    def test_second_vote_is_refused(self):
        """a user votes once per content item; the first vote stands"""
        vote_on_content(self.content.pk, self.user.pk, True)
        with self.assertRaises(DuplicateVote):
            vote_on_content(self.content.pk, self.user.pk, False)
        with self.assertRaises(DuplicateVote):
            vote_on_content(self.content.pk, self.user.pk, True)
        self.assertEqual(VoteModel.objects.count(), 1)
        self.assertTrue(get_vote(self.content.pk, self.user.pk).up_vote)

    def test_duplicate_vote_is_not_a_constraint_violation(self):
        vote_on_content(self.content.pk, self.user.pk, False)
        try:
            vote_on_content(self.content.pk, self.user.pk, False)
        except DuplicateVote:
            pass
        except ConstraintViolation:
            self.fail('duplicate vote reported as a generic constraint violation')

    def test_unknown_user_or_content(self):
        with self.assertRaises(NotFound):
            vote_on_content(self.content.pk, self.user.pk + 1, True)
        with self.assertRaises(NotFound):
            vote_on_content(self.content.pk + 1, self.user.pk, True)
        self.assertEqual(VoteModel.objects.count(), 0)

    def test_other_integrity_error(self):
        """an integrity failure that didn't leave a vote behind is not a duplicate vote"""
        with mock.patch.object(VoteModel, 'save',
                               side_effect=IntegrityError('FOREIGN KEY constraint failed')):
            with self.assertRaises(ConstraintViolation):
                vote_on_content(self.content.pk, self.user.pk, True)
        self.assertEqual(VoteModel.objects.count(), 0)

    def test_database_failure(self):
        with mock.patch.object(VoteModel, 'save', side_effect=OperationalError('disk full')):
            with self.assertRaises(ProviderError):
                vote_on_content(self.content.pk, self.user.pk, True)

    def test_vote_direction_must_be_a_bool(self):
        """a missing or malformed direction is refused, not turned into an up or down vote"""
        for is_up_vote in (None, 'false', 0, 1):
            with self.assertRaises(ConstraintViolation) as cm:
                vote_on_content(self.content.pk, self.user.pk, is_up_vote)
            self.assertIn('up_vote', cm.exception.errors)
        self.assertEqual(VoteModel.objects.count(), 0)

    def test_vote_locks_user_and_content(self):
        """the user and content rows are locked for the whole vote transaction"""
        with mock.patch.object(QuerySet, 'select_for_update', autospec=True,
                               side_effect=lambda qs, *args, **kwargs: qs) as select_for_update:
            vote_on_content(self.content.pk, self.user.pk, True)
        self.assertEqual([c.args[0].model for c in select_for_update.call_args_list],
                         [UserModel, ContentModel])

    def test_get_vote_not_found(self):
        with self.assertRaises(NotFound):
            get_vote(self.content.pk, self.user.pk)

    def test_tally_votes(self):
        self.assertEqual(tally_votes(self.content.pk), (0, 0, 0))
        for i, up in enumerate((True, True, True, False)):
            voter = create_test_user('voter{}'.format(i), email='voter{}@user.com'.format(i))
            vote_on_content(self.content.pk, voter.pk, up)
        tally = tally_votes(self.content.pk)
        self.assertEqual((tally.up, tally.down, tally.score), (3, 1, 2))
        with self.assertRaises(NotFound):
            tally_votes(self.content.pk + 1)

    def test_example_flow(self):
        alice = create_test_user('alice', 'secret', 'alice@example.com')
        content = create_new_content(alice.pk, 'http://x.com', 'X')
        self.assertEqual(content.owner_id, alice.pk)
        vote = vote_on_content(content.pk, alice.pk, True)
        self.assertEqual((vote.user_id, vote.content_id, vote.up_vote),
                         (alice.pk, content.pk, True))
        with self.assertRaises(DuplicateVote):
            vote_on_content(content.pk, alice.pk, False)


class AsyncVoteTests(TestCase):
    def setUp(self):
        self.user = create_test_user()
        self.content = create_new_content(self.user.pk, 'http://x.com', 'X')

    async def test_gathered_votes(self):
        """of two opposite votes awaited together on one pair, exactly one is stored"""
        results = await asyncio.gather(
            avote_on_content(self.content.pk, self.user.pk, True),
            avote_on_content(self.content.pk, self.user.pk, False),
            return_exceptions=True,
        )
        stored = [r for r in results if isinstance(r, VoteModel)]
        refused = [r for r in results if isinstance(r, DuplicateVote)]
        self.assertEqual(len(stored), 1, msg=repr(results))
        self.assertEqual(len(refused), 1, msg=repr(results))
        self.assertEqual(await VoteModel.objects.acount(), 1)
        vote = await aget_vote(self.content.pk, self.user.pk)
        self.assertEqual(vote.up_vote, stored[0].up_vote)

    async def test_acreate_new_content_and_tally(self):
        content = await acreate_new_content(self.user.pk, 'http://y.com', 'Y')
        await avote_on_content(content.pk, self.user.pk, False)
        tally = await atally_votes(content.pk)
        self.assertEqual(tally.score, -1)

    async def test_acreate_new_content_unknown_user(self):
        with self.assertRaises(NotFound):
            await acreate_new_content(self.user.pk + 1, 'http://y.com', 'Y')


class ThreadedVoteTests(TransactionTestCase):
    def test_concurrent_votes(self):
        """of two opposite votes racing on one pair from separate threads, exactly one is stored"""
        user = create_test_user()
        content = create_new_content(user.pk, 'http://x.com', 'X')
        barrier = threading.Barrier(2)
        results = []

        def vote(is_up_vote):
            try:
                barrier.wait()
                results.append(vote_on_content(content.pk, user.pk, is_up_vote))
            except DataAccessError as e:
                results.append(e)
            finally:
                # each thread has its own connection
                connection.close()

        threads = [threading.Thread(target=vote, args=(is_up_vote, ))
                   for is_up_vote in (True, False)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stored = [r for r in results if isinstance(r, VoteModel)]
        refused = [r for r in results if isinstance(r, DuplicateVote)]
        self.assertEqual(len(stored), 1, msg=repr(results))
        self.assertEqual(len(refused), 1, msg=repr(results))
        self.assertEqual(VoteModel.objects.count(), 1)
        self.assertEqual(get_vote(content.pk, user.pk).up_vote, stored[0].up_vote)


# ========== cascade tests ==========

class CascadeTests(TestCase):
    def setUp(self):
        self.alice = create_test_user('alice', email='alice@example.com')
        self.bob = create_test_user('bob', email='bob@example.com')
        self.alice_content = create_new_content(self.alice.pk, 'http://a.com', 'A')
        self.bob_content = create_new_content(self.bob.pk, 'http://b.com', 'B')
        vote_on_content(self.alice_content.pk, self.alice.pk, True)
        vote_on_content(self.alice_content.pk, self.bob.pk, False)
        vote_on_content(self.bob_content.pk, self.alice.pk, True)
        vote_on_content(self.bob_content.pk, self.bob.pk, True)

    def test_delete_user(self):
        """deleting a user removes their content, their votes, and the votes on their content"""
        self.alice.delete()
        self.assertEqual(list(ContentModel.objects.all()), [self.bob_content])
        self.assertEqual(
            list(VoteModel.objects.values_list('user_id', 'content_id')),
            [(self.bob.pk, self.bob_content.pk)])
        self.assertTrue(UserModel.objects.filter(pk=self.bob.pk).exists())

    def test_delete_content(self):
        """deleting content removes its votes, but not the voters"""
        self.alice_content.delete()
        self.assertFalse(VoteModel.objects.filter(content_id=self.alice_content.pk).exists())
        self.assertEqual(VoteModel.objects.count(), 2)
        self.assertEqual(UserModel.objects.count(), 2)


# ========== Relay Node tests ==========

class RelayNodeTests(TestCase):
    """Test that model nodes can be retreived via the Relay Node interface."""
    def test_node_for_content(self):
        user = create_test_user()
        content = create_new_content(user.pk, 'http://a.com', 'Test')
        vote_on_content(content.pk, user.pk, True)
        content_gid = Node.to_global_id('Content', content.pk)
        query = '''
          query {
            node(id: "%s") {
              id
              ...on Content {
                url
                title
                owner { username }
                votes { upVote user { username } }
                score
              }
            }
          }
        ''' % content_gid
        expected = {
          'node': {
            'id': content_gid,
            'url': 'http://a.com',
            'title': 'Test',
            'owner': { 'username': user.username },
            'votes': [ { 'upVote': True, 'user': { 'username': user.username } } ],
            'score': 1,
          }
        }
        schema = graphene.Schema(query=Query)
        result = schema.execute(query)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))


# ========== allContent query tests ==========

def create_content_orderBy_test_data():
    """Create test data for allContent orderBy tests. Create three content items,
    with title and url each having a different sort order."""
    user = create_test_user()
    create_new_content(user.pk, 'http://a.com', 'Title C')
    create_new_content(user.pk, 'http://b.com', 'Title B')
    create_new_content(user.pk, 'http://c.com', 'Title A')
    return user


class AllContentTests(TestCase):
    def test_all_content(self):
        user = create_test_user()
        content = create_new_content(user.pk, 'http://a.com', 'Title')
        query = '''
          query AllContentTest {
            allContent {
              id
              title
              url
              owner { id }
            }
          }
        '''
        expected = {
            'allContent': [
                {
                    'id': Node.to_global_id('Content', content.pk),
                    'title': 'Title',
                    'url': 'http://a.com',
                    'owner': { 'id': Node.to_global_id('User', user.pk) },
                }
            ]
        }
        schema = graphene.Schema(query=Query)
        result = schema.execute(query)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        assert result.data == expected, '\n'+repr(expected)+'\n'+repr(result.data)

    def test_all_content_ordered_by(self):
        create_content_orderBy_test_data()
        schema = graphene.Schema(query=Query)
        for order_by, urls in (
                # ascending order on title: c.com, b.com, a.com
                ('title_ASC', ['http://c.com', 'http://b.com', 'http://a.com']),
                ('url_DESC', ['http://c.com', 'http://b.com', 'http://a.com']),
                ('id_ASC', ['http://a.com', 'http://b.com', 'http://c.com'])):
            query = '''
              query AllContentTest {
                allContent(orderBy: %s) {
                  url
                }
              }
            ''' % order_by
            expected = {'allContent': [{'url': url} for url in urls]}
            result = schema.execute(query)
            self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
            assert result.data == expected, '\n'+repr(expected)+'\n'+repr(result.data)


# ========== allVotes query tests ==========

class AllVotesTests(TestCase):
    def setUp(self):
        self.alice = create_test_user('alice', email='alice@example.com')
        self.bob = create_test_user('bob', email='bob@example.com')
        self.content_a = create_new_content(self.alice.pk, 'http://a.com', 'A')
        self.content_b = create_new_content(self.alice.pk, 'http://b.com', 'B')
        vote_on_content(self.content_a.pk, self.alice.pk, True)
        vote_on_content(self.content_a.pk, self.bob.pk, False)
        vote_on_content(self.content_b.pk, self.bob.pk, True)
        self.query = '''
          query AllVotesTest($filter: VoteFilter) {
            allVotes(filter: $filter) {
              upVote
              user { username }
              content { url }
            }
          }
        '''
        self.schema = graphene.Schema(query=Query)

    def execute(self, filter=None):
        return self.schema.execute(self.query, variable_values={'filter': filter})

    def test_all_votes(self):
        result = self.execute()
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(len(result.data['allVotes']), 3)

    def test_all_votes_by_user(self):
        result = self.execute({'user': {'id': Node.to_global_id('User', self.bob.pk)}})
        expected = {
            'allVotes': [
                { 'upVote': False, 'user': { 'username': 'bob' }, 'content': { 'url': 'http://a.com' } },
                { 'upVote': True, 'user': { 'username': 'bob' }, 'content': { 'url': 'http://b.com' } },
            ]
        }
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))

    def test_all_votes_by_content_and_direction(self):
        result = self.execute({
            'content': {'id': Node.to_global_id('Content', self.content_a.pk)},
            'upVote': True,
        })
        expected = {
            'allVotes': [
                { 'upVote': True, 'user': { 'username': 'alice' }, 'content': { 'url': 'http://a.com' } },
            ]
        }
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))

    def test_all_votes_unknown_user(self):
        result = self.execute({'user': {'id': Node.to_global_id('User', self.bob.pk + 100)}})
        self.assertIsNotNone(result.errors, msg='Filtering on an unknown user should have failed')
        self.assertIn('Invalid vote filter', repr(result.errors))

    def test_all_votes_wrong_id_type(self):
        result = self.execute({'user': {'id': Node.to_global_id('Content', self.content_a.pk)}})
        self.assertIsNotNone(result.errors, msg='Filtering on a non-User id should have failed')
        self.assertIn('is not a User id', repr(result.errors))


# ========== createContent mutation tests ==========

class CreateContentTests(TestCase):
    def setUp(self):
        self.user = create_test_user()
        self.user_gid = Node.to_global_id('User', self.user.pk)
        self.query = '''
          mutation CreateContentMutation($input: CreateContentInput!) {
            createContent(input: $input) {
              content {
                url
                title
                owner { id }
              }
            }
          }
        '''
        self.schema = graphene.Schema(query=Query, mutation=Mutation)

    def test_create_content(self):
        variables = {
            'input': {
                'userId': self.user_gid,
                'url': 'http://example.com',
                'title': 'New Content',
            }
        }
        expected = {
            'createContent': {
                'content': {
                    'url': 'http://example.com',
                    'title': 'New Content',
                    'owner': { 'id': self.user_gid },
                }
            }
        }
        result = self.schema.execute(self.query, variable_values=variables)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))
        # check that the content was created properly
        content = ContentModel.objects.get(url='http://example.com')
        self.assertEqual(content.owner, self.user)

    def test_create_content_unknown_user(self):
        variables = {
            'input': {
                'userId': Node.to_global_id('User', self.user.pk + 1),
                'url': 'http://example.com',
                'title': 'New Content',
            }
        }
        result = self.schema.execute(self.query, variable_values=variables)
        self.assertIsNotNone(result.errors,
                             msg='Creating content for an unknown user should have failed')
        self.assertIn('not found', repr(result.errors))
        expected = { 'createContent': None } # empty result
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))
        self.assertEqual(ContentModel.objects.count(), 0)

    def test_create_content_bad_user_id(self):
        variables = {
            'input': {
                'userId': 'ArgleBargle',
                'url': 'http://example.com',
                'title': 'New Content',
            }
        }
        result = self.schema.execute(self.query, variable_values=variables)
        self.assertIsNotNone(result.errors,
                             msg='Creating content with a malformed user id should have failed')
        self.assertIn('Invalid User id', repr(result.errors))
        self.assertEqual(ContentModel.objects.count(), 0)


# ========== voteOnContent mutation tests ==========

class VoteOnContentMutationTests(TestCase):
    def setUp(self):
        self.user = create_test_user()
        self.content = create_new_content(self.user.pk, 'http://a.com', 'A')
        self.user_gid = Node.to_global_id('User', self.user.pk)
        self.content_gid = Node.to_global_id('Content', self.content.pk)
        self.query = '''
          mutation VoteOnContentMutation($input: VoteOnContentInput!) {
            voteOnContent(input: $input) {
              vote {
                upVote
                user { id }
                content { id score }
              }
            }
          }
        '''
        self.schema = graphene.Schema(query=Query, mutation=Mutation)

    def variables(self, is_up_vote):
        return {
            'input': {
                'contentId': self.content_gid,
                'userId': self.user_gid,
                'isUpVote': is_up_vote,
            }
        }

    def test_vote_on_content(self):
        expected = {
            'voteOnContent': {
                'vote': {
                    'upVote': True,
                    'user': { 'id': self.user_gid },
                    'content': { 'id': self.content_gid, 'score': 1 },
                }
            }
        }
        result = self.schema.execute(self.query, variable_values=self.variables(True))
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))

    def test_vote_on_content_twice(self):
        result = self.schema.execute(self.query, variable_values=self.variables(True))
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        result = self.schema.execute(self.query, variable_values=self.variables(False))
        self.assertIsNotNone(result.errors, msg='Voting twice should have failed')
        self.assertIn('A vote already exists', repr(result.errors))
        expected = { 'voteOnContent': None } # empty result
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))
        self.assertTrue(VoteModel.objects.get().up_vote)

    def test_vote_on_unknown_content(self):
        variables = self.variables(True)
        variables['input']['contentId'] = Node.to_global_id('Content', self.content.pk + 1)
        result = self.schema.execute(self.query, variable_values=variables)
        self.assertIsNotNone(result.errors, msg='Voting on unknown content should have failed')
        self.assertIn('not found', repr(result.errors))
        self.assertEqual(VoteModel.objects.count(), 0)
