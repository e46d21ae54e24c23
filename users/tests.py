# newsboard -- users/tests.py
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

from unittest import mock

from django.contrib.auth.hashers import check_password
from django.db import OperationalError
from django.test import TestCase

import graphene
from graphene.relay import Node

from newsboard.errors import ConstraintViolation, NotFound, ProviderError
from newsboard.schema import Mutation, Query
from newsboard.utils import format_graphql_errors
from .data_access import acreate_new_user, aget_user, create_new_user, get_user
from .models import UserModel
from .schema import pk_from_global_id


# ========== utility function ==========

def create_test_user(username=None, password=None, email=None):
    return create_new_user(
        username or 'testuser',
        password or 'abc123',
        email or 'test@user.com',
    )


# ========== create_new_user() tests ==========

class CreateNewUserTests(TestCase):
    def test_create_new_user(self):
        """new user gets an id and both timestamps, and can be looked up again"""
        user = create_new_user('alice', 'secret')
        self.assertIsNotNone(user.pk)
        self.assertIsNotNone(user.created_at)
        self.assertIsNotNone(user.updated_at)
        self.assertEqual(user.username, 'alice')
        self.assertIsNone(user.email)
        found = get_user(user.pk)
        self.assertEqual(found, user)
        self.assertEqual(
            (found.username, found.password, found.email, found.created_at, found.updated_at),
            (user.username, user.password, user.email, user.created_at, user.updated_at))

    def test_create_new_user_with_email(self):
        user = create_new_user('bob', 'secret', 'bob@example.com')
        self.assertEqual(get_user(user.pk).email, 'bob@example.com')

    def test_password_is_hashed(self):
        """the password must never be stored as given"""
        user = create_new_user('alice', 'secret')
        self.assertNotEqual(user.password, 'secret')
        self.assertTrue(check_password('secret', user.password))
        self.assertFalse(check_password('wrong', user.password))

    def test_blank_username(self):
        with self.assertRaises(ConstraintViolation) as cm:
            create_new_user('', 'secret')
        self.assertIn('username', cm.exception.errors)
        self.assertEqual(UserModel.objects.count(), 0)

    def test_missing_password(self):
        for password in ('', None):
            with self.assertRaises(ConstraintViolation) as cm:
                create_new_user('alice', password)
            self.assertIn('password', cm.exception.errors)
        self.assertEqual(UserModel.objects.count(), 0)

    def test_malformed_email(self):
        with self.assertRaises(ConstraintViolation) as cm:
            create_new_user('alice', 'secret', 'not-an-email-address')
        self.assertIn('email', cm.exception.errors)

    def test_duplicate_username(self):
        """usernames are unique, and the database is what enforces it"""
        create_new_user('alice', 'secret')
        with self.assertRaises(ConstraintViolation):
            create_new_user('alice', 'another secret')
        self.assertEqual(UserModel.objects.filter(username='alice').count(), 1)

    def test_duplicate_email(self):
        create_new_user('alice', 'secret', 'same@example.com')
        with self.assertRaises(ConstraintViolation):
            create_new_user('bob', 'secret', 'same@example.com')
        # but any number of users may go without
        create_new_user('carol', 'secret')
        create_new_user('dave', 'secret')
        self.assertEqual(UserModel.objects.count(), 3)

    def test_database_failure(self):
        with mock.patch.object(UserModel, 'save', side_effect=OperationalError('disk I/O error')):
            with self.assertRaises(ProviderError):
                create_new_user('alice', 'secret')


class GetUserTests(TestCase):
    def test_get_user_not_found(self):
        user = create_test_user()
        with self.assertRaises(NotFound):
            get_user(user.pk + 1)

    def test_get_user_bad_id(self):
        with self.assertRaises(NotFound):
            get_user('not a number')


class AsyncUserTests(TestCase):
    async def test_acreate_new_user(self):
        user = await acreate_new_user('alice', 'secret')
        found = await aget_user(user.pk)
        self.assertEqual(found.username, 'alice')

    async def test_acreate_new_user_duplicate(self):
        await acreate_new_user('alice', 'secret')
        with self.assertRaises(ConstraintViolation):
            await acreate_new_user('alice', 'secret')

    async def test_aget_user_not_found(self):
        with self.assertRaises(NotFound):
            await aget_user(12345)


# ========== global id decoding tests ==========

class PkFromGlobalIdTests(TestCase):
    def test_pk_from_global_id(self):
        """a well-formed id of the right type yields its primary key"""
        self.assertEqual(pk_from_global_id(Node.to_global_id('User', 7), 'User'), '7')

    def test_pk_from_global_id_wrong_type(self):
        with self.assertRaises(NotFound) as cm:
            pk_from_global_id(Node.to_global_id('Content', 7), 'User')
        self.assertIn('is not a User id', str(cm.exception))

    def test_pk_from_global_id_malformed(self):
        for global_id in ('ArgleBargle', '', Node.to_global_id('User', '')):
            with self.assertRaises(NotFound) as cm:
                pk_from_global_id(global_id, 'User')
            self.assertIn('Invalid User id', str(cm.exception))


# ========== Relay Node tests ==========

class RelayNodeTests(TestCase):
    """Test that model nodes can be retreived via the Relay Node interface."""
    def test_node_for_user(self):
        user = create_test_user()
        user_gid = Node.to_global_id('User', user.pk)
        query = '''
          query {
            node(id: "%s") {
              id
              ...on User {
                username
                email
              }
            }
          }
        ''' % user_gid
        expected = {
          'node': {
            'id': user_gid,
            'username': user.username,
            'email': user.email,
          }
        }
        schema = graphene.Schema(query=Query)
        result = schema.execute(query)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))

    def test_password_not_in_schema(self):
        """the password (hash) must not be queryable"""
        user = create_test_user()
        query = '''
          query {
            node(id: "%s") {
              ...on User {
                password
              }
            }
          }
        ''' % Node.to_global_id('User', user.pk)
        schema = graphene.Schema(query=Query)
        result = schema.execute(query)
        self.assertIsNotNone(result.errors, msg='Querying a user password should have failed')
        self.assertIn('password', repr(result.errors))


# ========== createUser mutation tests ==========

class CreateUserTests(TestCase):
    def setUp(self):
        self.query = '''
          mutation CreateUserMutation($input: CreateUserInput!) {
            createUser(input: $input) {
              user { username email }
            }
          }
        '''
        self.variables = {
            'input': {
                'username': 'jkirk',
                'password': 'abc123',
                'email': 'kirk@example.com',
            }
        }
        self.expected = {
            'createUser': {
                'user': {
                    'username': 'jkirk',
                    'email': 'kirk@example.com',
                }
            }
        }
        self.schema = graphene.Schema(query=Query, mutation=Mutation)

    def test_create_user(self):
        """sucessfully create a user"""
        result = self.schema.execute(self.query, variable_values=self.variables)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, self.expected,
                         msg='\n'+repr(self.expected)+'\n'+repr(result.data))
        # check that the user was created properly
        user = UserModel.objects.get(username=result.data['createUser']['user']['username'])
        self.assertEqual(user.email, 'kirk@example.com')
        self.assertTrue(check_password('abc123', user.password))

    def test_create_user_without_email(self):
        del self.variables['input']['email']
        self.expected['createUser']['user']['email'] = None
        result = self.schema.execute(self.query, variable_values=self.variables)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        self.assertEqual(result.data, self.expected,
                         msg='\n'+repr(self.expected)+'\n'+repr(result.data))

    def test_create_user_duplicate(self):
        """should not be able to create two users with the same username"""
        result = self.schema.execute(self.query, variable_values=self.variables)
        self.assertIsNone(result.errors, msg=format_graphql_errors(result.errors))
        # now try to create a second one
        self.variables['input']['email'] = 'spock@example.com'
        self.variables['input']['password'] = '26327790.8685354193060378'
        # -- username stays the same
        result = self.schema.execute(self.query, variable_values=self.variables)
        self.assertIsNotNone(result.errors,
                             msg='Creating user with duplicate username should have failed')
        self.assertIn('already exists', repr(result.errors))
        expected = { 'createUser': None } # empty result
        self.assertEqual(result.data, expected, msg='\n'+repr(expected)+'\n'+repr(result.data))

    def test_create_user_blank_password(self):
        self.variables['input']['password'] = ''
        result = self.schema.execute(self.query, variable_values=self.variables)
        self.assertIsNotNone(result.errors,
                             msg='Creating user with blank password should have failed')
        self.assertIn('password', repr(result.errors))
        self.assertEqual(UserModel.objects.count(), 0)
