# newsboard -- newsboard/tests.py
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

import os
from unittest import mock

from django.db import IntegrityError, OperationalError
from django.test import SimpleTestCase, TestCase

import graphene

from newsboard import bootstrap
from newsboard.errors import (ConstraintViolation, DataAccessError, DuplicateVote, NotFound,
                              ProviderError, provider_errors)
from newsboard.schema import Mutation, Query
from newsboard.utils import format_graphql_errors


# ========== schema migration step ==========

class BootstrapTests(SimpleTestCase):
    def test_migrate_schema(self):
        """migrate_schema() runs Django's migrate for exactly the database it is given"""
        with mock.patch('newsboard.bootstrap.call_command') as call_command:
            bootstrap.migrate_schema()
            bootstrap.migrate_schema(using='replica', verbosity=2)
        self.assertEqual(call_command.call_args_list, [
            mock.call('migrate', database='default', interactive=False, verbosity=0),
            mock.call('migrate', database='replica', interactive=False, verbosity=2),
        ])

    def test_setup(self):
        with mock.patch('newsboard.bootstrap.django.setup') as setup, \
                mock.patch.dict('os.environ', {}, clear=True):
            bootstrap.setup()
            self.assertEqual(os.environ['DJANGO_SETTINGS_MODULE'], 'newsboard.settings')
        setup.assert_called_once_with()


# ========== error translation ==========

class ProviderErrorsTests(SimpleTestCase):
    def test_error_kinds_are_distinct(self):
        for cls in (NotFound, ConstraintViolation, DuplicateVote, ProviderError):
            self.assertTrue(issubclass(cls, DataAccessError))
        self.assertFalse(issubclass(DuplicateVote, ConstraintViolation))

    def test_integrity_error(self):
        with self.assertRaises(ConstraintViolation) as cm:
            with provider_errors('test operation'):
                raise IntegrityError('NOT NULL constraint failed')
        self.assertIsInstance(cm.exception.__cause__, IntegrityError)

    def test_database_error(self):
        with self.assertRaises(ProviderError) as cm:
            with provider_errors('test operation'):
                raise OperationalError('unable to open database file')
        self.assertIn('test operation', str(cm.exception))

    def test_data_access_errors_pass_through(self):
        with self.assertRaises(DuplicateVote):
            with provider_errors('test operation'):
                raise DuplicateVote('already voted')

    def test_other_errors_pass_through(self):
        with self.assertRaises(KeyError):
            with provider_errors('test operation'):
                raise KeyError('not a database problem')


# ========== GraphQL error formatting ==========

class FormatGraphqlErrorsTests(TestCase):
    def test_no_errors(self):
        self.assertIsNone(format_graphql_errors(None))
        self.assertIsNone(format_graphql_errors([]))

    def test_resolver_error(self):
        """the original exception and its traceback are reported"""
        query = '''
          mutation {
            voteOnContent(input: {contentId: "Q29udGVudDox", userId: "VXNlcjox", isUpVote: true}) {
              vote { upVote }
            }
          }
        '''
        schema = graphene.Schema(query=Query, mutation=Mutation)
        result = schema.execute(query)
        text = format_graphql_errors(result.errors)
        self.assertIn('GraphQL schema execution error [0]', text)
        self.assertIn("path: ['voteOnContent']", text)
        self.assertIn('NotFound', text)
        self.assertIn('Traceback', text)
