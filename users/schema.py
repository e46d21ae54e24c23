# newsboard -- users/schema.py
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

import graphene
from graphene import relay
from graphene.relay import Node
from graphene_django import DjangoObjectType
from graphql_relay import from_global_id

from newsboard.errors import NotFound
from users.data_access import create_new_user
from users.models import UserModel


def pk_from_global_id(global_id, type_name):
    """Return the primary key encoded in Relay global id 'global_id', which must be for a node of
    type 'type_name'. Raises NotFound for a malformed id or one belonging to another type.
    """
    # from_global_id() never raises: undecodable input comes back with an empty type
    _type, pk = from_global_id(global_id)
    if not _type or not pk:
        raise NotFound('Invalid {} id {!r}!'.format(type_name, global_id))
    if _type != type_name:
        raise NotFound('{!r} is not a {} id!'.format(global_id, type_name))
    return pk


class User(DjangoObjectType):
    class Meta:
        model = UserModel
        interfaces = (Node, )
        # the password hash never leaves the server
        fields = ('id', 'username', 'email', 'created_at', 'updated_at')
        use_connection = False


class Query(object):
    pass


class CreateUser(relay.ClientIDMutation):
    # mutation CreateUserMutation($input: CreateUserInput!) {
    #   createUser(input: $input) {
    #     user { id username createdAt }
    #   }
    # }
    # example variables:
    #   input: {
    #     username: "alice",
    #     password: "secret",
    #     email: "alice@example.com",
    #     clientMutationId: "",
    #   }

    user = graphene.Field(User)

    class Input:
        username = graphene.String(required=True)
        password = graphene.String(required=True)
        email = graphene.String()

    @classmethod
    def mutate_and_get_payload(cls, root, info, username, password, email=None,
                               client_mutation_id=None):
        # create_new_user() hashes the password and raises a DataAccessError (reported to the
        # client as a GraphQL error) if the username or email is taken
        user = create_new_user(username, password, email)
        return CreateUser(user=user)


class Mutation(object):
    create_user = CreateUser.Field()
