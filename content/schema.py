# newsboard -- content/schema.py
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

import django_filters

import graphene
from graphene import relay
from graphene.relay import Node
from graphene_django import DjangoObjectType

from content.data_access import create_new_content, tally_votes, vote_on_content
from content.models import ContentModel, VoteModel
from newsboard.errors import NotFound
from users.schema import pk_from_global_id


# ========== Vote ==========

# A vote is identified by its (user, content) pair rather than by an id of its own, so it does not
# implement the Relay Node interface; clients reach votes through Content.votes or allVotes.

class Vote(DjangoObjectType):
    class Meta:
        model = VoteModel
        fields = ('user', 'content', 'up_vote', 'created_at', 'updated_at')


class IdInput(graphene.InputObjectType):
    id = graphene.ID(required=True)


class VoteFilter(graphene.InputObjectType):
    """The input object for filtered allVotes queries."""
    content = graphene.InputField(IdInput)
    user = graphene.InputField(IdInput)
    up_vote = graphene.Boolean()


class VotesFilterSet(django_filters.FilterSet):
    """A basic FilterSet for filtering allVotes queries."""
    class Meta:
        model = VoteModel
        fields = ['content', 'user', 'up_vote']


def resolve_all_votes(root, info, filter=None):
    """Resolve a field returning a (possibly filtered view of) all Votes."""
    qs = VoteModel.objects.order_by('created_at')
    if not filter:
        return qs
    # collapse e.g.:
    #     { 'content': { 'id': '<global_id>' } }  # what graphene provides
    # to:
    #     { 'content': '<primary_key>' }  # what our FilterSet expects
    data = {}
    for key, type_name in (('content', 'Content'), ('user', 'User')):
        field = filter.get(key, None)
        if field:
            data[key] = pk_from_global_id(field.get('id'), type_name)
    if filter.get('up_vote', None) is not None:
        data['up_vote'] = filter['up_vote']
    filterset = VotesFilterSet(data=data, queryset=qs)
    if not filterset.is_valid():
        # the only way a well-formed id fails validation is by naming a row that doesn't exist
        raise NotFound('Invalid vote filter: {}'.format(
            '; '.join('{}: {}'.format(k, ' '.join(v)) for k, v in filterset.errors.items())))
    return filterset.qs


class VoteOnContent(relay.ClientIDMutation):
    # mutation VoteOnContentMutation($input: VoteOnContentInput!) {
    #   voteOnContent(input: $input) {
    #     vote {
    #       upVote
    #       content { id score }
    #       user { id }
    #     }
    #   }
    # }
    # example variables:
    #   input {
    #     contentId: 'Q29udGVudDox',
    #     userId: 'VXNlcjox',
    #     isUpVote: true,
    #     clientMutationId: ''
    #   }

    vote = graphene.Field(Vote)

    class Input:
        content_id = graphene.ID(required=True)
        user_id = graphene.ID(required=True)
        is_up_vote = graphene.Boolean(required=True)

    @classmethod
    def mutate_and_get_payload(cls, root, info, content_id, user_id, is_up_vote,
                               client_mutation_id=None):
        vote = vote_on_content(
            pk_from_global_id(content_id, 'Content'),
            pk_from_global_id(user_id, 'User'),
            is_up_vote,
        )
        return VoteOnContent(vote=vote)


# ========== Content ==========

class Content(DjangoObjectType):
    class Meta:
        model = ContentModel
        interfaces = (Node, )
        fields = ('id', 'url', 'title', 'owner', 'created_at', 'updated_at')
        use_connection = False

    votes = graphene.List(graphene.NonNull(Vote))
    score = graphene.Int(description='Up votes minus down votes.')

    def resolve_votes(parent, info):
        # parent is a ContentModel
        return parent.votes.order_by('created_at')

    def resolve_score(parent, info):
        return tally_votes(parent.pk, using=parent._state.db).score


class ContentOrderBy(graphene.Enum):
    """This provides the schema's ContentOrderBy Enum type, for ordering allContent."""
    # The left-hand side below is what the Enum values should be, and the right-hand side is what
    # Django's order_by() needs.
    createdAt_ASC = 'created_at'
    createdAt_DESC = '-created_at'
    id_ASC = 'id'
    id_DESC = '-id'
    title_ASC = 'title'
    title_DESC = '-title'
    updatedAt_ASC = 'updated_at'
    updatedAt_DESC = '-updated_at'
    url_ASC = 'url'
    url_DESC = '-url'


def resolve_all_content(root, info, order_by=None):
    qs = ContentModel.objects.all()
    if order_by:
        # graphene hands us the enum member (e.g. ContentOrderBy.createdAt_DESC); its value is the
        # order_by() argument ('-created_at')
        qs = qs.order_by(order_by.value)
    else:
        qs = qs.order_by('id')
    return qs


class CreateContent(relay.ClientIDMutation):
    # mutation CreateContentMutation($input: CreateContentInput!) {
    #   createContent(input: $input) {
    #     content {
    #       id
    #       createdAt
    #       url
    #       title
    #       owner { id }
    #     }
    #   }
    # }
    # example variables:
    #   input {
    #       userId: "VXNlcjox",
    #       url: "http://example.com",
    #       title: "New Content",
    #       clientMutationId: "",
    #   }

    content = graphene.Field(Content)

    class Input:
        user_id = graphene.ID(required=True)
        url = graphene.String(required=True)
        title = graphene.String(required=True)

    @classmethod
    def mutate_and_get_payload(cls, root, info, user_id, url, title, client_mutation_id=None):
        content = create_new_content(pk_from_global_id(user_id, 'User'), url, title)
        return CreateContent(content=content)


# ========== schema structure ==========

class Query(object):
    node = Node.Field()

    all_content = graphene.List(
        graphene.NonNull(Content),
        order_by=graphene.Argument(ContentOrderBy),
        resolver=resolve_all_content,
    )

    all_votes = graphene.List(
        graphene.NonNull(Vote),
        filter=graphene.Argument(VoteFilter),
        resolver=resolve_all_votes,
    )


class Mutation(object):
    create_content = CreateContent.Field()
    vote_on_content = VoteOnContent.Field()
