import graphene

import content.schema
import users.schema


class Query(content.schema.Query, users.schema.Query, graphene.ObjectType):
    pass


class Mutation(content.schema.Mutation, users.schema.Mutation, graphene.ObjectType):
    pass


schema = graphene.Schema(query=Query, mutation=Mutation)
