"""
Cache Services

Read-through engine, graphql-core glue and the GraphQLCache entry point.
"""
