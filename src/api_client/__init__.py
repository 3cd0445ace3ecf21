from .client import GraphQLClient, GraphQLError, create_client

__all__ = ["GraphQLClient", "GraphQLError", "create_client"]
