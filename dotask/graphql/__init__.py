"""GraphQL transport binding and operation catalog."""

from dotask.graphql.client import GraphQLClient, root_field
from dotask.graphql.errors import ClientError, ErrorKind
from dotask.graphql.operations import CATALOG, Operation, get_operation

__all__ = [
    "CATALOG",
    "ClientError",
    "ErrorKind",
    "GraphQLClient",
    "Operation",
    "get_operation",
    "root_field",
]
