"""
Main GraphQL schema definition using Strawberry
"""

from collections.abc import Iterator
from typing import Any

import strawberry
from graphql import GraphQLError
from graphql import validate_schema as gql_validate_schema
from strawberry.extensions import SchemaExtension
from strawberry.fastapi import GraphQLRouter

from ..errors import SchoolHubError
from ..logging import get_logger
from .context import get_context
from .mutations.root import Mutation
from .queries.root import Query

logger = get_logger(__name__)


class ErrorCodeExtension(SchemaExtension):
    """Copy the domain error code of each failure into ``extensions.code``."""

    def on_operation(self) -> Iterator[None]:
        yield
        errors = list(self.execution_context.pre_execution_errors or [])
        result = self.execution_context.result
        if result is not None and result.errors:
            errors.extend(e for e in result.errors if not any(e is seen for seen in errors))
        for error in errors:
            _add_code(error)


def _add_code(error: GraphQLError) -> None:
    original = error.original_error
    if isinstance(original, SchoolHubError):
        code = original.code
    elif original is None:
        code = "GRAPHQL_VALIDATION_FAILED"
    else:
        code = "INTERNAL"
    error.extensions = {**(error.extensions or {}), "code": code}


# Create the GraphQL schema
schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
    extensions=[ErrorCodeExtension],
)


def validate_schema() -> None:
    """Validate the GraphQL schema at startup.

    Unresolvable lazy type references surface here instead of on the first
    request.

    Raises:
        Exception: If the schema is invalid or has unresolved types
    """
    try:
        graphql_schema = schema._schema

        errors = gql_validate_schema(graphql_schema)
        if errors:
            error_messages = [str(e) for e in errors]
            raise Exception(f"GraphQL schema validation failed: {'; '.join(error_messages)}")

        from graphql import get_introspection_query, graphql_sync

        result = graphql_sync(graphql_schema, get_introspection_query())
        if result.errors:
            error_messages = [str(e) for e in result.errors]
            raise Exception(f"GraphQL introspection failed: {'; '.join(error_messages)}")

        logger.info("GraphQL schema validation successful")

    except Exception as e:
        logger.error("GraphQL schema validation failed", error=str(e))
        raise


def create_graphql_router(graphiql: bool = True) -> GraphQLRouter[dict[str, Any], None]:
    """Create a GraphQL router for FastAPI."""
    return GraphQLRouter(
        schema,
        path="/graphql",
        graphiql=graphiql,
        context_getter=get_context,
    )
