"""Resolver functions referenced by the GraphQL types, queries and mutations."""
