"""GraphQL API for SchoolHub."""
