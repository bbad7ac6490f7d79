"""Tests for request logging helpers."""

from schoolhub.middleware import operation_name_from_payload, sanitize_query_params


def test_sanitize_query_params():
    sanitized = sanitize_query_params({"access_token": "abc", "Password": "x", "page": "2"})
    assert sanitized == {"access_token": "[REDACTED]", "Password": "[REDACTED]", "page": "2"}


def test_operation_name_prefers_explicit_name():
    assert operation_name_from_payload({"operationName": "Schools", "query": "{ a }"}) == "Schools"


def test_operation_name_from_document():
    assert operation_name_from_payload({"query": "query Schools { schools { id } }"}) == "Schools"
    assert (
        operation_name_from_payload({"query": "mutation AddRole { addRole { id } }"})
        == "mutation:AddRole"
    )


def test_operation_name_edge_cases():
    assert operation_name_from_payload({"query": "{ schools { id } }"}) == "unnamed_operation"
    assert operation_name_from_payload({"query": "query IntrospectionQuery { __schema }"}) == (
        "__introspection"
    )
    assert operation_name_from_payload({}) is None
