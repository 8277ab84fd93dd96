"""
Request setup and raw-response step definitions shared by API features.
"""
from behave import given, then
import json
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root.absolute()))

from api.json_validator import json_validator
from api.rest_client import RestClient
from utils.scenario_state import REST_CLIENT, REQUEST_HEADERS, LAST_RESPONSE


@given('request headers')
def step_set_request_headers(context):
    """Set per-request headers from a table with header_name | header_value."""
    headers = {}
    if context.state.contains(REQUEST_HEADERS):
        headers.update(context.state.get(REQUEST_HEADERS, dict))
    for row in context.table:
        headers[row['header_name']] = row['header_value']

    context.reporter.log_step(f"Setting request headers: {list(headers)}")
    context.state.set(REQUEST_HEADERS, headers)


@given('API authentication token "{token}"')
def step_set_auth_token(context, token):
    context.reporter.log_step("Setting API authentication token")
    context.state.get(REST_CLIENT, RestClient).set_auth_token(token)


@given('API timeout is set to {timeout:d} seconds')
def step_set_api_timeout(context, timeout):
    context.reporter.log_step(f"Setting API timeout to {timeout} seconds")
    context.state.get(REST_CLIENT, RestClient).set_timeout(timeout)


@then('the raw response should match schema "{schema_name}"')
def step_verify_schema(context, schema_name):
    raw = context.state.get(LAST_RESPONSE, str)
    context.reporter.log_step(f"Validating response against schema '{schema_name}'")

    schema = json_validator.load_schema(schema_name)
    result = json_validator.validate_text(raw, schema)

    assert result['valid'], f"Schema validation failed: {result['errors']}"


@then('the raw response field "{field_path}" should equal "{expected_value}"')
def step_verify_field_equals(context, field_path, expected_value):
    raw = context.state.get(LAST_RESPONSE, str)
    data = json.loads(raw)

    assert json_validator.field_exists(data, field_path), f"Field '{field_path}' not found in response"
    actual_value = json_validator.get_field_value(data, field_path)
    assert str(actual_value) == expected_value, \
        f"Field '{field_path}' expected '{expected_value}', got '{actual_value}'"


@then('the raw response should be a JSON array of {count:d} items')
def step_verify_json_array(context, count):
    raw = context.state.get(LAST_RESPONSE, str)
    data = json.loads(raw)

    assert isinstance(data, list), f"Expected JSON array, got {type(data).__name__}"
    assert len(data) == count, f"Array has {len(data)} items, expected {count}"
