"""
User API step definitions for Behave BDD testing.

Each step pairs one call on the scenario's RestClient with reads/writes of
``context.state`` and finishes with plain assertions.
"""
from behave import given, when, then
from typing import List
import sys
from pathlib import Path

# Get project root (go up 3 levels: steps -> features -> project_root)
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root.absolute()))

from api.models import UserModel, UserPayload, UserRecord
from api.rest_client import RestClient
from utils.custom_exceptions import HttpRequestFailedError
from utils.scenario_state import (
    REST_CLIENT, BASE_URL, LAST_USER, USERS_LIST, LAST_RESPONSE, LAST_ERROR, REQUEST_HEADERS,
    REQUEST_PAYLOAD
)


def _client(context) -> RestClient:
    return context.state.get(REST_CLIENT, RestClient)


def _headers(context):
    if context.state.contains(REQUEST_HEADERS):
        return context.state.get(REQUEST_HEADERS, dict)
    return None


def _remember_response(context, client: RestClient, attachment_name: str):
    context.state.set(LAST_RESPONSE, client.last_raw_body)
    if client.last_raw_body is not None:
        context.reporter.attach_json(client.last_raw_body, attachment_name)


@given('I have the API base URL "{base_url}"')
def step_given_api_base_url(context, base_url):
    client = RestClient(base_url=base_url)
    context.state.set(REST_CLIENT, client)
    context.state.set(BASE_URL, base_url)

    context.reporter.log_step(f"API base URL set to: {base_url}")
    context.reporter.add_parameter("BaseUrl", base_url)


@given('I have the configured API base URL')
def step_given_configured_base_url(context):
    client = RestClient()
    assert client.base_url, "API base URL not configured in config/config.ini"
    context.state.set(REST_CLIENT, client)
    context.state.set(BASE_URL, client.base_url)

    context.reporter.log_step(f"API base URL loaded from config: {client.base_url}")


@when('I get user with ID "{user_id}"')
def step_when_get_user_by_id(context, user_id):
    client = _client(context)
    context.reporter.log_step(f"Fetching user with ID: {user_id}")
    context.reporter.add_parameter("UserId", user_id)

    user = client.get(f"/users/{user_id}", UserModel, headers=_headers(context))
    context.state.set(LAST_USER, user)
    _remember_response(context, client, f"User_{user_id}_Response")


@when('I try to get user with ID "{user_id}"')
def step_when_try_get_user_by_id(context, user_id):
    """Like the plain GET, but a failed request is kept for later assertions."""
    client = _client(context)
    context.reporter.log_step(f"Trying to fetch user with ID: {user_id}")

    try:
        user = client.get(f"/users/{user_id}", UserModel, headers=_headers(context))
        context.state.set(LAST_USER, user)
        context.state.set(LAST_ERROR, None)
    except HttpRequestFailedError as e:
        context.state.set(LAST_ERROR, e)
    _remember_response(context, client, f"User_{user_id}_Attempt_Response")


@when('I get all users')
def step_when_get_all_users(context):
    client = _client(context)
    context.reporter.log_step("Fetching all users")

    users = client.get("/users", List[UserModel], headers=_headers(context))
    context.state.set(USERS_LIST, users)
    _remember_response(context, client, "AllUsers_Response")


@when('I get the raw user with ID "{user_id}"')
def step_when_get_raw_user(context, user_id):
    client = _client(context)
    context.reporter.log_step(f"Fetching raw user with ID: {user_id}")

    raw = client.get_raw(f"/users/{user_id}", headers=_headers(context))
    context.state.set(LAST_RESPONSE, raw)
    context.reporter.attach_text(raw, f"User_{user_id}_Raw")


@when('I create a user with name "{name}" and email "{email}"')
def step_when_create_user(context, name, email):
    client = _client(context)
    context.reporter.log_step(f"Creating user '{name}'")
    context.reporter.add_parameter("Name", name)
    context.reporter.add_parameter("Email", email)

    payload = UserPayload(name=name, email=email)
    context.state.set(REQUEST_PAYLOAD, payload)
    created = client.post("/users", UserRecord, body=payload, headers=_headers(context))
    context.state.set(LAST_USER, created)
    _remember_response(context, client, "CreateUser_Response")


@when('I update user "{user_id}" with name "{name}"')
def step_when_update_user(context, user_id, name):
    client = _client(context)
    context.reporter.log_step(f"Updating user {user_id} name to '{name}'")

    payload = UserPayload(name=name)
    context.state.set(REQUEST_PAYLOAD, payload)
    updated = client.put(f"/users/{user_id}", UserRecord, body=payload, headers=_headers(context))
    context.state.set(LAST_USER, updated)
    _remember_response(context, client, f"UpdateUser_{user_id}_Response")


@when('I delete user with ID "{user_id}"')
def step_when_delete_user(context, user_id):
    client = _client(context)
    context.reporter.log_step(f"Deleting user with ID: {user_id}")

    client.delete(f"/users/{user_id}", headers=_headers(context))
    _remember_response(context, client, f"DeleteUser_{user_id}_Response")


@then('the response status should be success')
def step_then_response_status_success(context):
    response = context.state.get(LAST_RESPONSE, str)
    context.reporter.log_step("Verifying response is successful")
    assert response, "Response should not be empty"


@then('the response should contain user data')
def step_then_response_contains_user_data(context):
    user = context.state.get(LAST_USER, UserRecord)
    context.reporter.log_step("Verifying user data is present")
    assert user is not None, "User data should be returned"
    assert user.id is not None and user.id > 0, f"User ID should be valid, got {user.id}"


@then('the response should contain a list of users')
def step_then_response_contains_users_list(context):
    users = context.state.get(USERS_LIST, list)
    context.reporter.log_step("Verifying users list is present and not empty")
    assert users is not None, "Users list should be returned"
    assert len(users) > 0, "Users list should not be empty"


@then('the user should have name "{expected_name}"')
def step_then_user_has_name(context, expected_name):
    user = context.state.get(LAST_USER, UserRecord)
    context.reporter.log_step(f"Verifying user name is '{expected_name}'")
    context.reporter.add_parameter("ExpectedName", expected_name)

    assert user is not None, "No user stored by a previous step"
    actual = user.name
    assert actual == expected_name, f"User name should match: expected '{expected_name}', got '{actual}'"


@then('the user should have email "{expected_email}"')
def step_then_user_has_email(context, expected_email):
    user = context.state.get(LAST_USER, UserRecord)
    context.reporter.log_step(f"Verifying user email is '{expected_email}'")
    context.reporter.add_parameter("ExpectedEmail", expected_email)

    assert user is not None, "No user stored by a previous step"
    actual = user.email
    assert actual == expected_email, f"User email should match: expected '{expected_email}', got '{actual}'"


@then('the request should fail with status {status_code:d}')
def step_then_request_failed_with_status(context, status_code):
    error = context.state.get(LAST_ERROR)
    context.reporter.log_step(f"Verifying request failed with status {status_code}")

    assert isinstance(error, HttpRequestFailedError), "Expected the previous request to fail"
    assert error.status_code == status_code, \
        f"Expected status code {status_code}, got {error.status_code}. Response: {error.response_text}"
