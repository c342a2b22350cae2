"""Response checks for the user API contract.

Every check stops at the first mismatch by raising ContractViolation.
It subclasses AssertionError so pytest reports it as a plain failure.
"""

from __future__ import annotations

from typing import Any

import httpx

from userprobe.models import USER_FIELDS, UserCreateRequest, UserRecord

# Verbatim from the server, typo included.
SUCCESS_MESSAGE = "User Successully created"


class ContractViolation(AssertionError):
    """A response did not match the documented contract."""


def _expect(condition: bool, message: str) -> None:
    if not condition:
        raise ContractViolation(message)


def _body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        raise ContractViolation(f"body is not JSON: {response.text[:200]!r}")


def _expect_status(response: httpx.Response, status: int) -> None:
    _expect(
        response.status_code == status,
        f"expected HTTP {status}, got {response.status_code}: {response.text[:200]!r}",
    )


def _expect_success_flag(body: Any, value: bool) -> None:
    _expect(isinstance(body, dict), f"expected a JSON object, got {type(body).__name__}")
    _expect(body.get("success") is value, f"expected success={value}, got {body.get('success')!r}")


def expect_accepted(response: httpx.Response) -> dict:
    """200 with success=true. Returns the parsed body."""
    _expect_status(response, 200)
    body = _body(response)
    _expect_success_flag(body, True)
    return body


def expect_created(response: httpx.Response, request: UserCreateRequest) -> dict:
    """Full success shape: message plus details echoing username and email."""
    body = expect_accepted(response)
    _expect(
        body.get("message") == SUCCESS_MESSAGE,
        f"expected message {SUCCESS_MESSAGE!r}, got {body.get('message')!r}",
    )
    details = body.get("details")
    _expect(isinstance(details, dict), f"expected details object, got {details!r}")
    _expect(
        details.get("username") == request.username,
        f"details.username {details.get('username')!r} != {request.username!r}",
    )
    _expect(
        details.get("email") == request.email,
        f"details.email {details.get('email')!r} != {request.email!r}",
    )
    return body


def expect_rejected(response: httpx.Response) -> dict:
    """400 with success=false."""
    _expect_status(response, 400)
    body = _body(response)
    _expect_success_flag(body, False)
    return body


def expect_user_listing(response: httpx.Response) -> list[dict]:
    """200 with a JSON array. Returns the entries unchecked."""
    _expect_status(response, 200)
    body = _body(response)
    _expect(isinstance(body, list), f"expected a JSON array, got {type(body).__name__}")
    return body


def assert_user_valid(user: Any) -> UserRecord:
    """All six fields present; id non-null, the rest non-empty strings.

    Returns the entry as a UserRecord.
    """
    _expect(isinstance(user, dict), f"user entry is not an object: {user!r}")
    for name in USER_FIELDS:
        _expect(name in user, f"user {user.get('id')!r} lacks field {name!r}")
    _expect(user["id"] is not None, "user id is null")
    for name in USER_FIELDS[1:]:
        value = user[name]
        _expect(
            isinstance(value, str) and value != "",
            f"user {user['id']!r}: {name} must be a non-empty string, got {value!r}",
        )
    return UserRecord.from_dict(user)


def expect_valid_users(response: httpx.Response) -> list[UserRecord]:
    """A listing whose every entry passes assert_user_valid."""
    return [assert_user_valid(user) for user in expect_user_listing(response)]
