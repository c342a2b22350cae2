"""Generated inputs for the user API probes."""

from __future__ import annotations

import uuid

from userprobe.models import UserCreateRequest


def unique_user() -> UserCreateRequest:
    """A valid user whose fields all derive from one fresh UUID."""
    tag = uuid.uuid4()
    return UserCreateRequest(
        username=f"user_{tag}",
        email=f"email_{tag}@example.com",
        password=f"password_{tag}",
    )


def invalid_users() -> list[tuple[str, UserCreateRequest]]:
    """(case_id, request) pairs that each leave out required fields."""
    return [
        ("missing-username", UserCreateRequest(None, "email@example.com", "password")),
        ("missing-email", UserCreateRequest("username", None, "password")),
        ("missing-password", UserCreateRequest("username", "email@example.com", None)),
        ("all-missing", UserCreateRequest(None, None, None)),
    ]


def same_username(user: UserCreateRequest) -> UserCreateRequest:
    """Reuse user's username with an unrelated email and password."""
    return UserCreateRequest(
        username=user.username,
        email=f"email_{uuid.uuid4()}@example.com",
        password=f"password_{uuid.uuid4()}",
    )
