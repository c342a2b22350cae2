"""User API suite: black-box probes of the user-management service.

Covers account creation (success, missing fields, duplicate username) and
the shape of every record returned by the listing endpoint.
Users created by the probes are left on the server.
"""

NAME = "user_api"
DESCRIPTION = "Create and list users against a live user-management API"
TIMEOUT_S = 120
TOTAL_TESTS = 7
