"""userprobe — black-box probes for a user-management HTTP API.

Runs pytest probe suites against a live target (create user, list users),
records every run, and compares targets side by side.

Usage:
    python -m userprobe list                                   # Show suites
    python -m userprobe run user_api                           # Default target
    python -m userprobe run user_api --base-url http://host:3333
    python -m userprobe score user_api                         # Compare targets
"""
