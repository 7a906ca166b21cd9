"""Game domain services: lifecycle, roster, board authoring, clue claims
and scoring.

This package contains the core game rules and should be imported by the
HTTP routes, keeping transport concerns separated from game mechanics.
Every mutating function commits exactly once and rolls back on failure.
"""
