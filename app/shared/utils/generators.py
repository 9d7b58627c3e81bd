"""Identifier generation for flows, steps, runs and request ids."""

from cuid2 import cuid_wrapper

_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """Return a new CUID2 (collision-resistant, URL-safe, sortable enough for logs)."""
    return str(_cuid())
