"""Test utilities for plume sites::

    from plume.testing import TestClient, assert_redirect
"""

from plume.testing.assertions import assert_not_found, assert_redirect
from plume.testing.client import TestClient

__all__ = [
    "TestClient",
    "assert_not_found",
    "assert_redirect",
]
