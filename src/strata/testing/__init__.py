"""Test utilities for strata applications.

::

    from strata.testing import TestClient
"""

from strata.testing.client import TestClient

__all__ = ["TestClient"]
