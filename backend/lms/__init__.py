"""Course Review Engine backend."""

__version__ = "0.1.0"
