"""Course recommendation service."""
