"""Staff directory adapter registry: pluggable identity/role provider."""

import os

from labdesk.directory.port import StaffDirectory

_directory_instance: StaffDirectory | None = None


def get_directory() -> StaffDirectory:
    """Return the configured staff directory (singleton).

    Uses the in-memory directory by default. Configure via the
    STAFF_DIRECTORY environment variable.
    """
    global _directory_instance
    if _directory_instance is None:
        adapter = os.environ.get("STAFF_DIRECTORY", "fake")
        if adapter == "fake":
            from labdesk.directory.fake_adapter import InMemoryStaffDirectory

            _directory_instance = InMemoryStaffDirectory()
        else:
            raise ValueError(f"Unknown staff directory adapter: {adapter}")
    return _directory_instance


def set_directory(directory: StaffDirectory) -> None:
    """Install a specific directory adapter."""
    global _directory_instance
    _directory_instance = directory


def reset_directory() -> None:
    """Reset the directory singleton (useful for testing)."""
    global _directory_instance
    _directory_instance = None
