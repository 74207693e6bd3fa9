"""
Input validation for document paths, names and sync configurations.

Validators return ``(is_valid, error_message)`` tuples so callers can
decide whether to raise, report, or log.
"""


def format_validation_error(field_name: str, reason: str) -> str:
    return f"{field_name} {reason}"


def validate_document_path(path: str) -> tuple[bool, str]:
    """
    Validate a repository-relative document path.

    Rules:
        - Cannot be empty or whitespace-only
        - Cannot start with '/' (paths are relative to the repository root)
        - Cannot contain '..' segments
        - Cannot have empty segments (e.g. 'docs//a.md')
        - Cannot end with '/' (that names a directory)
    """
    if not path or not path.strip():
        return False, format_validation_error("Path", "cannot be empty")
    if path.startswith("/"):
        return False, format_validation_error(
            "Path", "must be relative to the repository root"
        )
    if path.endswith("/"):
        return False, format_validation_error(
            "Path", "must name a file, not a directory"
        )
    segments = path.split("/")
    if ".." in segments:
        return False, format_validation_error("Path", "cannot contain '..'")
    if "" in segments:
        return False, format_validation_error(
            "Path", "cannot have empty path segments"
        )
    return True, ""


def validate_document_name(name: str) -> tuple[bool, str]:
    """Validate a display name (the last path segment)."""
    if not name or not name.strip():
        return False, format_validation_error("Name", "cannot be empty")
    if "/" in name:
        return False, format_validation_error("Name", "cannot contain '/'")
    if name in (".", ".."):
        return False, format_validation_error("Name", f"cannot be '{name}'")
    return True, ""


def validate_binding(
    owner: str, repo: str, base_path: str, credential: str
) -> tuple[bool, str]:
    """Validate a repository binding before it is saved as active."""
    for field_name, value in (
        ("Owner", owner),
        ("Repository", repo),
        ("Credential", credential),
    ):
        if not value or not value.strip():
            return False, format_validation_error(field_name, "cannot be empty")
    if ".." in base_path.split("/"):
        return False, format_validation_error(
            "Base path", "cannot contain '..'"
        )
    return True, ""


def normalize_base_path(base_path: str) -> str:
    """Return *base_path* without a leading slash and with one trailing slash.

    The repository root is represented by the empty string.
    """
    cleaned = base_path.strip().strip("/")
    return f"{cleaned}/" if cleaned else ""
