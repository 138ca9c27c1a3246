"""Human-readable filesystem error messages.

The media library is usually a Docker bind mount or a NAS share, and most indexing and
streaming failures are plain OSErrors with a bare errno. These helpers turn them into
messages with a hint about what to check.
"""

import errno
from pathlib import Path
from typing import Any

# Hey future me - errno -> (description, hint). Add entries when users report confusing errors.
ERRNO_MESSAGES = {
    errno.EACCES: (
        "Permission denied",
        "Check file permissions of the media directory and the user the server runs as. "
        "Run: ls -la <path> to see permissions.",
    ),
    errno.ENOENT: (
        "File or directory not found",
        "Path does not exist. Verify LOCALIFY_STORAGE__MEDIA_PATH and any volume mounts.",
    ),
    errno.ENOTDIR: (
        "Not a directory",
        "The media path points at a file. It must be a directory.",
    ),
    errno.EISDIR: (
        "Is a directory",
        "Tried to read a directory as an audio file. Check the stored track path.",
    ),
    errno.ELOOP: (
        "Too many levels of symbolic links",
        "A symlink chain loops back on itself. Remove or fix the link.",
    ),
    errno.EIO: (
        "Input/output error",
        "The disk or network share failed during the read. Check dmesg and the mount.",
    ),
    errno.ESTALE: (
        "Stale file handle",
        "The network share was remounted. Remount it and re-run indexing.",
    ),
    errno.EMFILE: (
        "Too many open files",
        "Process has too many files open. Increase ulimit or fix file handle leaks.",
    ),
    errno.ENOSPC: (
        "No space left on device",
        "Disk is full! Check available space with 'df -h'.",
    ),
}


def describe_oserror(e: OSError) -> str:
    """Short one-line description of an OSError, e.g. 'Permission denied (Errno 13 / EACCES)'."""
    error_code = e.errno
    if error_code is None:
        return str(e)
    error_name = errno.errorcode.get(error_code, f"UNKNOWN_{error_code}")
    description = ERRNO_MESSAGES.get(error_code, (e.strerror or str(e), ""))[0]
    return f"{description} (Errno {error_code} / {error_name})"


def format_oserror_message(
    e: OSError,
    operation: str,
    path: Path | str | None = None,
    extra_context: dict[str, Any] | None = None,
) -> str:
    """Format OSError with human-readable explanation and hints.

    Hey future me - USE THIS instead of logging str(e)! It turns "[Errno 13]" into
    something a user running the server in Docker can act on.

    Example:
        Failed to read directory '/music/Live': Permission denied (Errno 13 / EACCES)
        HINT: Check file permissions of the media directory and the user the server runs as.

    Args:
        e: The OSError exception
        operation: What was being attempted (e.g., "read directory", "open track")
        path: The file/directory path involved (optional but recommended)
        extra_context: Additional context to include in message (optional)

    Returns:
        Formatted error message with errno, description, and actionable hints
    """
    parts = [f"Failed to {operation}"]
    if path:
        parts.append(f"'{path}'")
    base_message = " ".join(parts) + f": {describe_oserror(e)}"

    if extra_context:
        context_str = ", ".join(f"{k}={v}" for k, v in extra_context.items())
        base_message += f" [{context_str}]"

    hint = ERRNO_MESSAGES.get(e.errno or -1, ("", "Check system logs and file permissions."))[1]
    return f"{base_message}\nHINT: {hint}"
