"""Extract target files from apply_patch style patch text."""
from __future__ import annotations

# Directive lines that name a file the patch writes to.
PATCH_FILE_DIRECTIVES = (
    "*** Update File: ",
    "*** Add File: ",
    "*** Move to: ",
)


def extract_files_from_patch(patch_text: str) -> list[str]:
    """Return written paths in order of first appearance.

    Lines that are not file directives are ignored, so arbitrary text yields
    an empty list rather than an error.
    """
    files: list[str] = []
    seen: set[str] = set()
    for line in (patch_text or "").splitlines():
        for prefix in PATCH_FILE_DIRECTIVES:
            if not line.startswith(prefix):
                continue
            path = line[len(prefix):].strip()
            if path and path not in seen:
                seen.add(path)
                files.append(path)
            break
    return files
