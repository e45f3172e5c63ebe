"""Infer file writes from shell command strings.

Commands are opaque text here: no shell grammar is applied. Each recognizer
matches one file-writing idiom and captures the path token(s) it targets.
Plain ``>``/``>>`` redirects from other commands are not recognized.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from agent_detector.parsers.paths import clean_path


@dataclass(frozen=True)
class FileWriteRecognizer:
    name: str
    pattern: re.Pattern[str]
    # Split the capture on whitespace and treat every field as a path.
    multi: bool = False

    def candidates(self, command: str) -> list[str]:
        found: list[str] = []
        for match in self.pattern.finditer(command):
            captured = match.group(1)
            if self.multi:
                found.extend(captured.split())
            else:
                found.append(captured)
        return found


FILE_WRITE_RECOGNIZERS: list[FileWriteRecognizer] = [
    # cat > PATH  (plain redirect or heredoc)
    FileWriteRecognizer("cat_redirect", re.compile(r"\bcat\s+>\s+(\S+)")),
    FileWriteRecognizer("tee", re.compile(r"\btee\s+(?:-a\s+)?(\S+)")),
    FileWriteRecognizer("touch", re.compile(r"\btouch\s+(.+)"), multi=True),
    FileWriteRecognizer("cp", re.compile(r"\bcp\s+(?:-\w+\s+)*\S+\s+(\S+)")),
    FileWriteRecognizer("mv", re.compile(r"\bmv\s+(?:-\w+\s+)*\S+\s+(\S+)")),
    # sed -i[SUFFIX] SCRIPT PATH
    FileWriteRecognizer(
        "sed_in_place",
        re.compile(r"""\bsed\s+-i\S*\s+(?:'[^']*'|"[^"]*"|\S+)\s+(\S+)"""),
    ),
]


def register_recognizer(name: str, pattern: str | re.Pattern[str], multi: bool = False) -> FileWriteRecognizer:
    """Append a new idiom to the end of the recognizer list."""
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    if compiled.groups < 1:
        raise ValueError(f"recognizer {name!r} needs a capture group for the path")
    recognizer = FileWriteRecognizer(name=name, pattern=compiled, multi=multi)
    FILE_WRITE_RECOGNIZERS.append(recognizer)
    return recognizer


def extract_files_from_cmd(
    command: str,
    recognizers: list[FileWriteRecognizer] | None = None,
) -> list[str]:
    """Return the paths ``command`` likely wrote, deduplicated in first-seen order."""
    files: list[str] = []
    seen: set[str] = set()
    if not command:
        return files

    for recognizer in FILE_WRITE_RECOGNIZERS if recognizers is None else recognizers:
        for raw in recognizer.candidates(command):
            path = clean_path(raw)
            if path and path not in seen:
                seen.add(path)
                files.append(path)
    return files
