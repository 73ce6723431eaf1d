"""File extension → language classification."""

from __future__ import annotations

from pathlib import PurePosixPath

UNKNOWN_EXTENSION = "unknown"
OTHER_LANGUAGE = "Other"

EXTENSION_LANGUAGES: dict[str, str] = {
    "js": "JavaScript",
    "jsx": "JavaScript",
    "ts": "TypeScript",
    "tsx": "TypeScript",
    "py": "Python",
    "java": "Java",
    "cpp": "C++",
    "c": "C",
    "cs": "C#",
    "go": "Go",
    "rs": "Rust",
    "rb": "Ruby",
    "php": "PHP",
    "swift": "Swift",
    "kt": "Kotlin",
    "html": "HTML",
    "css": "CSS",
    "scss": "SCSS",
    "json": "JSON",
    "md": "Markdown",
    "sql": "SQL",
    "sh": "Shell",
    "yml": "YAML",
    "yaml": "YAML",
    "xml": "XML",
}


def file_extension(filename: str) -> str:
    """Lower-cased text after the last dot of the file name, or ``"unknown"``."""
    name = PurePosixPath(filename).name
    if "." not in name:
        return UNKNOWN_EXTENSION
    return name.rsplit(".", 1)[1].lower()


def detect_language(filename: str) -> str:
    return EXTENSION_LANGUAGES.get(file_extension(filename), OTHER_LANGUAGE)
