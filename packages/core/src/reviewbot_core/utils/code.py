from pathlib import PurePosixPath

NON_CODE_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".ico",
    ".webp",
    ".bmp",
    ".pdf",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".otf",
    ".mp4",
    ".mp3",
    ".wav",
    ".ogg",
    ".zip",
    ".tar",
    ".gz",
    ".rar",
    ".7z",
    ".lock",  # e.g. package-lock.json, Pipfile.lock
}

# Extension (without the dot) -> language bucket used by the analyzers.
LANGUAGE_MAP = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "java": "java",
    "go": "go",
    "rs": "rust",
    "php": "php",
    "rb": "ruby",
    "swift": "swift",
    "kt": "kotlin",
    "cs": "csharp",
    "json": "json",
    "yml": "yaml",
    "yaml": "yaml",
    "md": "markdown",
}

UNKNOWN_LANGUAGE = "unknown"


def is_code_file(file_name: str) -> bool:
    return not any(file_name.lower().endswith(ext) for ext in NON_CODE_EXTENSIONS)


def detect_language(file_name: str) -> str:
    ext = PurePosixPath(file_name).suffix.lower()[1:]
    return LANGUAGE_MAP.get(ext, UNKNOWN_LANGUAGE)
