import os
import shlex
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "model": "anthropic",
    "ai_model": None,  # None = provider default
    "openai_base_url": None,  # set for OpenAI-compatible services, e.g. Groq
    "max_inline_comments": 30,
    "max_file_additions": 500,  # larger files are diffed and counted but never fetched
    "max_ai_files": 3,
    "ai_min_lines": 5,
    "ai_max_chars": 10000,
    "ai_context_chars": 3000,
    "eslint_command": ["eslint"],
    "eslint_timeout": 30,
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "migrations/", "*.min.js")
    "review_draft_prs": False,
    "public_link": "https://github.com/apps/reviewbot",
}


def load_config(config_path: str = ".reviewbot.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .reviewbot.yml in the current directory
      3. CLI argument overrides
    """
    config = {
        **DEFAULT_CONFIG,
        "exclude": list(DEFAULT_CONFIG["exclude"]),
        "eslint_command": list(DEFAULT_CONFIG["eslint_command"]),
    }

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # "npx eslint" in YAML is as valid as ["npx", "eslint"].
    if isinstance(config["eslint_command"], str):
        config["eslint_command"] = shlex.split(config["eslint_command"])

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

    return config
