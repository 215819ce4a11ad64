"""Exception types raised across the review pipeline.

ReviewBotError (base)
├── ConfigurationError      – missing credentials or invalid settings; aborts an event
├── CompletionError         – completion-service failures seen by the AI analyzer
│   ├── RateLimitedError    – stop calling the service for the rest of the batch
│   └── CompletionServiceError – skip the current file only
└── LintEngineError         – ESLint could not produce a usable report for one file
"""

from __future__ import annotations


class ReviewBotError(Exception):
    """Base exception for reviewbot."""


class ConfigurationError(ReviewBotError):
    """Required configuration or credentials are missing."""


class CompletionError(ReviewBotError):
    """The hosted completion service did not return a usable response."""


class RateLimitedError(CompletionError):
    """The completion service rejected the call because of rate limiting."""


class CompletionServiceError(CompletionError):
    """The completion service failed for any reason other than rate limiting."""


class LintEngineError(ReviewBotError):
    """The lint engine failed internally (not a lint finding)."""
