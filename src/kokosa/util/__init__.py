"""
Utility functions and helpers for Kokosa.

This package provides reusable utilities:

- **logger.py**: Centralized logging configuration with coloured console output
  through prompt_toolkit, a rotating per-process log file, and suppression of
  chatty third-party loggers (aiohttp, openai, httpx, aiosqlite).

- **image_utils.py**: Image download for moderation. Fetches image bytes over
  HTTP in a worker thread and detects the MIME type from the URL suffix or the
  file's magic bytes.

- **clock.py**: Millisecond wall clock shared by the rate limiter, relay ids
  and block timestamps, injectable in tests.
"""
