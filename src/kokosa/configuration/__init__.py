"""
Configuration management for Kokosa.

- **app_configuration.py**: File-locked YAML loader for ``config/app_config.yml``
  with typed accessors for the rate limit, trust threshold, moderation cache,
  webhook and database settings. Falls back to defaults on missing or
  malformed files.

- **moderation_settings.py**: Wrapper around the ``moderation`` section
  (enable flag, auto-block policy, model name, endpoint, prompt).

- **environment.py**: Secrets from the process environment / ``.env``
  (bot token, webhook secret, admin id, moderation API keys).
"""
