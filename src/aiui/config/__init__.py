"""Configuration: code defaults, ``aiui.toml``, ``AIUI_*`` env vars, CLI flags."""
