"""Configuration modules for pokeguess.

Submodules:
- config.settings: Environment-backed settings (API key, bot token, round defaults)
- config.logging: Colored console logging setup
"""
