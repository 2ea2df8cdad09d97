"""
Core infrastructure for voiceover.

    - config.py: operator settings (YAML + environment) and validation
    - logging/: structured logging with numeric levels
    - state.py: durable key-value state
"""
