"""
Local HTTP API.

    - routes.py: settings, voices, generation, history, reset, audio
    - schemas.py: request/response models
    - dependencies.py: application state for the route handlers
"""
