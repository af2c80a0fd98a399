"""Bookshelf helpers

- validators.py: write-time book rules and list filter coercion
- http_client.py: httpx client for the HTTP API
- ui_helpers.py: CLI output in plain, json or rich modes
"""
