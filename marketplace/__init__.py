"""Backend package: supplier directory, requirement store, pipelines, API.

This package wires requirement intake, supplier matching and notification
dispatch behind a small JSON API.
"""
