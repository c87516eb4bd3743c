"""Request pipelines: supplier matching, notification dispatch and intake.

Each step is callable on its own so it can be exercised without the API.
"""
