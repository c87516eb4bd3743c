"""Static data shipped with the service."""
