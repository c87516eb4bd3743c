"""Main entry point for running the FastAPI application."""
import uvicorn

from marketplace.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    print("=" * 60)
    print(f"{settings.app_name} v{settings.version}")
    print("=" * 60)
    print(f"Server running on port {settings.port}")
    print(f"Email notifications: {'ENABLED' if settings.email.enabled else 'DISABLED (console logging)'}")
    print(f"Health check: http://localhost:{settings.port}/health")
    print("=" * 60)

    uvicorn.run(
        "marketplace.api:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        reload_dirs=["marketplace", "config"] if settings.debug else None,
        log_level=settings.logging.level.lower(),
    )
