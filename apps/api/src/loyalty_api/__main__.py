import uvicorn

from loyalty_api.core.settings import settings


def main() -> None:
    """Serve the connector API; auto-reload only in development."""

    uvicorn.run(
        "loyalty_api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":
    main()
