import uvicorn

from filegate.core.config import get_settings


def main() -> None:
    # Fails before binding the port when the R2 configuration is incomplete.
    settings = get_settings()
    uvicorn.run(
        "filegate.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
