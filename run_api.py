import uvicorn

from messaging.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "messaging.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
