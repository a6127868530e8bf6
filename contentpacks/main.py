import logging

from contentpacks.api.main import app

if __name__ == "__main__":
    import uvicorn

    from contentpacks.config import load_settings

    settings = load_settings()
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port)
