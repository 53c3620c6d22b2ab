from app.main import app  # pragma: no cover

# Allows `python -m app` to run uvicorn programmatically.
if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    from app.core.config import get_settings

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
