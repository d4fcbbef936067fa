import uvicorn

from throttle_api.core.app_factory import create_app
from throttle_api.core.config import settings

app = create_app()


def run() -> None:
    """Serve the app with uvicorn using the configured bind address."""
    uvicorn.run(app, host=settings.app.host, port=settings.app.port)


if __name__ == "__main__":
    run()
