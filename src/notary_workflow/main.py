"""Command-line entrypoint that serves the API with uvicorn."""

import uvicorn

from notary_workflow.api.app import create_app
from notary_workflow.config import Settings
from notary_workflow.containers import build_container


def main() -> None:
    """Build the container from the environment and serve the API."""
    settings = Settings()
    app = create_app(build_container(settings))
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
