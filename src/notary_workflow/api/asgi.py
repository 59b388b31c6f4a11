"""ASGI entrypoint for the notarization workflow API."""

from notary_workflow.api.app import create_app
from notary_workflow.containers import build_container

app = create_app(build_container())
