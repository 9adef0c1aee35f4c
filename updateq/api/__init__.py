"""HTTP surface for updateq."""

from __future__ import annotations


def main() -> None:
    """Run the API with uvicorn (console script: updateq-api)."""
    import uvicorn

    from updateq.config import API_HOST, API_PORT

    uvicorn.run("updateq.api.app:app", host=API_HOST, port=API_PORT)
