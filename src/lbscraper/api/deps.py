"""Request dependencies shared by the API routers."""

from fastapi import Request

from ..jobs import AggregationRunner


def get_runner(request: Request) -> AggregationRunner:
    """Return the aggregation runner attached to the application."""

    return request.app.state.runner
