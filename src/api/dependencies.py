"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from src.api.container import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    """Get the service container built at startup."""
    return request.app.state.services


Services = Annotated[ServiceContainer, Depends(get_services)]
