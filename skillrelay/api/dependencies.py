"""Dependency injection for API routes.

The runtime is built once by ``create_app`` and kept on ``app.state``;
tests pass their own runtime to the factory.
"""

from typing import Annotated

from fastapi import Depends, Request

from skillrelay.runtime.factory import Runtime


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


RuntimeDep = Annotated[Runtime, Depends(get_runtime)]
