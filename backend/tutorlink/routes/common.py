"""Helpers shared by the route modules."""

from typing import Iterable, NoReturn

from fastapi import BackgroundTasks, HTTPException, status

from ..core.exceptions import DomainException
from ..services.base import DeferredTask


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def schedule_deferred(background_tasks: BackgroundTasks, tasks: Iterable[DeferredTask]) -> None:
    """Run post-commit side effects after the response has been sent."""
    for task in tasks:
        background_tasks.add_task(task.func, *task.args)
