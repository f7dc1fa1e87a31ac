"""Vote webhook endpoint."""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response, status

from vote_reminders.schemas.vote import WebhookPayload
from vote_reminders.services.dispatcher import VoteEvent, WebhookDispatcher
from vote_reminders.services.store import NotReadyError

logger = logging.getLogger(__name__)


def get_dispatcher(request: Request) -> WebhookDispatcher:
    """Return the dispatcher attached to the application."""
    return request.app.state.dispatcher


def verify_authorization(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Reject requests whose Authorization header does not match the shared secret."""
    expected: str | None = getattr(request.app.state, "authorization", None)
    if expected is None:
        return
    if authorization is None or not secrets.compare_digest(
        authorization.encode(), expected.encode()
    ):
        logger.warning("Rejected webhook request with bad authorization")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")


DispatcherDep = Annotated[WebhookDispatcher, Depends(get_dispatcher)]


async def receive_vote(
    payload: WebhookPayload,
    dispatcher: DispatcherDep,
) -> Response:
    """Accept one vote and hand it to the dispatcher."""
    event = VoteEvent(
        subject_id=payload.user,
        kind="test" if payload.is_test else "production",
        raw=payload.raw(),
    )
    try:
        dispatcher.dispatch(event)
    except NotReadyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Vote store is not ready",
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def register_webhook_route(app: FastAPI, path: str) -> None:
    """Mount the vote webhook on ``app`` at ``path``."""
    app.add_api_route(
        path,
        receive_vote,
        methods=["POST"],
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        dependencies=[Depends(verify_authorization)],
        tags=["webhook"],
    )
