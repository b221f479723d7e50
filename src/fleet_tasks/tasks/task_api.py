# src/fleet_tasks/tasks/task_api.py

from __future__ import annotations

import logging
from typing import Any

from .dispatcher import CommandDispatcher
from .requests import RequestError, parse_request
from .responses import build_envelope
from .task_models import ErrorCode

logger = logging.getLogger(__name__)


def process_message(dispatcher: CommandDispatcher, text: str) -> dict[str, Any]:
    """
    Full request path used by the listener: parse -> dispatch -> envelope.

    Never raises; a crashing handler is answered with UNKNOWN_ERROR.
    """
    try:
        tag, request = parse_request(text)
    except RequestError as e:
        logger.warning("Rejected request: %s", e)
        return build_envelope(e.code)

    try:
        response, code = dispatcher.dispatch(tag, request)
    except Exception:
        logger.exception("Handler crashed command=%s", tag)
        return build_envelope(ErrorCode.UNKNOWN_ERROR)

    if code != ErrorCode.SUCCESS:
        return build_envelope(code)
    return build_envelope(ErrorCode.SUCCESS, response)
