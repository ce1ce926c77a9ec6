"""
Typed application errors for Chat Platform.

Every error carries an error code of the form ``"<type>:<surface>"``:

    - type    : what went wrong (bad_request, unauthorized, forbidden, ...)
    - surface : where it happened (chat, auth, database, document, ...)

The type decides the HTTP status, the code decides the user-facing message,
and the surface decides whether details are returned to the client or only
logged (database errors never leak their cause).
"""

import logging
from typing import Dict, Optional

from fastapi.responses import JSONResponse

log = logging.getLogger("chat.errors")

ERROR_TYPES = ("bad_request", "unauthorized", "forbidden", "not_found", "rate_limit", "offline")

SURFACES = (
    "chat",
    "auth",
    "api",
    "stream",
    "database",
    "history",
    "vote",
    "document",
    "suggestions",
)

# "response": details returned to the caller; "log": details only logged.
VISIBILITY_BY_SURFACE: Dict[str, str] = {surface: "response" for surface in SURFACES}
VISIBILITY_BY_SURFACE["database"] = "log"

STATUS_BY_TYPE: Dict[str, int] = {
    "bad_request": 400,
    "unauthorized": 401,
    "forbidden": 403,
    "not_found": 404,
    "rate_limit": 429,
    "offline": 503,
}

GENERIC_MESSAGE = "Something went wrong. Please try again later."

MESSAGES_BY_CODE: Dict[str, str] = {
    "bad_request:api": "The request couldn't be processed. Please check your input and try again.",
    "unauthorized:auth": "You need to sign in before continuing.",
    "forbidden:auth": "Your account does not have access to this feature.",
    "bad_request:auth": "The sign-in request was invalid. Please check your details and try again.",
    "rate_limit:chat": "You have exceeded your maximum number of messages for the day. Please try again later.",
    "not_found:chat": "The requested chat was not found. Please check the chat ID and try again.",
    "forbidden:chat": "This chat belongs to another user. Please check the chat ID and try again.",
    "unauthorized:chat": "You need to sign in to view this chat. Please sign in and try again.",
    "offline:chat": "We're having trouble sending your message. Please check your internet connection and try again.",
    "not_found:document": "The requested document was not found. Please check the document ID and try again.",
    "forbidden:document": "This document belongs to another user. Please check the document ID and try again.",
    "unauthorized:document": "You need to sign in to view this document. Please sign in and try again.",
    "bad_request:document": "The request to create or update the document was invalid. Please check your input and try again.",
    "bad_request:database": "An error occurred while executing a database query.",
}


class ChatSDKError(Exception):
    """
    Error raised by the query layer and HTTP routes.

    Args:
        error_code (str): "<type>:<surface>", e.g. "bad_request:database".
        cause (Optional[str]): Short technical description of the failure.

    Raises:
        ValueError: If the type or surface is unknown.
    """

    def __init__(self, error_code: str, cause: Optional[str] = None):
        error_type, _, surface = error_code.partition(":")
        if error_type not in STATUS_BY_TYPE:
            raise ValueError(f"Unknown error type: {error_type!r}")
        if surface not in VISIBILITY_BY_SURFACE:
            raise ValueError(f"Unknown error surface: {surface!r}")

        self.type = error_type
        self.surface = surface
        self.cause = cause
        self.message = MESSAGES_BY_CODE.get(error_code, GENERIC_MESSAGE)
        self.status_code = STATUS_BY_TYPE[error_type]
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return f"{self.type}:{self.surface}"

    def to_response(self) -> JSONResponse:
        """
        Render the error as a JSON response.

        Database errors are logged with their cause and answered with a
        generic body so storage details never reach the client.
        """
        if VISIBILITY_BY_SURFACE[self.surface] == "log":
            log.error("code=%s message=%s cause=%s", self.code, self.message, self.cause)
            return JSONResponse(
                {"code": "", "message": GENERIC_MESSAGE},
                status_code=self.status_code,
            )

        return JSONResponse(
            {"code": self.code, "message": self.message, "cause": self.cause},
            status_code=self.status_code,
        )
