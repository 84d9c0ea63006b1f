from __future__ import annotations

from typing import Any, Dict, Optional


class ZiphubError(Exception):
    """Base class for all domain failures."""

    kind = "Error"
    http_status = 400
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.kind, "message": self.message}


class InvalidInput(ZiphubError):
    kind = "InvalidInput"
    default_message = "Missing or empty required fields"


class MissingFields(ZiphubError):
    kind = "MissingFields"
    default_message = "Missing fields"


class EmptyComment(ZiphubError):
    kind = "EmptyComment"
    default_message = "Empty comment"


class UsernameTaken(ZiphubError):
    kind = "UsernameTaken"
    http_status = 409
    default_message = "Username taken"


class InvalidCredentials(ZiphubError):
    kind = "InvalidCredentials"
    http_status = 401
    default_message = "Invalid credentials"


class PendingApproval(ZiphubError):
    kind = "PendingApproval"
    http_status = 403
    default_message = "Developer pending admin approval"


class Unauthenticated(ZiphubError):
    kind = "Unauthenticated"
    http_status = 401
    default_message = "Not authenticated"


class InvalidSession(ZiphubError):
    kind = "InvalidSession"
    http_status = 401
    default_message = "Invalid session"


class Forbidden(ZiphubError):
    kind = "Forbidden"
    http_status = 403
    default_message = "Forbidden"


class NotApprovedDeveloper(ZiphubError):
    kind = "NotApprovedDeveloper"
    http_status = 403
    default_message = "Developer approval required"


class NoSuchFile(ZiphubError):
    kind = "NoSuchFile"
    http_status = 404
    default_message = "No file"


class NoSuchDeveloper(ZiphubError):
    kind = "NoSuchDeveloper"
    http_status = 404
    default_message = "No developer"


class StoreCorrupt(ZiphubError):
    kind = "StoreCorrupt"
    http_status = 500
    default_message = "Collection content is malformed"
