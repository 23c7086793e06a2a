# Copyright 2025 thestill.me
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Response helpers for the Vial web API.

Every JSON endpoint answers with the same envelope:

    {"success": true, "data": ..., "message": "..."}     on success
    {"success": false, "error": "..."}                   on failure
"""

from typing import Any, Dict, NoReturn, Optional

from fastapi import HTTPException


def api_response(data: Any = None, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """
    Wrap data in the success envelope.

    Args:
        data: Response payload (omitted from the envelope when None)
        message: Optional human-readable message
        **extra: Additional top-level fields (e.g. last_update)

    Example:
        >>> api_response({"id": "abc"}, message="Episode updated")
        {'success': True, 'data': {'id': 'abc'}, 'message': 'Episode updated'}
    """
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    body.update(extra)
    return body


def error_response(error: str, **extra: Any) -> Dict[str, Any]:
    """
    Failure envelope.

    Example:
        >>> error_response("Episode not found")
        {'success': False, 'error': 'Episode not found'}
    """
    return {"success": False, "error": error, **extra}


# =============================================================================
# HTTP Error Helpers
# =============================================================================


def forbidden(message: str = "Admin access required") -> NoReturn:
    """Raise 403 Forbidden."""
    raise HTTPException(status_code=403, detail=message)
