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
Unit tests for web response helpers and the error envelope.
"""

import pytest
from fastapi import HTTPException

from vial.utils.exceptions import EpisodeNotFoundError, InvalidScheduleError, VialError
from vial.web.app import _validation_message
from vial.web.responses import api_response, error_response, forbidden


class TestApiResponse:
    """Tests for api_response helper."""

    def test_data_and_message(self):
        result = api_response({"id": "abc"}, message="Episode updated")

        assert result == {"success": True, "data": {"id": "abc"}, "message": "Episode updated"}

    def test_data_omitted_when_none(self):
        assert api_response() == {"success": True}

    def test_empty_list_is_kept(self):
        assert api_response([]) == {"success": True, "data": []}

    def test_extra_top_level_fields(self):
        result = api_response([1, 2], count=2, last_update=1700000000000)

        assert result["count"] == 2
        assert result["last_update"] == 1700000000000


class TestErrorResponse:
    def test_error_envelope(self):
        assert error_response("Episode not found") == {"success": False, "error": "Episode not found"}

    def test_forbidden_raises_403(self):
        with pytest.raises(HTTPException) as excinfo:
            forbidden()

        assert excinfo.value.status_code == 403
        assert excinfo.value.detail == "Admin access required"


class TestValidationMessage:
    def test_first_error_with_field(self):
        errors = [{"loc": ("body", "title"), "msg": "String should have at least 3 characters"}]

        assert _validation_message(errors) == "title: String should have at least 3 characters"

    def test_without_location(self):
        assert _validation_message([{"loc": ("body",), "msg": "Field required"}]) == "Field required"

    def test_no_errors(self):
        assert _validation_message([]) == "Invalid request"


class TestExceptions:
    def test_status_codes(self):
        assert VialError("boom").status_code == 500
        assert EpisodeNotFoundError("abc").status_code == 404
        assert InvalidScheduleError("bad date").status_code == 400

    def test_context_in_str_not_message(self):
        error = EpisodeNotFoundError("abc")

        assert error.message == "Episode not found"
        assert str(error) == "Episode not found (episode_id=abc)"
        assert "EpisodeNotFoundError" in repr(error)
