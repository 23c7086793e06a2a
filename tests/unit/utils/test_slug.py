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
Unit tests for slug utilities.
"""

import pytest

from vial.utils.slug import generate_slug, safe_file_name, split_file_name


class TestGenerateSlug:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Quiet Forces: Episode #12", "quiet-forces-episode-12"),
            ("Café Résumé", "cafe-resume"),
            ("  spaced   out  ", "spaced-out"),
            ("!!!", "unnamed"),
            ("", "unnamed"),
        ],
    )
    def test_slugs(self, text, expected):
        assert generate_slug(text) == expected

    def test_max_length(self):
        assert len(generate_slug("word " * 50, max_length=20)) <= 20


class TestSplitFileName:
    @pytest.mark.parametrize(
        "file_name,expected",
        [
            ("My Episode 01.MP3", ("my-episode-01", "mp3")),
            ("../../etc/passwd.mp3", ("passwd", "mp3")),
            ("C:\\Users\\ada\\take 2.wav", ("take-2", "wav")),
            ("noext", ("noext", "")),
            ("archive.tar.gz", ("archive-tar", "gz")),
        ],
    )
    def test_split(self, file_name, expected):
        assert split_file_name(file_name) == expected

    def test_safe_file_name(self):
        assert safe_file_name("My Ep.mp3") == "my-ep.mp3"
        assert safe_file_name("README") == "readme"
