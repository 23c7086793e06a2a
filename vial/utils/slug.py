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
Filesystem-safe names for uploaded media.

Uses python-slugify for proper Unicode transliteration and edge case handling.
"""

from pathlib import PurePath
from typing import Tuple

from slugify import slugify as python_slugify

# Leaves room for the uuid prefix the media store adds
MAX_SLUG_LENGTH = 80


def generate_slug(text: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """
    Generate a URL/filesystem-safe slug from text.

    Examples:
        >>> generate_slug("Quiet Forces: Episode #12")
        'quiet-forces-episode-12'
        >>> generate_slug("!!!")
        'unnamed'
    """
    slug = python_slugify(text, max_length=max_length)
    return slug or "unnamed"


def split_file_name(file_name: str) -> Tuple[str, str]:
    """
    Split an uploaded file name into a slugged stem and a lower-cased extension.

    Directory components are dropped, so client-supplied paths can't escape
    the media root.

    Examples:
        >>> split_file_name("../My Episode 01.MP3")
        ('my-episode-01', 'mp3')
        >>> split_file_name("noext")
        ('noext', '')
    """
    path = PurePath(file_name.replace("\\", "/")).name
    stem, dot, extension = path.rpartition(".")
    if not dot:
        stem, extension = path, ""
    extension = python_slugify(extension, separator="")[:10]
    return generate_slug(stem), extension


def safe_file_name(file_name: str) -> str:
    """Slugged file name with its extension kept ("My Ep.mp3" -> "my-ep.mp3")."""
    stem, extension = split_file_name(file_name)
    return f"{stem}.{extension}" if extension else stem
