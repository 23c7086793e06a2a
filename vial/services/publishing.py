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
Episode publish status rules.

One function decides draft / scheduled / published for every caller: episode
creation, schedule edits and the scheduled-publish sweep.

Publish date and time are wall-clock values in the configured timezone. A
missing time means midnight. An episode whose publish moment equals "now" is
published.
"""

from datetime import date, datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..models.episode import EpisodeStatus, PublishDecision
from ..utils.exceptions import InvalidScheduleError

DEFAULT_PUBLISH_TIME = "00:00"

TimezoneLike = Union[str, ZoneInfo, timezone, None]


def resolve_timezone(tz: TimezoneLike) -> Union[ZoneInfo, timezone]:
    """Turn an IANA name (or None for UTC) into a tzinfo."""
    if tz is None or tz == "" or tz == "UTC":
        return timezone.utc
    if isinstance(tz, (ZoneInfo, timezone)):
        return tz
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidScheduleError(f"Unknown timezone: {tz}", timezone=tz) from e


def _aware(now: datetime) -> datetime:
    # Naive datetimes are taken as UTC
    return now if now.tzinfo else now.replace(tzinfo=timezone.utc)


def parse_publish_moment(publish_date: str, publish_time: Optional[str], tz: TimezoneLike = None) -> datetime:
    """
    Combine a publish date and optional time into an aware datetime.

    Raises:
        InvalidScheduleError: If the date or time doesn't parse
    """
    time_part = publish_time or DEFAULT_PUBLISH_TIME
    try:
        naive = datetime.strptime(f"{publish_date} {time_part}", "%Y-%m-%d %H:%M")
    except (TypeError, ValueError) as e:
        raise InvalidScheduleError(
            "Invalid publish date or time",
            publish_date=publish_date,
            publish_time=publish_time,
        ) from e
    return naive.replace(tzinfo=resolve_timezone(tz))


def determine_episode_status(
    publish_date: Optional[str],
    publish_time: Optional[str],
    now: datetime,
    tz: TimezoneLike = None,
) -> PublishDecision:
    """
    Decide an episode's status and visibility from its publish schedule.

    Args:
        publish_date: YYYY-MM-DD, or None/"" for no schedule
        publish_time: HH:MM, or None/"" for midnight
        now: Current time (naive values are treated as UTC)
        tz: Timezone the date and time are expressed in (default UTC)

    Returns:
        - no date: draft, not public
        - publish moment <= now: published, public
        - publish moment > now: scheduled, not public

    Raises:
        InvalidScheduleError: If the date or time is malformed

    Example:
        >>> from datetime import datetime, timezone
        >>> now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        >>> determine_episode_status("2025-01-01", "12:00", now).status
        <EpisodeStatus.PUBLISHED: 'published'>
    """
    if not publish_date:
        return PublishDecision(status=EpisodeStatus.DRAFT, is_public=False)

    publish_at = parse_publish_moment(publish_date, publish_time, tz)

    if publish_at <= _aware(now):
        return PublishDecision(status=EpisodeStatus.PUBLISHED, is_public=True, publish_at=publish_at)

    return PublishDecision(status=EpisodeStatus.SCHEDULED, is_public=False, publish_at=publish_at)


def local_date(now: datetime, tz: TimezoneLike = None) -> date:
    """Calendar date of now in the given timezone."""
    return _aware(now).astimezone(resolve_timezone(tz)).date()
