"""
Microsoft Graph API busy-time source.
"""

import asyncio
import logging
from typing import Any, Dict, List

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarStoreError
from ..domain.models import TimeInterval

logger = logging.getLogger(__name__)


class GraphCalendarStore:
    """
    Read-only busy source for Microsoft Graph calendars.

    Uses the /calendar/getSchedule endpoint to fetch free/busy information.
    The caller supplies a valid access token; acquiring one is out of scope.
    """

    GRAPH_API_ENDPOINT = "https://graph.microsoft.com/v1.0"

    # Statuses that block the participant
    BUSY_STATUSES = frozenset({"busy", "tentative", "oof", "workingelsewhere"})

    def __init__(self, access_token: str, timeout: float = 30):
        """
        Initialize the Graph API client.

        Args:
            access_token: Valid Microsoft Graph access token
            timeout: Request timeout in seconds
        """
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    async def get_busy_intervals(
        self,
        participant_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[TimeInterval]:
        """
        Fetch one participant's busy intervals without blocking the event loop.

        Raises:
            CalendarStoreError: If Graph returns no schedule for the participant
        """
        schedule = await asyncio.to_thread(
            self.get_schedule, [participant_id], start, end
        )

        # scheduleId casing is not guaranteed to match the request
        for schedule_id, busy in schedule.items():
            if schedule_id.lower() == participant_id.lower():
                return busy

        raise CalendarStoreError(f"Microsoft Graph returned no schedule for {participant_id}")

    def get_schedule(
        self,
        emails: List[str],
        start_time: DateTime,
        end_time: DateTime,
    ) -> Dict[str, List[TimeInterval]]:
        """
        Get busy intervals for multiple users.

        Args:
            emails: List of user email addresses
            start_time: Start of the time window
            end_time: End of the time window

        Returns:
            Dictionary mapping email -> list of busy TimeInterval objects

        Raises:
            CalendarStoreError: If the API call fails or a schedule reports an error
        """
        url = f"{self.GRAPH_API_ENDPOINT}/me/calendar/getSchedule"

        # Graph echoes times in the requested zone; UTC keeps parsing unambiguous
        payload = {
            "schedules": emails,
            "startTime": {
                "dateTime": start_time.in_timezone("UTC").strftime("%Y-%m-%dT%H:%M:%S"),
                "timeZone": "UTC",
            },
            "endTime": {
                "dateTime": end_time.in_timezone("UTC").strftime("%Y-%m-%dT%H:%M:%S"),
                "timeZone": "UTC",
            },
            "availabilityViewInterval": 60,
        }

        try:
            response = requests.post(
                url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            raise CalendarStoreError(f"Failed to fetch schedule from Microsoft Graph: {e}") from e

        return self._parse_schedule_response(data)

    def _parse_schedule_response(
        self,
        response_data: Dict[str, Any],
    ) -> Dict[str, List[TimeInterval]]:
        """
        Parse the getSchedule API response into our domain model.

        Response format:
        {
            "value": [
                {
                    "scheduleId": "user@example.com",
                    "scheduleItems": [
                        {
                            "status": "busy",
                            "start": {"dateTime": "...", "timeZone": "UTC"},
                            "end": {"dateTime": "...", "timeZone": "UTC"}
                        }
                    ]
                }
            ]
        }
        """
        busy_times: Dict[str, List[TimeInterval]] = {}

        for schedule in response_data.get("value", []):
            email = schedule.get("scheduleId", "")

            # Per-schedule failures come back inside a 200 response
            error = schedule.get("error")
            if error:
                reason = error.get("message") or error.get("responseCode") or "unknown error"
                raise CalendarStoreError(f"Microsoft Graph could not read the schedule for {email}: {reason}")

            busy_intervals: List[TimeInterval] = []

            for item in schedule.get("scheduleItems", []):
                status = item.get("status", "").lower()
                if status not in self.BUSY_STATUSES:
                    continue

                try:
                    busy_intervals.append(
                        TimeInterval(
                            start=self._parse_datetime(item["start"]),
                            end=self._parse_datetime(item["end"]),
                        )
                    )
                except (KeyError, ValueError) as e:
                    logger.warning("Could not parse schedule item for %s: %s", email, e)
                    continue

            busy_times[email] = busy_intervals

        return busy_times

    def _parse_datetime(self, value: Dict[str, str]) -> DateTime:
        """Parse a Graph dateTimeTimeZone object into a pendulum DateTime."""
        dt = pendulum.parse(value["dateTime"], tz=value.get("timeZone") or "UTC")

        if isinstance(dt, DateTime):
            return dt

        raise ValueError(f"Could not parse datetime: {value['dateTime']}")
