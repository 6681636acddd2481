"""State reporting service."""

import logging
from typing import Optional

import httpx


class ReportService:
    """Posts state snapshots to a reporting endpoint."""

    def __init__(self, report_url: Optional[str] = None):
        """Initialize report service.

        Args:
            report_url: Endpoint receiving ``to_map()`` snapshots (disabled if None)
        """
        self.logger = logging.getLogger("updateagent.reporter")
        self.report_url = report_url

    async def report_state(self, state) -> None:
        """Send a state snapshot.

        Args:
            state: Any update state

        Note:
            Failures are logged but not raised to avoid blocking the update
        """
        if not self.report_url:
            return

        payload = state.to_map()
        self.logger.debug(f"Reporting state: {payload}")

        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.post(self.report_url, json=payload)
                response.raise_for_status()
                self.logger.debug("Report sent successfully")

        except httpx.HTTPError as e:
            self.logger.warning(
                f"Failed to report state '{payload.get('status')}': {e}. "
                f"Continuing update..."
            )

        except Exception as e:
            self.logger.error(
                f"Unexpected error reporting state '{payload.get('status')}': {e}. "
                f"Continuing update..."
            )
