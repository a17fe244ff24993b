"""Cost Explorer Reader - Fetches per-service costs from AWS Cost Explorer."""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from config import DEFAULT_AWS_REGION
from errors import DataFetchError
from models import CostEntry, DateRange

logger = logging.getLogger(__name__)


class CostExplorerReader:
    """Read monthly per-service costs from AWS Cost Explorer."""

    GRANULARITY = "MONTHLY"
    DEFAULT_METRIC = "BlendedCost"

    def __init__(
        self,
        aws_profile: Optional[str] = None,
        aws_region: Optional[str] = DEFAULT_AWS_REGION,
        metric: str = DEFAULT_METRIC,
    ) -> None:
        """
        Initialize the Cost Explorer reader.

        Args:
            aws_profile: AWS profile name (optional)
            aws_region: AWS region for the Cost Explorer endpoint
            metric: Cost metric to request (BlendedCost, UnblendedCost, ...)
        """
        self.aws_profile = aws_profile
        self.aws_region = aws_region
        self.metric = metric

        self._session_params = {}
        if aws_profile:
            self._session_params["profile_name"] = aws_profile
        if aws_region:
            self._session_params["region_name"] = aws_region

        try:
            self.session = boto3.Session(**self._session_params)
            self.ce_client = self.session.client("ce")
            logger.info(f"Initialized Cost Explorer client (region: {aws_region})")
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error initializing AWS session: {e}")
            raise DataFetchError(f"Could not create Cost Explorer client: {e}") from e

    def _build_request(self, period: DateRange) -> Dict[str, Any]:
        # Cost Explorer treats End as exclusive; the report period includes its last day
        return {
            "TimePeriod": {
                "Start": period.start.isoformat(),
                "End": (period.end + timedelta(days=1)).isoformat(),
            },
            "Granularity": self.GRANULARITY,
            "Metrics": [self.metric],
            "GroupBy": [{"Type": "DIMENSION", "Key": "SERVICE"}],
        }

    def _parse_groups(self, response: Dict[str, Any]) -> List[CostEntry]:
        entries = []
        for by_time in response.get("ResultsByTime", []):
            for group in by_time.get("Groups", []):
                try:
                    service = group["Keys"][0]
                    amount = float(group["Metrics"][self.metric]["Amount"])
                except (KeyError, IndexError, TypeError, ValueError) as e:
                    raise DataFetchError(f"Malformed Cost Explorer group {group!r}: {e}") from e
                entries.append(CostEntry(service=service, amount=amount))
        return entries

    def fetch_costs(self, period: DateRange) -> List[CostEntry]:
        """
        Fetch costs grouped by service for the given period.

        Args:
            period: Inclusive reporting period

        Returns:
            List of CostEntry, one per service group in the response

        Raises:
            DataFetchError: If the request fails or the response is malformed
        """
        request = self._build_request(period)
        logger.info(f"Fetching {self.metric} by service for {period}")

        entries: List[CostEntry] = []
        next_token: Optional[str] = None
        pages = 0
        while True:
            params = dict(request)
            if next_token:
                params["NextPageToken"] = next_token

            try:
                response = self.ce_client.get_cost_and_usage(**params)
            except (BotoCoreError, ClientError) as e:
                logger.error(f"Error querying Cost Explorer: {e}")
                raise DataFetchError(f"Cost Explorer request failed: {e}") from e

            logger.debug(f"Cost Explorer response: {response}")
            entries.extend(self._parse_groups(response))
            pages += 1

            next_token = response.get("NextPageToken")
            if not next_token:
                break

        logger.info(f"Fetched {len(entries)} service cost entries ({pages} page(s))")
        return entries
