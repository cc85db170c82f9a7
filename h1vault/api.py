"""
HackerOne hacker API client.

Both collections are paged with a fixed page size, starting at page 1, until
the server answers with an empty `data` array. Pages are requested strictly
one after another.
"""

import base64
import logging
from typing import Optional

import requests

from .errors import FetchError

logger = logging.getLogger(__name__)

# --- Constants ---
DEFAULT_BASE_URL = "https://api.hackerone.com"
REPORTS_PATH = "/v1/hackers/me/reports?page[size]={page_size}&page[number]={page}"
EARNINGS_PATH = "/v1/hackers/payments/earnings?page[size]={page_size}&page[number]={page}"
PAGE_SIZE = 100
REQUEST_TIMEOUT = 30 # seconds


def basic_auth_header(username, token):
    auth_string = base64.b64encode(f"{username}:{token}".encode('utf-8')).decode('ascii')
    return f"Basic {auth_string}"


class HackerOneClient:
    """
    Pulls reports and earnings for one HackerOne account.

    A non-200 page is only a warning by default and paging carries on with
    the next page number. With strict_pagination=True it raises FetchError
    instead. Network errors and bodies without a `data` array always raise
    FetchError.
    """

    def __init__(self, username, api_token, base_url=DEFAULT_BASE_URL,
                 session: Optional[requests.Session] = None,
                 strict_pagination=False, notifier=None):
        self.username = username
        self.api_token = api_token
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.strict_pagination = strict_pagination
        self.notifier = notifier

    def _headers(self):
        return {
            'Authorization': basic_auth_header(self.username, self.api_token),
            'Accept': 'application/json',
        }

    def fetch_collection(self, path_template) -> list:
        """Requests page after page of path_template and returns all records in order."""
        records = []
        page = 0
        while True:
            page += 1
            url = self.base_url + path_template.format(page_size=PAGE_SIZE, page=page)
            logger.debug(f"GET {url}")
            try:
                response = self.session.get(url, headers=self._headers(), timeout=REQUEST_TIMEOUT)
            except requests.exceptions.RequestException as e:
                raise FetchError(f"Error fetching HackerOne API ({url}): {e}") from e

            if response.status_code != 200:
                message = f"Error fetching HackerOne API: status {response.status_code} for page {page}"
                if self.strict_pagination:
                    raise FetchError(message)
                logger.warning(message)
                if self.notifier:
                    self.notifier.notify(message)

            try:
                payload = response.json()
            except ValueError as e:
                raise FetchError(f"HackerOne API returned a non-JSON body for page {page}: {e}") from e

            data = payload.get('data') if isinstance(payload, dict) else None
            if not isinstance(data, list):
                raise FetchError(f"HackerOne API response for page {page} has no 'data' array")

            if not data:
                logger.debug(f"Page {page} is empty, collected {len(records)} records.")
                return records
            records.extend(data)

    def fetch_reports(self) -> list:
        logger.info("Fetching HackerOne reports...")
        reports = self.fetch_collection(REPORTS_PATH)
        logger.info(f"Fetched {len(reports)} reports.")
        return reports

    def fetch_earnings(self) -> list:
        logger.info("Fetching HackerOne earnings...")
        earnings = self.fetch_collection(EARNINGS_PATH)
        logger.info(f"Fetched {len(earnings)} earnings.")
        return earnings
