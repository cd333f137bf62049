"""Best-effort public address lookup for the next-steps summary."""

from typing import Optional

import requests

from checkendsetup.constants import PUBLIC_IP_URL


class PublicAddressService:
    def __init__(self, logger, requests_module=requests, url: str = PUBLIC_IP_URL):
        self.logger = logger
        self.requests = requests_module
        self.url = url

    def lookup(self) -> Optional[str]:
        try:
            response = self.requests.get(self.url, timeout=5)
            response.raise_for_status()
        except self.requests.RequestException as exc:
            self.logger.debug("Public IP lookup failed: %s", exc)
            return None

        address = response.text.strip()
        return address or None
