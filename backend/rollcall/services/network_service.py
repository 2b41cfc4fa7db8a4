"""Best-effort network/geolocation lookup for the submitting client."""
import json
import logging
from typing import NamedTuple, Optional

import requests

logger = logging.getLogger(__name__)

UNKNOWN = 'unknown'


class ClientInfo(NamedTuple):
    address: str = UNKNOWN
    city: str = UNKNOWN
    country: str = UNKNOWN
    isp: str = UNKNOWN
    
    def to_json(self) -> str:
        return json.dumps({
            'ip': self.address,
            'city': self.city,
            'country': self.country,
            'isp': self.isp
        })


class NetworkLookupService:
    """Resolve a client address to coarse location details.

    Never raises: on any failure the geolocation fields fall back to
    "unknown" and the caller carries on.
    """
    
    def __init__(self, url_template: str, timeout: float = 3, enabled: bool = True):
        self.url_template = url_template
        self.timeout = timeout
        self.enabled = enabled
    
    def lookup(self, address: Optional[str]) -> ClientInfo:
        address = address or UNKNOWN
        if not self.enabled or address == UNKNOWN:
            return ClientInfo(address=address)
        
        try:
            response = requests.get(
                self.url_template.format(address=address),
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning(f"Network lookup failed for {address}: {e}")
            return ClientInfo(address=address)
        
        return ClientInfo(
            address=data.get('ip') or address,
            city=data.get('city') or UNKNOWN,
            country=data.get('country_name') or UNKNOWN,
            isp=data.get('org') or UNKNOWN
        )
