"""
Best-effort client IP resolution for signature records
"""
import logging
from typing import Optional

import httpx
from fastapi import Request

from intranet.config import settings

logger = logging.getLogger(__name__)

UNKNOWN_IP = "unknown"


class IpLookupService:
    """Never raises: any failure yields the "unknown" sentinel"""

    def from_request(self, request: Optional[Request]) -> Optional[str]:
        """First X-Forwarded-For hop, then the socket peer"""
        if request is None:
            return None

        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop

        if request.client and request.client.host:
            return request.client.host

        return None

    async def lookup_public_ip(self) -> str:
        """Ask the public lookup service; "unknown" on any error"""
        try:
            async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
                response = await client.get(settings.IP_LOOKUP_URL)
                response.raise_for_status()
                return response.json().get("ip") or UNKNOWN_IP
        except Exception as e:
            logger.debug(f"Public IP lookup failed: {str(e)}")
            return UNKNOWN_IP

    async def resolve(self, request: Optional[Request] = None) -> str:
        ip = self.from_request(request)
        if ip:
            return ip
        return await self.lookup_public_ip()


# Global instance
ip_lookup_service = IpLookupService()
