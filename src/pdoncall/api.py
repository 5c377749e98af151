"""Paginated PagerDuty REST API client."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Callable

import httpx
from pydantic import BaseModel, ValidationError

from pdoncall.aggregate import make_escalation_policies
from pdoncall.models import Page, Policy, RawOnCall, RawPolicy, RawService, RawUser

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
REQUEST_TIMEOUT = 30.0
ACCEPT_HEADER = "application/vnd.pagerduty+json;version=2"

RESOURCE_MODELS: dict[str, type[BaseModel]] = {
    "escalation_policies": RawPolicy,
    "oncalls": RawOnCall,
    "users": RawUser,
    "services": RawService,
}

PageCallback = Callable[[str, Page], None]


class FetchError(Exception):
    """Exception raised when a resource collection cannot be fetched."""


class TransportError(FetchError):
    """The request could not be completed or returned an error status."""


class DecodeError(FetchError):
    """The response body is not a valid page envelope."""


def decode_page(resource: str, body: str | bytes) -> Page:
    """Decode one response body into a typed page.

    Args:
        resource: Envelope key holding the records, e.g. ``users``.
        body: Raw response body.

    Raises:
        DecodeError: If the body is not JSON or does not match the envelope.
    """
    model = RESOURCE_MODELS[resource]
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise DecodeError(f"Response for {resource} is not JSON: {e}") from e

    if not isinstance(payload, dict) or resource not in payload:
        raise DecodeError(f"Response is missing the '{resource}' collection")

    try:
        records = [model.model_validate(item) for item in payload[resource]]
        return Page(
            resource=resource,
            records=records,
            limit=payload.get("limit"),
            offset=payload.get("offset"),
            more=payload.get("more"),
        )
    except (TypeError, ValidationError) as e:
        raise DecodeError(f"Invalid {resource} page: {e}") from e


class PageFetcher:
    """Walks the offset pagination of one endpoint at a time."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        on_page: PageCallback | None = None,
    ) -> None:
        self.client = client
        self.on_page = on_page

    async def fetch(self, resource: str, includes: tuple[str, ...] = ()) -> list[Page]:
        """Fetch every page of ``resource``.

        Pages are requested one after another since the next offset is only
        known once the current page says there are ``more``.

        Raises:
            TransportError: If any request fails.
            DecodeError: If any page cannot be decoded.
        """
        queue = [0]
        pages: list[Page] = []

        while queue:
            offset = queue.pop()
            params = {
                "include[]": ",".join(includes),
                "sort_by": "name",
                "limit": str(PAGE_SIZE),
                "offset": str(offset),
            }

            try:
                response = await self.client.get(f"/{resource}", params=params)
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise TransportError(f"Request to PagerDuty failed for {resource}: {e}") from e

            try:
                page = decode_page(resource, response.content)
            except DecodeError:
                logger.debug("Undecodable %s response body: %s", resource, response.text)
                raise

            logger.debug(
                "Fetched %d %s at offset %d (more=%s)",
                len(page.records),
                resource,
                offset,
                page.more,
            )
            pages.append(page)
            if self.on_page is not None:
                self.on_page(resource, page)

            if page.more:
                queue.append(offset + PAGE_SIZE)

        return pages


class PagerDutyClient:
    """Read-only PagerDuty client holding a static API token."""

    def __init__(
        self,
        api_token: str,
        base_url: str = "https://api.pagerduty.com",
        timeout: float = REQUEST_TIMEOUT,
        on_page: PageCallback | None = None,
    ) -> None:
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.on_page = on_page

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": ACCEPT_HEADER,
            "Authorization": f"Token token={self.api_token}",
        }

    async def _collect(
        self,
        fetcher: PageFetcher,
        resource: str,
        includes: tuple[str, ...] = (),
    ) -> list:
        try:
            pages = await fetcher.fetch(resource, includes)
        except FetchError as e:
            logger.warning("Unable to get %s, continuing without them: %s", resource, e)
            return []
        return [record for page in pages for record in page.records]

    async def get_escalation_policies(self) -> list[Policy]:
        """Fetch the four collections concurrently and join them.

        A collection that fails to load is treated as empty so that the
        remaining data can still be shown.
        """
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout,
        ) as http:
            fetcher = PageFetcher(http, on_page=self.on_page)
            policies, oncalls, users, services = await asyncio.gather(
                self._collect(fetcher, "escalation_policies", ("targets",)),
                self._collect(fetcher, "oncalls", ("targets",)),
                self._collect(fetcher, "users"),
                self._collect(fetcher, "services"),
            )

        logger.info(
            "Fetched %d policies, %d on-calls, %d users, %d services",
            len(policies),
            len(oncalls),
            len(users),
            len(services),
        )
        return make_escalation_policies(policies, oncalls, users, services)

    def fetch_policies_for_account(self) -> list[Policy]:
        """Blocking wrapper around :meth:`get_escalation_policies`."""
        return asyncio.run(self.get_escalation_policies())
