import logging
import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

import httpx

from routemate.core.exceptions import SheetImportError, ValidationError

logger = logging.getLogger(__name__)

SHEET_ID_PATTERN = re.compile(r"^/spreadsheets/d/([A-Za-z0-9_-]+)")
EXPORT_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv"


def build_export_url(url: str) -> str:
    """Turn a Google Sheets share link into its CSV export link.

    The tab is taken from a ``gid`` in the query string or the fragment,
    otherwise the first tab is exported.
    """
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or parsed.netloc != "docs.google.com":
        raise ValidationError(f"Not a Google Sheets link: {url}")
    match = SHEET_ID_PATTERN.match(parsed.path)
    if not match:
        raise ValidationError(f"Not a Google Sheets link: {url}")

    export_url = EXPORT_URL_TEMPLATE.format(sheet_id=match.group(1))
    gid = _extract_gid(parsed.query) or _extract_gid(parsed.fragment)
    if gid:
        export_url += f"&gid={gid}"
    return export_url


def _extract_gid(component: str) -> Optional[str]:
    values = parse_qs(component).get("gid")
    if values and values[0].isdigit():
        return values[0]
    return None


class GoogleSheetsRepository:
    """Repository for downloading publicly shared Google Sheets as CSV."""

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    async def fetch_csv(self, url: str) -> bytes:
        export_url = build_export_url(url)
        logger.info(f"Downloading sheet CSV from {export_url}")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True, transport=self.transport
            ) as client:
                response = await client.get(export_url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Sheet download failed with status {e.response.status_code}: {export_url}")
            raise SheetImportError(
                f"Sheet download failed with status {e.response.status_code}; is the sheet shared publicly?"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Transport error downloading sheet {export_url}: {e}", exc_info=True)
            raise SheetImportError(f"Could not download sheet: {e}") from e

        content_type = response.headers.get("content-type", "")
        if "text/html" in content_type:
            # Private sheets redirect to a sign-in page instead of failing
            raise SheetImportError("Sheet is not publicly accessible")
        logger.info(f"Downloaded {len(response.content)} bytes of sheet CSV")
        return response.content
