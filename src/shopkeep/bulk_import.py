"""
Bulk product import client

Uploads a spreadsheet to the external import service, which adds the rows
to the product catalog with the same restock-on-repeat rules as
ShopStore.upsert_product. This module only talks to that service.

Response body:
    {"success": true, "message": "Imported 42 products", "count": 42}
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import requests

logger = logging.getLogger(__name__)

USER_AGENT = "shopkeep-bulk-import/0.1"

SPREADSHEET_TYPES = {
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".csv": "text/csv",
}


class BulkImportError(Exception):
    """Upload failed before the service produced a result"""
    def __init__(self, code: str, message: str = ""):
        self.code = code
        super().__init__(f"Bulk Import Error [{code}]: {message}")


@dataclass
class ImportResult:
    success: bool
    message: str = ""
    count: int = 0


class BulkImportClient:
    """Client for the spreadsheet upload endpoint"""

    def __init__(self, url: str, timeout: float = 30):
        """
        Args:
            url: full URL of the upload endpoint
            timeout: request timeout in seconds
        """
        self.url = url
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        })

    def upload(self, path: Union[str, Path]) -> ImportResult:
        """Send a spreadsheet file to the import service.

        Args:
            path: .xlsx / .xls / .csv file

        Returns:
            ImportResult as reported by the service

        Raises:
            BulkImportError: network failure, HTTP error status or a body
                that is not a JSON object
        """
        path = Path(path)
        content_type = SPREADSHEET_TYPES.get(path.suffix.lower(), "application/octet-stream")

        try:
            with path.open("rb") as f:
                resp = self._session.post(
                    self.url,
                    files={"file": (path.name, f, content_type)},
                    timeout=self.timeout,
                )
            resp.raise_for_status()
            data = resp.json()
        except requests.HTTPError as e:
            raise BulkImportError(str(e.response.status_code), f"Upload failed: {e}") from e
        except requests.JSONDecodeError as e:
            raise BulkImportError("BAD_RESPONSE", f"Response is not JSON: {e}") from e
        except requests.RequestException as e:
            raise BulkImportError("NETWORK", f"Upload failed: {e}") from e

        if not isinstance(data, dict):
            raise BulkImportError("BAD_RESPONSE", f"Unexpected response: {data!r}")

        result = ImportResult(
            success=bool(data.get("success", False)),
            message=data.get("message", ""),
            count=int(data.get("count", 0) or 0),
        )
        logger.info("bulk import of %s: success=%s count=%s", path.name, result.success, result.count)
        return result
