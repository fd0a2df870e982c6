import pytest
import requests

from shopkeep.bulk_import import BulkImportClient, BulkImportError, ImportResult

URL = "https://import.example.test/api/products/upload"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self._text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self._text is not None:
            raise requests.JSONDecodeError("Expecting value", self._text, 0)
        return self._payload


@pytest.fixture
def sheet(tmp_path):
    path = tmp_path / "products.xlsx"
    path.write_bytes(b"PK\x03\x04 fake workbook")
    return path


def _client(monkeypatch, response=None, error=None):
    client = BulkImportClient(URL, timeout=5)
    calls = []

    def fake_post(url, files=None, timeout=None):
        name, handle, content_type = files["file"]
        calls.append({"url": url, "name": name, "body": handle.read(),
                      "content_type": content_type, "timeout": timeout})
        if error is not None:
            raise error
        return response

    monkeypatch.setattr(client._session, "post", fake_post)
    return client, calls


def test_upload_success(monkeypatch, sheet):
    client, calls = _client(monkeypatch, FakeResponse(payload={
        "success": True, "message": "Imported 42 products", "count": 42,
    }))

    result = client.upload(sheet)

    assert result == ImportResult(success=True, message="Imported 42 products", count=42)
    assert calls == [{
        "url": URL,
        "name": "products.xlsx",
        "body": b"PK\x03\x04 fake workbook",
        "content_type": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "timeout": 5,
    }]


def test_upload_reported_failure(monkeypatch, sheet):
    client, _ = _client(monkeypatch, FakeResponse(payload={
        "success": False, "message": "Missing barcode column",
    }))

    result = client.upload(str(sheet))

    assert result.success is False
    assert result.message == "Missing barcode column"
    assert result.count == 0


def test_upload_http_error(monkeypatch, sheet):
    client, _ = _client(monkeypatch, FakeResponse(status_code=502))
    with pytest.raises(BulkImportError) as exc_info:
        client.upload(sheet)
    assert exc_info.value.code == "502"


def test_upload_network_error(monkeypatch, sheet):
    client, _ = _client(monkeypatch, error=requests.ConnectionError("refused"))
    with pytest.raises(BulkImportError) as exc_info:
        client.upload(sheet)
    assert exc_info.value.code == "NETWORK"


@pytest.mark.parametrize("response", [
    FakeResponse(text="<html>oops</html>"),
    FakeResponse(payload=["not", "an", "object"]),
])
def test_upload_bad_response(monkeypatch, sheet, response):
    client, _ = _client(monkeypatch, response)
    with pytest.raises(BulkImportError) as exc_info:
        client.upload(sheet)
    assert exc_info.value.code == "BAD_RESPONSE"
