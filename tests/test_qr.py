import base64
from types import SimpleNamespace

import pytest
import requests

from services import qr_service

BASE = "https://qr.example.com/create"


def _response(content=b"PNG", status=200):
    def raise_for_status():
        if status >= 400:
            raise requests.HTTPError(f"{status}")
    return SimpleNamespace(content=content, headers={"Content-Type": "image/png"}, raise_for_status=raise_for_status)


def test_qr_image_url_encodes_data():
    url = qr_service.qr_image_url("Store - Bill #7", size=100, base_url=BASE)
    assert url == f"{BASE}?size=100x100&data=Store+-+Bill+%237"


def test_fetch_inlines_image(monkeypatch):
    monkeypatch.setattr(qr_service.requests, "get", lambda url, timeout: _response())
    uri = qr_service.fetch_qr_data_uri("hello", base_url=BASE)
    assert uri == "data:image/png;base64," + base64.b64encode(b"PNG").decode()


def test_fetch_retries_then_succeeds(monkeypatch):
    responses = iter([_response(status=503), _response(content=b"OK")])
    monkeypatch.setattr(qr_service.requests, "get", lambda url, timeout: next(responses))
    assert qr_service.fetch_qr_data_uri("hello", base_url=BASE).endswith(base64.b64encode(b"OK").decode())


def test_image_src_falls_back_to_remote_url(monkeypatch):
    def offline(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(qr_service.requests, "get", offline)
    assert qr_service.qr_image_src("hello", base_url=BASE, max_download_retries=2) == (
        qr_service.qr_image_url("hello", base_url=BASE)
    )


def test_fetch_rejects_empty_data():
    with pytest.raises(ValueError):
        qr_service.fetch_qr_data_uri("")
