import base64

import httpx
import pytest


def test_upload_puts_multipart_file_with_basic_auth(make_config, make_uploader, make_recorder, tmp_path):
    recorder = make_recorder(201)
    uploader = make_uploader(recorder, make_config())
    doc = tmp_path / "scan1.pdf"
    doc.write_bytes(b"%PDF-1.4 ocr")

    response = uploader.upload(doc)

    assert response.status_code == 201
    [request] = recorder.requests
    assert request.method == "PUT"
    assert str(request.url) == "https://dav.example/remote.php/dav/files/alice/scan1.pdf"
    expected = base64.b64encode(b"alice:secret").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
    body = request.content
    assert b'name="file"; filename="scan1.pdf"' in body
    assert b"%PDF-1.4 ocr" in body


def test_upload_returns_error_response_without_raising(make_config, make_uploader, make_recorder, tmp_path):
    uploader = make_uploader(make_recorder(507, "Insufficient Storage"), make_config())
    doc = tmp_path / "scan1.pdf"
    doc.write_bytes(b"x")

    response = uploader.upload(doc)

    assert response.status_code == 507
    assert not response.is_success
    assert response.text == "Insufficient Storage"


def test_upload_transport_error_propagates(make_config, make_uploader, tmp_path):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    uploader = make_uploader(refuse, make_config())
    doc = tmp_path / "scan1.pdf"
    doc.write_bytes(b"x")

    with pytest.raises(httpx.ConnectError):
        uploader.upload(doc)


def test_url_for_appends_base_name(make_config, make_uploader, make_recorder, tmp_path):
    uploader = make_uploader(make_recorder(), make_config(server_url="https://dav.example/in"))
    assert uploader.url_for(tmp_path / "sub" / "a.pdf") == "https://dav.example/in/a.pdf"
