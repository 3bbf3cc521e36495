import pytest
import requests

from jewelcore import schema
from jewelcore.api import RestClient, record_key
from jewelcore.config import Settings
from jewelcore.errors import ApiError

from conftest import BASE_URL, FakeResponse, FakeStore


class BrokenSession:
    def __init__(self):
        self.headers = {}

    def request(self, method, url, **kwargs):
        raise requests.ConnectionError("connection refused")


class TextSession:
    """Answers every request with a non-JSON body."""

    def __init__(self, status_code):
        self.headers = {}
        self.status_code = status_code

    def request(self, method, url, **kwargs):
        resp = FakeResponse(self.status_code)
        resp.content = b"<html>oops</html>"
        resp.text = "<html>oops</html>"
        return resp


def test_token_is_sent_as_bearer_header():
    store = FakeStore()
    RestClient(BASE_URL, session=store, token="abc")
    assert store.headers["Authorization"] == "Bearer abc"


def test_from_settings_carries_paging_names(tmp_path):
    store = FakeStore()
    settings = Settings(data_dir=tmp_path, api_base_url=BASE_URL + "/", request_timeout=3.5)

    client = RestClient.from_settings(settings, session=store)

    assert client.base_url == BASE_URL
    assert client.timeout == 3.5
    assert client.page_param == "page[number]"


def test_transport_errors_become_api_errors():
    client = RestClient(BASE_URL, session=BrokenSession())

    with pytest.raises(ApiError) as exc:
        client.get_page(schema.BARCODES, 1, 10)

    assert exc.value.status is None
    assert isinstance(exc.value.__cause__, requests.ConnectionError)


def test_error_status_carries_store_message(store, client):
    store.fail_pages.add((schema.BARCODES, 1))

    with pytest.raises(ApiError) as exc:
        client.get_page(schema.BARCODES, 1, 10)

    assert exc.value.status == 500
    assert exc.value.message == "Internal Server Error"


def test_non_json_success_is_an_error():
    client = RestClient(BASE_URL, session=TextSession(200))
    with pytest.raises(ApiError, match="not JSON"):
        client.get_page(schema.BARCODES, 1, 10)


def test_non_json_error_body_is_used_as_message():
    client = RestClient(BASE_URL, session=TextSession(502))
    with pytest.raises(ApiError) as exc:
        client.delete(schema.BARCODES, "x")
    assert exc.value.message == "<html>oops</html>"


def test_missing_record_on_update(client):
    with pytest.raises(ApiError) as exc:
        client.update(schema.BARCODES, "missing", {"price": "1"})
    assert exc.value.status == 404


@pytest.mark.parametrize(
    "status,message,expected",
    [
        (409, "Conflict", True),
        (400, "This attribute must be unique", True),
        (400, "price must be a number", False),
        (500, "unique constraint", False),
        (None, "timeout", False),
    ],
)
def test_uniqueness_violation(status, message, expected):
    assert ApiError(status, message).is_uniqueness_violation is expected


def test_record_key_prefers_document_id():
    assert record_key({"id": 4, "documentId": "abc"}) == "abc"
    assert record_key({"id": 4}) == "4"
    with pytest.raises(ValueError):
        record_key({})
