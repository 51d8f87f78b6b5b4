"""Tests for the BLS client with mocked HTTP responses.

Run with:
    pytest tests/test_ch1_client.py -v
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from src.chapter1.client import BLSClient
from src.chapter1.config import Settings, load_settings
from src.chapter1.errors import (APIResponseError, AuthError, InvalidRangeError,
                                 NetworkError, RangeTooLargeError, RateLimitError)


def make_response(payload=None, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status_code}")
    return response


def success_payload(series_id="LNS14000000", rows=None):
    rows = rows if rows is not None else [
        {"year": "2021", "period": "M02", "periodName": "February", "value": "6.2",
         "footnotes": [{}]},
        {"year": "2021", "period": "M01", "periodName": "January", "value": "6.4",
         "footnotes": [{"code": "P", "text": "preliminary"}]},
    ]
    return {
        "status": "REQUEST_SUCCEEDED",
        "message": [],
        "Results": {"series": [{"seriesID": series_id, "data": rows}]},
    }


def make_client(response=None, side_effect=None, **kwargs):
    session = MagicMock()
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = response
    return BLSClient(session=session, **kwargs), session


class TestClientConfiguration:
    """API version and per-request caps"""

    def test_key_selects_v2(self):
        client, _ = make_client(api_key="abcd1234efgh")
        assert client.api_version == "v2"
        assert client.max_span == 20
        assert client.max_series == 50
        assert "v2" in client.url

    def test_no_key_selects_v1(self):
        client, _ = make_client()
        assert client.api_version == "v1"
        assert client.max_span == 10
        assert client.max_series == 25

    def test_unknown_version_rejected(self):
        with pytest.raises(ValueError):
            make_client(api_version="v3")

    def test_from_settings(self):
        settings = Settings(api_key="abcd1234efgh", timeout=5)
        with patch("src.chapter1.client.requests.Session"):
            client = BLSClient.from_settings(settings)
        assert client.api_version == "v2"
        assert client.timeout == 5
        assert settings.max_span == client.max_span


class TestRetrieve:
    """Request body and payload parsing"""

    def test_parses_observations(self):
        client, session = make_client(make_response(success_payload()), api_key="abcd1234efgh")

        rows = client.retrieve({"LNS14000000"}, 2002, 2021)

        assert len(rows) == 2
        assert rows[0].series_id == "LNS14000000"
        assert rows[0].year == 2021
        assert rows[0].period == "M02"
        assert rows[0].value == 6.2
        assert rows[1].footnotes == "preliminary"

        body = session.post.call_args.kwargs["json"]
        assert body["seriesid"] == ["LNS14000000"]
        assert body["startyear"] == "2002"
        assert body["endyear"] == "2021"
        assert body["registrationkey"] == "abcd1234efgh"

    def test_no_key_omits_registration(self):
        client, session = make_client(make_response(success_payload()))
        client.retrieve({"LNS14000000"}, 2012, 2021)
        assert "registrationkey" not in session.post.call_args.kwargs["json"]

    def test_unreported_value_is_none(self):
        payload = success_payload(rows=[{"year": "2019", "period": "M10", "value": "-", "footnotes": []}])
        client, _ = make_client(make_response(payload))

        rows = client.retrieve({"LNS14000000"}, 2019, 2019)
        assert rows[0].value is None

    def test_results_list_shape(self):
        payload = success_payload()
        payload["Results"] = [payload["Results"]]
        client, _ = make_client(make_response(payload))

        assert len(client.retrieve({"LNS14000000"}, 2021, 2021)) == 2

    def test_series_batched(self):
        client, session = make_client(make_response(success_payload(rows=[])))
        ids = {f"LNS{i:08d}" for i in range(30)}

        client.retrieve(ids, 2020, 2021)

        assert session.post.call_count == 2  # v1: 25 series per request
        sizes = [len(c.kwargs["json"]["seriesid"]) for c in session.post.call_args_list]
        assert sizes == [25, 5]


@pytest.mark.fail_loud
class TestRetrieveErrors:
    """HTTP and payload failures map onto the error taxonomy"""

    def test_span_checked_before_request(self):
        client, session = make_client(make_response(success_payload()), api_key="abcd1234efgh")

        with pytest.raises(RangeTooLargeError):
            client.retrieve({"LNS14000000"}, 1982, 2021)
        session.post.assert_not_called()

    def test_v1_span_is_ten_years(self):
        client, _ = make_client(make_response(success_payload()))
        with pytest.raises(RangeTooLargeError):
            client.retrieve({"LNS14000000"}, 2002, 2021)

    def test_reversed_years(self):
        client, _ = make_client(make_response(success_payload()))
        with pytest.raises(InvalidRangeError):
            client.retrieve({"LNS14000000"}, 2021, 2020)

    @pytest.mark.parametrize("status,error", [
        (401, AuthError), (403, AuthError), (429, RateLimitError), (404, APIResponseError),
    ])
    def test_http_status_mapping(self, status, error):
        client, _ = make_client(make_response(status_code=status))
        with pytest.raises(error):
            client.retrieve({"LNS14000000"}, 2020, 2021)

    @pytest.mark.parametrize("exc", [
        requests.ConnectionError("refused"), requests.Timeout("slow"),
    ])
    def test_network_errors(self, exc):
        client, _ = make_client(side_effect=exc)
        with pytest.raises(NetworkError):
            client.retrieve({"LNS14000000"}, 2020, 2021)

    @pytest.mark.parametrize("message,error", [
        ("You have reached the daily threshold for requests", RateLimitError),
        ("The key provided by the User is invalid.", AuthError),
        ("Year range has been reduced to the system-allowed limit of 20 years.", RangeTooLargeError),
        ("Series does not exist", APIResponseError),
    ])
    def test_payload_failure_mapping(self, message, error):
        payload = {"status": "REQUEST_NOT_PROCESSED", "message": [message], "Results": {}}
        client, _ = make_client(make_response(payload))
        with pytest.raises(error):
            client.retrieve({"LNS14000000"}, 2020, 2021)

    def test_silent_truncation_detected(self):
        payload = success_payload()
        payload["message"] = ["Year range has been reduced to the system-allowed limit of 10 years."]
        client, _ = make_client(make_response(payload))
        with pytest.raises(RangeTooLargeError):
            client.retrieve({"LNS14000000"}, 2020, 2021)

    def test_no_data_message_is_not_an_error(self):
        payload = success_payload(rows=[])
        payload["message"] = ["No Data Available for Series LNS14000000 Year: 1947"]
        client, _ = make_client(make_response(payload))
        assert client.retrieve({"LNS14000000"}, 1947, 1947) == []

    @pytest.mark.parametrize("exc", [
        requests.exceptions.ChunkedEncodingError("connection broken"),
        requests.exceptions.RetryError("max retries exceeded"),
        requests.exceptions.TooManyRedirects("redirect loop"),
    ])
    def test_other_transport_errors_are_network_errors(self, exc):
        client, _ = make_client(side_effect=exc)
        with pytest.raises(NetworkError) as exc_info:
            client.retrieve({"LNS14000000"}, 2020, 2021)
        assert exc_info.value.__cause__ is exc

    @pytest.mark.parametrize("row", [
        {"period": "M01", "value": "1.0"},
        {"year": "20x1", "period": "M01", "value": "1.0"},
        "not-a-row",
    ])
    def test_malformed_row_is_api_response_error(self, row):
        client, _ = make_client(make_response(success_payload(rows=[row])))
        with pytest.raises(APIResponseError):
            client.retrieve({"LNS14000000"}, 2021, 2021)

    def test_non_object_body_is_api_response_error(self):
        response = make_response()
        response.json.return_value = ["REQUEST_SUCCEEDED"]
        client, _ = make_client(response)
        with pytest.raises(APIResponseError):
            client.retrieve({"LNS14000000"}, 2021, 2021)

    def test_malformed_row_tagged_with_window(self):
        from src.chapter1.ingest import fetch_series
        from src.chapter1.ranges import SubRange

        client, _ = make_client(
            make_response(success_payload(rows=[{"period": "M01", "value": "1"}])),
            api_key="abcd1234efgh",
        )
        with pytest.raises(APIResponseError) as exc_info:
            fetch_series({"LNS14000000"}, 1982, 2021, 20, client)
        assert exc_info.value.sub_range == SubRange(1982, 2001)

    def test_transport_error_tagged_with_window(self):
        from src.chapter1.ingest import fetch_series
        from src.chapter1.ranges import SubRange

        client, _ = make_client(
            side_effect=requests.exceptions.ChunkedEncodingError("connection broken"),
            api_key="abcd1234efgh",
        )
        with pytest.raises(NetworkError) as exc_info:
            fetch_series({"LNS14000000"}, 1982, 2021, 20, client)
        assert exc_info.value.sub_range == SubRange(1982, 2001)
        assert "1982-2001" in str(exc_info.value)

    def test_single_string_id_is_one_series(self):
        client, session = make_client(make_response(success_payload()))
        client.retrieve("LNS14000000", 2020, 2021)
        assert session.post.call_args.kwargs["json"]["seriesid"] == ["LNS14000000"]


class TestLoadSettings:
    """Environment-driven configuration"""

    @patch("src.chapter1.config.load_dotenv")
    @patch.dict("os.environ", {"BLS_API_KEY": "test_key_1234", "BLS_API_VERSION": ""}, clear=False)
    def test_key_from_env(self, _mock_dotenv):
        settings = load_settings(start_year=1982, end_year=2021)
        assert settings.api_key == "test_key_1234"
        assert settings.max_span == 20

    @patch("src.chapter1.config.load_dotenv")
    @patch.dict("os.environ", {"BLS_API_KEY": "", "BLS_API_VERSION": ""}, clear=False)
    def test_no_key_uses_v1_span(self, _mock_dotenv):
        settings = load_settings(end_year=2021)
        assert settings.api_key is None
        assert settings.max_span == 10

    @patch("src.chapter1.config.load_dotenv")
    @patch.dict("os.environ", {"BLS_API_VERSION": "v9"}, clear=False)
    def test_bad_version_rejected(self, _mock_dotenv):
        with pytest.raises(ValueError):
            load_settings()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
