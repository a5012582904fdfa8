import pytest
import requests

from co2_forecaster_src.errors import DataFetchError
from fetchers import worldbank


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def _item(code, year, value, country="USA"):
    return {
        "indicator": {"id": code, "value": "CO2"},
        "country": {"id": "US", "value": "United States"},
        "countryiso3code": country,
        "date": str(year),
        "value": value,
    }


def test_fetch_indicator_follows_pagination(monkeypatch: pytest.MonkeyPatch):
    code = "EN.ATM.CO2E.LF.KT"
    pages = {
        1: [{"page": 1, "pages": 2, "per_page": 2, "total": 3}, [_item(code, 2002, 3.0), _item(code, 2001, 2.0)]],
        2: [{"page": 2, "pages": 2, "per_page": 2, "total": 3}, [_item(code, 2000, None)]],
    }
    seen = []

    def fake_get(url, params=None, timeout=None):
        seen.append((url, dict(params)))
        return FakeResponse(pages[params["page"]])

    monkeypatch.setattr(worldbank.requests, "get", fake_get)
    rows = worldbank.fetch_indicator("USA", code, 2000, 2002, source=57)

    assert [r["year"] for r in rows] == [2000, 2001, 2002]
    assert rows[0]["value"] is None
    assert rows[1] == {"country": "USA", "indicator": code, "year": 2001, "value": 2.0}
    assert [p["page"] for _, p in seen] == [1, 2]
    url, params = seen[0]
    assert url == f"https://api.worldbank.org/v2/country/USA/indicator/{code}"
    assert params["date"] == "2000:2002"
    assert params["format"] == "json"
    assert params["source"] == 57


def test_fetch_indicator_omits_source_by_default(monkeypatch: pytest.MonkeyPatch):
    seen = []

    def fake_get(url, params=None, timeout=None):
        seen.append(dict(params))
        return FakeResponse([{"page": 1, "pages": 1}, [_item("X", 2000, 1.0)]])

    monkeypatch.setattr(worldbank.requests, "get", fake_get)
    worldbank.fetch_indicator("USA", "X", 2000, 2000)

    assert "source" not in seen[0]


def test_api_error_envelope_raises(monkeypatch: pytest.MonkeyPatch):
    envelope = [{"message": [{"id": "120", "key": "Invalid value", "value": "The provided parameter value is not valid"}]}]
    monkeypatch.setattr(worldbank.requests, "get", lambda url, params=None, timeout=None: FakeResponse(envelope))

    with pytest.raises(DataFetchError, match="Invalid value"):
        worldbank.fetch_indicator("USA", "EN.ATM.CO2E.GF.KT", 1960, 2016)


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse({}, status_code=503),
        FakeResponse(ValueError("not json")),
        FakeResponse({"unexpected": True}),
    ],
)
def test_transport_and_shape_failures_raise(monkeypatch: pytest.MonkeyPatch, response):
    monkeypatch.setattr(worldbank.requests, "get", lambda url, params=None, timeout=None: response)

    with pytest.raises(DataFetchError):
        worldbank.fetch_indicator("USA", "EN.ATM.CO2E.GF.KT", 1960, 2016)


def test_connection_error_is_wrapped(monkeypatch: pytest.MonkeyPatch):
    def boom(url, params=None, timeout=None):
        raise requests.ConnectionError("no route to host")

    monkeypatch.setattr(worldbank.requests, "get", boom)
    with pytest.raises(DataFetchError, match="no route to host"):
        worldbank.fetch_indicator("USA", "EN.ATM.CO2E.GF.KT", 1960, 2016)


def test_fetch_collects_all_indicators_over_one_session(monkeypatch: pytest.MonkeyPatch):
    codes = [spec.code for spec in worldbank.CO2_FUEL_INDICATORS.values()]
    requested = []

    def fake_session_get(self, url, params=None, timeout=None):
        code = url.rsplit("/", 1)[-1]
        requested.append(code)
        return FakeResponse([{"page": 1, "pages": 1}, [_item(code, 2000, 1.0), _item(code, 2001, 2.0)]])

    monkeypatch.setattr(requests.Session, "get", fake_session_get)
    rows = worldbank.fetch("USA", codes, 2000, 2001)

    assert requested == codes
    assert len(rows) == 6
    assert {r["indicator"] for r in rows} == set(codes)


def test_fetch_raises_when_nothing_comes_back(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(requests.Session, "get",
                        lambda self, url, params=None, timeout=None: FakeResponse([{"page": 1, "pages": 0}, None]))

    with pytest.raises(DataFetchError):
        worldbank.fetch("USA", ["EN.ATM.CO2E.GF.KT"], 2000, 2001)
    with pytest.raises(DataFetchError):
        worldbank.fetch("USA", [], 2000, 2001)
