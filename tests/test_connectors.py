from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
import requests

from stress_connectors import CensusConnector, EIAConnector, FEMAConnector, LiveDataSource, TTLCache
from stress_connectors.base import DEMAND_COLUMNS, DISASTER_COLUMNS, MIGRATION_COLUMNS


def json_response(payload):
    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.json.return_value = payload
    mock_response.raise_for_status = MagicMock()
    return mock_response


FEMA_PAYLOAD = {
    "DisasterDeclarationsSummaries": [
        {
            "femaDeclarationString": "DR-4332-TX",
            "disasterNumber": 4332,
            "state": "TX",
            "declarationType": "DR",
            "declarationDate": "2017-08-25T00:00:00.000Z",
            "incidentType": "Hurricane",
            "declarationTitle": "HURRICANE HARVEY",
            "fipsStateCode": "48",
            "fipsCountyCode": "201",
            "designatedArea": "Harris (County)",
        },
        {
            "femaDeclarationString": "DR-4332-TX",
            "disasterNumber": 4332,
            "state": "TX",
            "declarationType": "DR",
            "declarationDate": "2017-08-25T00:00:00.000Z",
            "incidentType": "Hurricane",
            "declarationTitle": "HURRICANE HARVEY",
            "fipsStateCode": 48,
            "fipsCountyCode": 1,
            "designatedArea": "Anderson (County)",
        },
    ]
}


def test_fema_declarations():
    connector = FEMAConnector()
    with patch.object(connector.session, "get", return_value=json_response(FEMA_PAYLOAD)) as mock_get:
        df = connector.get_disaster_declarations(state="TX", year=2017, declaration_type="DR")

    params = mock_get.call_args.kwargs["params"]
    assert params["$filter"] == "state eq 'TX' and fyDeclared eq 2017 and declarationType eq 'DR'"
    assert list(df.columns[:len(DISASTER_COLUMNS)]) == DISASTER_COLUMNS
    assert df["region_key"].tolist() == ["48201", "48001"]
    assert df["declared_at"].iloc[0] == pd.Timestamp("2017-08-25", tz="UTC")


def test_fema_empty_response():
    connector = FEMAConnector()
    with patch.object(connector.session, "get", return_value=json_response({"DisasterDeclarationsSummaries": []})):
        df = connector.get_disaster_declarations(state="VT")
    assert df is not None and df.empty


def test_fema_request_failure_returns_none():
    connector = FEMAConnector()
    with patch.object(connector.session, "get", side_effect=requests.exceptions.ConnectionError("down")):
        assert connector.get_disaster_declarations(state="TX") is None
        assert connector.get_recent_disasters(years=2, state="TX") is None


def test_eia_demand():
    payload = {"response": {"data": [
        {"period": "2024-07-01T14", "respondent": "ERCO", "type": "D", "value": "60000"},
        {"period": "2024-07-01T15", "respondent": "ERCO", "type": "D", "value": "62000"},
        {"period": "2024-07-01T16", "respondent": "ERCO", "type": "D", "value": None},
    ]}}
    connector = EIAConnector(api_key="test-key")
    with patch.object(connector.session, "get", return_value=json_response(payload)) as mock_get:
        df = connector.get_demand("TX", start_date="2024-07-01", end_date="2024-07-01")

    params = mock_get.call_args.kwargs["params"]
    assert params["facets[respondent][]"] == "ERCO"
    assert list(df.columns) == DEMAND_COLUMNS
    assert df["demand_mw"].tolist() == [60000.0, 62000.0]
    assert df["hour"].tolist() == [14, 15]
    assert (df["state"] == "TX").all()


def test_eia_unavailable_without_key_or_mapping(monkeypatch):
    monkeypatch.delenv("EIA_API_KEY", raising=False)
    assert EIAConnector().get_demand("TX") is None
    assert EIAConnector(api_key="test-key").get_demand("ZZ") is None


def census_get(url, params=None, timeout=None):
    if url.endswith("/components"):
        rows = [["NAME", "NETMIG", "state", "county"], ["Harris County, Texas", "-2000", "48", "201"]]
    else:
        rows = [["NAME", "POP", "state", "county"], ["Harris County, Texas", "20000", "48", "201"]]
    return json_response(rows)


def test_census_migration():
    connector = CensusConnector(api_key="test-key")
    with patch.object(connector.session, "get", side_effect=census_get):
        df = connector.get_migration("TX")

    assert list(df.columns) == MIGRATION_COLUMNS
    row = df.iloc[0]
    assert row["region_key"] == "48201"
    assert row["net_migration"] == -2000
    assert row["population"] == 20000
    assert pd.isna(row["in_migration"])


def test_census_unknown_state():
    assert CensusConnector(api_key="test-key").get_population("XX") is None


def test_live_source_caches_fetches():
    fema = MagicMock()
    fema.get_recent_disasters.return_value = pd.DataFrame({"region_key": ["48201"]})
    source = LiveDataSource(fema=fema, eia=MagicMock(), census=MagicMock(), cache=TTLCache())

    source.get_disasters(state="TX")
    source.get_disasters(state="TX")
    assert fema.get_recent_disasters.call_count == 1

    source.refresh()
    source.get_disasters(state="TX")
    assert fema.get_recent_disasters.call_count == 2


def test_live_source_unavailable_feeds():
    eia = MagicMock()
    eia.get_demand.return_value = None
    source = LiveDataSource(fema=MagicMock(), eia=eia, census=MagicMock(), cache=TTLCache())

    assert source.get_energy_burden(state="TX") is None
    assert source.get_storm_events(state="TX") is None
    assert source.get_demand(state="TX") is None
