"""
Tests for the Supabase REST client and the mock store.
"""

import asyncio
import json
import logging
from unittest.mock import Mock, patch

import pendulum
import pytest
import requests

from barberslots.adapters.mock_store import MockStoreClient
from barberslots.adapters.supabase_client import SupabaseStoreClient, is_uuid
from barberslots.domain.exceptions import BarberNotFoundError, DataStoreError


OWNER_ID = "4f1c2a9e-7b3d-4c5e-9a1f-2b6d8e0c4a11"
EMPLOYEE_ID = "8a2b4c6d-1e3f-4a5b-8c7d-9e0f1a2b3c44"


def _response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture
def client():
    return SupabaseStoreClient(base_url="https://demo.supabase.co/", api_key="anon-key", timeout=5)


class TestSupabaseStoreClient:
    """Tests for SupabaseStoreClient."""

    def test_sends_api_key_headers(self, client):
        assert client.session.headers["apikey"] == "anon-key"
        assert client.session.headers["Authorization"] == "Bearer anon-key"

    def test_get_appointments_filters_on_server(self, client):
        rows = [{
            "id": "a1", "barber_id": "b1", "service_id": "s1",
            "appointment_date": "2024-11-25", "appointment_time": "09:30:00", "status": "confirmed",
        }]
        with patch.object(client.session, "get", return_value=_response(rows)) as mock_get:
            appointments = asyncio.run(client.get_appointments("b1", pendulum.date(2024, 11, 25)))

        url = mock_get.call_args.args[0]
        params = mock_get.call_args.kwargs["params"]
        assert url == "https://demo.supabase.co/rest/v1/appointments"
        assert params["barber_id"] == "eq.b1"
        assert params["appointment_date"] == "eq.2024-11-25"
        assert params["status"] == "neq.cancelled"
        assert mock_get.call_args.kwargs["timeout"] == 5
        assert appointments[0].appointment_time == "09:30:00"

    def test_get_working_hours_orders_by_weekday(self, client):
        rows = [{"day_of_week": 1, "start_time": "09:00:00", "end_time": "18:00:00", "is_active": True}]
        with patch.object(client.session, "get", return_value=_response(rows)) as mock_get:
            rules = asyncio.run(client.get_working_hours("b1"))

        assert mock_get.call_args.kwargs["params"]["order"] == "day_of_week"
        assert rules[0].day_of_week == 1

    def test_malformed_rows_are_skipped(self, client):
        rows = [
            {"id": "s1", "name": "Corte", "duration": 30, "price": 35},
            {"id": "s2", "name": "Sem duração"},
        ]
        with patch.object(client.session, "get", return_value=_response(rows)):
            services = asyncio.run(client.get_services("b1"))

        assert [s.id for s in services] == ["s1"]

    def test_http_error_becomes_data_store_error(self, client):
        with patch.object(client.session, "get", return_value=_response({}, status_code=500)):
            with pytest.raises(DataStoreError, match="services"):
                asyncio.run(client.get_services("b1"))

    def test_connection_error_becomes_data_store_error(self, client):
        error = requests.exceptions.ConnectionError("Connection failed")
        with patch.object(client.session, "get", side_effect=error):
            with pytest.raises(DataStoreError):
                asyncio.run(client.get_working_hours("b1"))

    def test_non_list_payload_rejected(self, client):
        with patch.object(client.session, "get", return_value=_response({"message": "oops"})):
            with pytest.raises(DataStoreError, match="expected a list"):
                asyncio.run(client.get_services("b1"))

    def test_get_barber_by_id(self, client):
        rows = [{"id": OWNER_ID, "role": "owner", "profiles": {"name": "João Silva"}}]
        with patch.object(client.session, "get", return_value=_response(rows)) as mock_get:
            barber = asyncio.run(client.get_barber(OWNER_ID))

        assert mock_get.call_args.kwargs["params"]["id"] == f"eq.{OWNER_ID}"
        assert barber.display_name() == "João Silva"

    def test_get_barber_by_name_falls_back_to_profile(self, client):
        rows = [{"id": OWNER_ID, "role": "owner", "profiles": {"name": "João Silva"}}]
        with patch.object(client.session, "get", side_effect=[_response([]), _response(rows)]) as mock_get:
            barber = asyncio.run(client.get_barber("joão"))

        first, second = mock_get.call_args_list
        assert first.kwargs["params"]["employee_name"] == "ilike.*joão*"
        assert second.kwargs["params"]["profiles.name"] == "ilike.*joão*"
        assert barber.id == OWNER_ID

    def test_get_barber_not_found(self, client):
        with patch.object(client.session, "get", return_value=_response([])):
            with pytest.raises(BarberNotFoundError):
                asyncio.run(client.get_barber("ninguém"))

    def test_is_uuid(self):
        assert is_uuid(OWNER_ID)
        assert not is_uuid("joao")


class TestMockStoreClient:
    """Tests for MockStoreClient with the bundled data."""

    def test_find_barber_by_employee_and_profile_name(self):
        store = MockStoreClient()

        assert asyncio.run(store.get_barber("pedro")).id == EMPLOYEE_ID
        assert asyncio.run(store.get_barber("joão silva")).id == OWNER_ID

    def test_inactive_barber_not_found(self):
        store = MockStoreClient()

        with pytest.raises(BarberNotFoundError):
            asyncio.run(store.get_barber("Carlos"))

    def test_appointments_exclude_cancelled(self):
        store = MockStoreClient()

        appointments = asyncio.run(store.get_appointments(OWNER_ID, pendulum.date(2024, 11, 25)))

        assert sorted(a.id for a in appointments) == ["apt-1", "apt-3"]

    def test_services_sorted_by_name(self):
        store = MockStoreClient()

        names = [s.name for s in asyncio.run(store.get_services(OWNER_ID))]

        assert names == sorted(names)
        assert "Corte + Barba" in names

    def test_custom_data_file(self, tmp_path):
        data_file = tmp_path / "data.json"
        data_file.write_text(json.dumps({
            "working_hours": [
                {"barber_id": "b1", "day_of_week": 3, "start_time": "10:00", "end_time": "11:00", "is_active": True},
                {"barber_id": "b1", "day_of_week": 1, "start_time": "09:00", "end_time": "10:00", "is_active": True},
            ]
        }), encoding="utf-8")
        store = MockStoreClient(data_file=data_file)

        rules = asyncio.run(store.get_working_hours("b1"))

        assert [r.day_of_week for r in rules] == [1, 3]
        assert asyncio.run(store.get_services("b1")) == []

    def test_malformed_fixture_rows_are_skipped(self, tmp_path, caplog):
        data_file = tmp_path / "data.json"
        data_file.write_text(json.dumps({
            "services": [
                {"id": "ok", "barber_id": "b1", "name": "Corte", "duration": 30},
                {"id": "broken", "barber_id": "b1", "name": "Barba", "duration": 0},
            ],
            "working_hours": [
                {"barber_id": "b1", "day_of_week": 9, "start_time": "09:00", "end_time": "10:00"},
                {"barber_id": "b1", "day_of_week": 1, "start_time": "09:00", "end_time": "10:00"},
            ],
        }), encoding="utf-8")
        store = MockStoreClient(data_file=data_file)

        with caplog.at_level(logging.WARNING):
            services = asyncio.run(store.get_services("b1"))
            rules = asyncio.run(store.get_working_hours("b1"))

        assert [s.id for s in services] == ["ok"]
        assert [r.day_of_week for r in rules] == [1]
        assert "broken" in caplog.text
