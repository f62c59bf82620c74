# Search API Tests
"""Tests for GET /api/search."""

from unittest.mock import AsyncMock, patch

import pytest

from kalk_api.errors import UpstreamQueryError

from .conftest import make_select


class TestQueryValidation:
    """Short queries are rejected before anything else happens."""

    @pytest.mark.parametrize("q", ["", " ", "a", " b ", "   x"])
    def test_short_query_is_400_with_auth(self, client, auth_headers, mock_supabase, q):
        response = client.get("/api/search", params={"q": q}, headers=auth_headers)
        assert response.status_code == 400
        assert "at least 2 characters" in response.json()["error"]

    @pytest.mark.parametrize("q", ["", "a"])
    def test_short_query_is_400_without_auth(self, client, mock_supabase, q):
        response = client.get("/api/search", params={"q": q})
        assert response.status_code == 400

    def test_missing_query_is_400(self, client, mock_supabase):
        response = client.get("/api/search")
        assert response.status_code == 400

    def test_short_query_issues_no_upstream_calls(self, client, auth_headers, mock_supabase):
        client.get("/api/search", params={"q": "a"}, headers=auth_headers)
        assert mock_supabase.select.await_count == 0
        assert mock_supabase.get_user.await_count == 0


class TestAuthentication:
    """Bearer handling."""

    def test_missing_header_is_authentication_required(self, client, mock_supabase):
        response = client.get("/api/search", params={"q": "vatn"})
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}
        assert response.headers.get("WWW-Authenticate") == "Bearer"

    def test_malformed_header_is_authentication_required(self, client, mock_supabase):
        response = client.get("/api/search", params={"q": "vatn"}, headers={"Authorization": "Token abc"})
        assert response.status_code == 401
        assert response.json()["error"] == "Authentication required"

    def test_rejected_token_is_invalid(self, client, auth_headers, mock_supabase):
        mock_supabase.get_user.side_effect = UpstreamQueryError("auth: invalid JWT", status_code=401)
        response = client.get("/api/search", params={"q": "vatn"}, headers=auth_headers)
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid authentication token"
        assert mock_supabase.select.await_count == 0


class TestSearchResults:
    """Successful searches."""

    def test_results_merged_sorted_and_tagged(
        self, client, auth_headers, mock_supabase, sample_water_rows, sample_landing_rows
    ):
        mock_supabase.select.side_effect = make_select(
            {"vass_vann": sample_water_rows, "vass_lasteplass": sample_landing_rows}
        )

        response = client.get("/api/search", params={"q": "vatn"}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 5
        names = [r["displayName"] for r in body["results"]]
        assert names[0] == "Vatn"
        assert names[1:] == sorted(names[1:], key=str.casefold)

        first = body["results"][0]
        assert first["source"] == "vass_vann"
        assert first["type"] == "water"
        assert first["color"] == "red"
        assert first["fylke"] == "Innlandet"

        landing = next(r for r in body["results"] if r["source"] == "vass_lasteplass")
        assert landing["type"] == "landingsplass"
        assert landing["color"] == "blue"

    def test_page_capped_at_fifteen(self, client, auth_headers, mock_supabase):
        water = [{"id": i, "name": f"Vatn {i}"} for i in range(10)]
        landing = [{"id": 100 + i, "kode": f"V-{i}", "lp": "v"} for i in range(10)]
        mock_supabase.select.side_effect = make_select({"vass_vann": water, "vass_lasteplass": landing})

        body = client.get("/api/search", params={"q": "vv"}, headers=auth_headers).json()

        assert len(body["results"]) == 15
        assert body["total"] == 20

    def test_one_failing_source_still_returns_200(self, client, auth_headers, mock_supabase, sample_water_rows):
        mock_supabase.select.side_effect = make_select(
            {
                "vass_vann": sample_water_rows,
                "vass_lasteplass": UpstreamQueryError("vass_lasteplass: boom", status_code=500),
            }
        )

        response = client.get("/api/search", params={"q": "vatn"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["total"] == len(sample_water_rows)

    def test_unexpected_error_is_generic_500(self, client, auth_headers, mock_supabase):
        with patch(
            "kalk_api.routers.search.search_service.search",
            AsyncMock(side_effect=RuntimeError("secret connection string")),
        ):
            response = client.get("/api/search", params={"q": "vatn"}, headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert "secret" not in response.text

    def test_correlation_id_echoed(self, client, auth_headers, mock_supabase):
        response = client.get(
            "/api/search",
            params={"q": "vatn"},
            headers={**auth_headers, "X-Correlation-ID": "abc-123"},
        )
        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_malformed_app_config_falls_back_to_live_tables(
        self, client, auth_headers, mock_supabase, sample_water_rows
    ):
        mock_supabase.select.side_effect = make_select(
            {"app_config": [{"id": "x", "active_year": None}], "vass_vann": sample_water_rows}
        )

        response = client.get("/api/search", params={"q": "vatn"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["total"] == len(sample_water_rows)
