"""
Tests for the calculation API endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from underwriting.main import app


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def deal_payload():
    """Two properties in one portfolio with a $100k/room asking price."""
    return {
        "properties": [
            {"id": 1, "address": "75 Baldwin Ave", "rooms": 10},
            {
                "id": 2,
                "address": "11 Lincoln Park",
                "rooms": 4,
                "units": [
                    {"unit_id": "A", "status": "Occupied", "current_rent": 800},
                    {"unit_id": "B", "status": "Occupied", "current_rent": 850},
                    {"unit_id": "C", "status": "Vacant"},
                    {"unit_id": "D", "status": "Vacant"},
                ],
            },
        ],
        "portfolios": [{"id": "full", "name": "Full Portfolio", "property_ids": [1, 2]}],
        "portfolio_id": "full",
        "assumptions": {"asking_price_per_room": 100000},
        "price_allocations": {"1": 75, "2": 25},
        "financing": {"sizing_method": "ltv", "target_ltv": 70, "interest_rate": 7.5},
    }


class TestCalculationsAPI:
    """Test calculation endpoints."""

    def test_calculate_property(self, client):
        response = client.post(
            "/api/calculate/property",
            json={
                "record": {"id": 1, "address": "75 Baldwin Ave", "rooms": 10},
                "allocated_price": 1000000,
                "overrides": {"renovation": {"enabled": False}},
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["current"]["gri"] == 108000
        assert data["current"]["opex"] == 22500
        assert abs(data["stabilized"]["gri"] - 102600) < 1e-6
        assert len(data["units"]) == 10

    def test_calculate_portfolio(self, client, deal_payload):
        response = client.post("/api/calculate/portfolio", json=deal_payload)
        assert response.status_code == 200
        data = response.json()
        assert data["portfolio"]["total_rooms"] == 14
        assert data["portfolio"]["valuation"]["asking_price"] == 1400000
        assert [p["valuation"]["asking_price"] for p in data["properties"]] == [1050000, 350000]
        renovation = data["portfolio"]["renovation"]
        assert renovation["units_to_renovate"] == 12
        assert renovation["total_capex"] == 180000

    def test_unknown_portfolio(self, client, deal_payload):
        deal_payload["portfolio_id"] = "missing"
        response = client.post("/api/calculate/debt", json=deal_payload)
        assert response.status_code == 404

    def test_calculate_debt(self, client, deal_payload):
        response = client.post("/api/calculate/debt", json=deal_payload)
        assert response.status_code == 200
        loan = response.json()["loan"]
        assert abs(loan["effective_loan_amount"] - 980000) < 1e-6
        assert abs(loan["acquisition_fee"] - 14000) < 1e-6

    def test_zero_debt_service_renders_null(self, client, deal_payload):
        deal_payload["financing"] = {"sizing_method": "manual", "manual_loan_amount": 0}
        response = client.post("/api/calculate/debt", json=deal_payload)
        assert response.status_code == 200
        loan = response.json()["loan"]
        assert loan["annual_debt_service"] == 0
        assert loan["dscr_stabilized"] is None
        assert loan["dscr_current"] is None

    def test_loan_preset(self, client, deal_payload):
        deal_payload["preset"] = "bridge"
        response = client.post("/api/calculate/debt", json=deal_payload)
        assert response.status_code == 200
        loan = response.json()["loan"]
        assert abs(loan["loan_to_value"] - 80) < 1e-9

    def test_unknown_loan_preset(self, client, deal_payload):
        deal_payload["preset"] = "mezzanine"
        response = client.post("/api/calculate/debt", json=deal_payload)
        assert response.status_code == 400

    def test_list_loan_presets(self, client):
        response = client.get("/api/calculate/loan-presets")
        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"bridge", "bank", "agency"}
        assert data["bank"]["sizing_method"] == "lower_dscr_ltv"

    def test_calculate_deal(self, client, deal_payload):
        response = client.post("/api/calculate/deal", json=deal_payload)
        assert response.status_code == 200
        data = response.json()
        assert len(data["properties"]) == 2
        assert len(data["amortization"]) == 5
        returns = data["returns"]
        assert len(returns["annual"]) == 5
        assert returns["gp"]["irr"] is None
        assert returns["refinance"] is None
        assert returns["total_equity_required"] == data["loan"]["equity_required"]

    def test_individual_investor_check(self, client, deal_payload):
        deal_payload["investor"] = {"investment_amount": 50000}
        response = client.post("/api/calculate/returns", json=deal_payload)
        assert response.status_code == 200
        returns = response.json()["returns"]
        share = returns["investor"]
        assert share["investment_amount"] == 50000
        assert abs(
            share["share_of_lp_pool"] - 50000 / returns["lp"]["capital_contribution"]
        ) < 1e-12

    def test_calculate_returns_with_refinance(self, client, deal_payload):
        deal_payload["refinance"] = {"enabled": True, "refinance_month": 84}
        response = client.post("/api/calculate/returns", json=deal_payload)
        assert response.status_code == 200
        returns = response.json()["returns"]
        # Hold extends to cover the refinance year
        assert len(returns["annual"]) == 7
        assert returns["refinance"]["year"] == 7

    def test_calculate_refinance(self, client):
        response = client.post(
            "/api/calculate/refinance",
            json={
                "noi": 800000,
                "payoff_amount": 5000000,
                "refinance": {"enabled": True, "valuation_cap_rate": 8.0, "max_ltv": 75},
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert abs(data["valuation"] - 10000000) < 1e-6
        assert data["new_loan_amount"] <= data["max_loan_by_ltv"]
        assert data["is_cash_out"] == (data["net_proceeds"] > 0)

    def test_calculate_irr(self, client):
        """Test IRR calculation endpoint."""
        response = client.post(
            "/api/calculate/irr",
            json={"cash_flows": [-100, 20, 20, 20, 20, 80]},
        )
        assert response.status_code == 200
        data = response.json()
        assert "irr" in data
        assert data["irr"] > 0
        assert data["multiple"] == 1.6

    def test_calculate_irr_without_sign_change(self, client):
        response = client.post(
            "/api/calculate/irr",
            json={"cash_flows": [100, 100, 100]},  # No negative values
        )
        assert response.status_code == 200
        assert response.json()["irr"] is None

    def test_calculate_irr_invalid_cash_flows(self, client):
        response = client.post("/api/calculate/irr", json={"cash_flows": [-100]})
        assert response.status_code == 400

    def test_calculate_amortization(self, client):
        """Test amortization schedule endpoint."""
        response = client.post(
            "/api/calculate/amortization",
            json={
                "principal": 1000000,
                "interest_rate": 6.0,
                "amortization_years": 30,
                "term_years": 10,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert 5900 < data["monthly_payment"] < 6100
        assert len(data["schedule"]) == 10
        assert data["schedule"][-1]["remaining_balance"] < 1000000
        assert abs(
            data["total_principal"] + data["schedule"][-1]["remaining_balance"] - 1000000
        ) < 1e-3


class TestHealthCheck:
    """Test health check endpoint."""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
