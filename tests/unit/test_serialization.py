"""
Unit tests for serialization.py module.

Tests payload parsing, field paths in errors, file persistence and
result export.
"""

import json

import pytest

from flowcast.engine import project
from flowcast.exceptions import SerializationError, ValidationError
from flowcast.profile import Direction
from flowcast.serialization import (
    SCHEMA_VERSION,
    apply_update,
    load_profile,
    profile_from_dict,
    profile_to_dict,
    result_to_dict,
    save_profile,
    save_result,
    update_from_dict,
)


class TestProfileFromDict:

    def test_payload(self, profile_payload):
        profile = profile_from_dict(profile_payload)
        assert profile.total_expenses == 2100
        assert profile.lump_sums[0].direction is Direction.INFLOW
        assert profile.goals[0].category == "car"

    def test_schema_version_key_ignored(self, profile_payload):
        payload = dict(profile_payload, schema_version=SCHEMA_VERSION)
        assert profile_from_dict(payload) == profile_from_dict(profile_payload)

    def test_bad_apr_names_field(self, profile_payload):
        profile_payload["debtAccounts"][0]["annualPercentageRate"] = 140
        with pytest.raises(ValidationError) as excinfo:
            profile_from_dict(profile_payload)
        assert excinfo.value.field == "debt_accounts[0].annual_percentage_rate"

    def test_negative_income(self):
        with pytest.raises(ValidationError) as excinfo:
            profile_from_dict({"recurringIncome": {"salary": -5}})
        assert excinfo.value.field == "recurring_income"

    def test_lump_sums_out_of_order(self):
        payload = {
            "lumpSums": [
                {"amount": 100, "effectiveDate": "2026-06-01"},
                {"amount": 100, "effectiveDate": "2026-02-01"},
            ]
        }
        with pytest.raises(ValidationError) as excinfo:
            profile_from_dict(payload)
        assert excinfo.value.field == "lump_sums[1].effective_date"

    def test_not_a_mapping(self):
        with pytest.raises(ValidationError):
            profile_from_dict(["salary", 5000])


class TestProfileToDict:

    def test_camel_case_keys(self, full_profile):
        data = profile_to_dict(full_profile)
        assert data["schema_version"] == SCHEMA_VERSION
        assert data["recurringIncome"] == {"salary": 5000.0}
        assert data["debtAccounts"][0]["annualPercentageRate"] == 22.0
        assert data["lumpSums"][0]["effectiveDate"] == "2026-03-20"

    def test_snake_case_keys(self, full_profile):
        data = profile_to_dict(full_profile, by_alias=False)
        assert "recurring_income" in data
        assert profile_from_dict(data) == full_profile


class TestUpdates:

    def test_update_from_dict(self):
        update = update_from_dict({"startingCash": 250, "riskTolerance": "high"})
        assert update.starting_cash == 250
        assert update.recurring_income is None

    def test_apply_update(self, full_profile):
        merged = apply_update(full_profile, {
            "recurringExpenses": {"food": 900, "gym": 50},
            "debtAccounts": [{"name": "car_loan", "principalBalance": 8000,
                              "annualPercentageRate": 6.5, "monthlyPayment": 250}],
            "lumpSums": [{"amount": 300, "effectiveDate": "2026-01-10", "direction": "outflow"}],
        })
        assert dict(merged.recurring_expenses) == {"housing": 2000, "food": 900, "gym": 50}
        assert [a.name for a in merged.debt_accounts] == ["credit_card", "car_loan"]
        assert [e.effective_date.month for e in merged.lump_sums] == [1, 3, 5]
        assert dict(full_profile.recurring_expenses) == {"housing": 2000, "food": 1000}

    def test_apply_update_rejects_bad_payload(self, full_profile):
        with pytest.raises(ValidationError):
            apply_update(full_profile, {"startingCash": -1})


class TestFiles:

    def test_save_and_load(self, full_profile, tmp_path):
        path = tmp_path / "nested" / "profile.json"
        save_profile(full_profile, path)
        assert load_profile(path) == full_profile

    def test_missing_file(self, tmp_path):
        with pytest.raises(SerializationError, match="File not found"):
            load_profile(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SerializationError, match="invalid JSON"):
            load_profile(path)

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "latin1.json"
        path.write_bytes(b'{"recurringIncome": {"sal\xff": 1}}')
        with pytest.raises(SerializationError, match="not valid UTF-8"):
            load_profile(path)

    def test_top_level_list(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(SerializationError):
            load_profile(path)

    def test_version_mismatch_warns(self, profile_payload, tmp_path):
        path = tmp_path / "old.json"
        path.write_text(json.dumps(dict(profile_payload, schema_version="0.0.1")), encoding="utf-8")
        with pytest.warns(UserWarning, match="schema version"):
            profile = load_profile(path)
        assert profile.total_income == 5000


class TestResults:

    def test_result_is_json_serializable(self, full_profile, monthly_config, tmp_path):
        result = project(full_profile, monthly_config)
        data = json.loads(json.dumps(result_to_dict(result)))
        assert len(data["snapshots"]) == 12
        first = data["snapshots"][0]
        assert first["periodLabel"] == "Jan 2026"
        assert set(first["investmentBalance"]) == {"pessimistic", "expected", "optimistic"}
        assert first["variability"]["incomeVariability"] == pytest.approx(0.02)
        assert data["goalFeasibility"][0]["status"] == "achievable"
        assert data["payoffEstimates"] == {"credit_card": 27}
        totals = data["totals"]
        assert totals["healthGrade"] == "B"
        assert totals["savingsRate"] == pytest.approx(0.1)
        assert totals["recommendations"] == ["lump_sums_included"]
        assert totals["expenseBreakdown"][0] == {"category": "housing", "amount": 2000.0,
                                                 "share": pytest.approx(2 / 3)}

        path = tmp_path / "result.json"
        save_result(result, path)
        assert json.loads(path.read_text(encoding="utf-8")) == data

    def test_warnings_exported(self, underpaid_card, as_of):
        from flowcast.profile import FinancialProfile

        profile = FinancialProfile(debt_accounts=[underpaid_card], recurring_income={"pay": 100})
        data = result_to_dict(project(profile, periods_forward=1, as_of=as_of))
        (warning,) = data["snapshots"][0]["warnings"]
        assert warning["kind"] == "non_amortizing_debt"
        assert warning["account"] == "credit_card"
