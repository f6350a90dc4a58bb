"""Tests for the recordfilter command line."""
from __future__ import annotations

import json

from click.testing import CliRunner

from recordfilter.cli import main

RECORDS = [
    {"id": "L1", "price": 400000, "city": "Rome", "listing__c": "A1"},
    {"id": "L2", "price": 600000, "city": "Rome", "listing__c": "A2"},
    {"id": "L3", "price": 350000, "city": "Milan", "listing__c": "A1"},
]


def _json_ids(output: str) -> list[str]:
    return [json.loads(line)["id"] for line in output.splitlines() if line.startswith("{")]


class TestFilterCommand:
    def test_all_mode_json(self, json_file) -> None:
        path = json_file(RECORDS)
        result = CliRunner().invoke(main, [
            "filter", str(path),
            "-c", "price:lessThan:500000",
            "-c", "city:equalTo:Rome",
            "-m", "all", "-o", "json",
        ])
        assert result.exit_code == 0, result.output
        assert _json_ids(result.output) == ["L1"]

    def test_custom_with_context(self, json_file) -> None:
        path = json_file(RECORDS)
        ctx = json_file({"budget": 450000, "city": "Milan"}, name="inquiry.json")
        result = CliRunner().invoke(main, [
            "filter", str(path),
            "-c", "price:lessThan:@budget",
            "-c", "city:equalTo:@city",
            "-m", "custom", "-l", "1 AND 2",
            "--context", str(ctx), "-o", "json",
        ])
        assert result.exit_code == 0, result.output
        assert _json_ids(result.output) == ["L3"]

    def test_stored_mappings(self, json_file) -> None:
        path = json_file(RECORDS)
        ctx = json_file({"max_price": 500000}, name="listing.json")
        result = CliRunner().invoke(main, [
            "filter", str(path),
            "--mappings", "Inquiry:PRICE:lessThan:Max_Price;Listing:x:equalTo:y",
            "--object", "Inquiry",
            "--context", str(ctx), "-m", "any", "-o", "json",
        ])
        assert result.exit_code == 0, result.output
        assert _json_ids(result.output) == ["L1", "L3"]

    def test_invalid_logic_exits_2_and_keeps_all(self, json_file) -> None:
        path = json_file(RECORDS)
        result = CliRunner().invoke(main, [
            "filter", str(path),
            "-c", "price:lessThan:500000",
            "-c", "city:equalTo:Rome",
            "-m", "custom", "-l", "(1 AND 2", "-o", "json",
        ])
        assert result.exit_code == 2
        assert _json_ids(result.output) == ["L1", "L2", "L3"]
        assert "UnbalancedParentheses" in result.output

    def test_related_mode(self, json_file) -> None:
        path = json_file(RECORDS)
        result = CliRunner().invoke(main, [
            "filter", str(path), "-m", "related", "--anchor", "A1", "-o", "json",
        ])
        assert result.exit_code == 0, result.output
        assert _json_ids(result.output) == ["L1", "L3"]

    def test_related_anchor_matches_numeric_key(self, json_file) -> None:
        path = json_file([
            {"id": "I1", "listing__c": 42},
            {"id": "I2", "listing__c": 43},
        ])
        result = CliRunner().invoke(main, [
            "filter", str(path), "-m", "related", "--anchor", "42", "-o", "json",
        ])
        assert result.exit_code == 0, result.output
        assert _json_ids(result.output) == ["I1"]

    def test_related_without_anchor_fails(self, json_file) -> None:
        path = json_file(RECORDS)
        result = CliRunner().invoke(main, ["filter", str(path), "-m", "related"])
        assert result.exit_code == 1
        assert "related_anchor_id" in result.output

    def test_bad_condition(self, json_file) -> None:
        path = json_file(RECORDS)
        result = CliRunner().invoke(main, ["filter", str(path), "-c", "price:between:1"])
        assert result.exit_code == 2
        assert "Unknown operator" in result.output

    def test_table_output(self, json_file) -> None:
        path = json_file(RECORDS)
        result = CliRunner().invoke(main, [
            "filter", str(path), "-c", "city:equalTo:Milan", "-m", "all",
        ])
        assert result.exit_code == 0, result.output
        assert "Milan" in result.output
        assert "1 of 3 records matched" in result.output

    def test_not_a_list(self, json_file) -> None:
        path = json_file([1, 2, 3])
        result = CliRunner().invoke(main, ["filter", str(path), "-m", "none"])
        assert result.exit_code == 1


class TestCheckCommand:
    def test_valid(self) -> None:
        result = CliRunner().invoke(main, ["check", "1 AND (2 OR 3)", "--count", "3"])
        assert result.exit_code == 0
        assert "1 2 3 OR AND" in result.output

    def test_invalid(self) -> None:
        result = CliRunner().invoke(main, ["check", "1", "--count", "1"])
        assert result.exit_code == 1
        assert "EmptyOrMalformedExpression" in result.output
