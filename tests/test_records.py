"""Tests for boundary decoders and typed records."""

from datetime import datetime, timezone

import pytest

from microprediction.errors import MalformedPayload, NonNumericField
from microprediction.records import (
    StreamSummary,
    Transaction,
    decode_float,
    decode_float_map,
    decode_optional_float,
    decode_string_list,
    decode_string_map,
    decode_transactions,
)


class TestDecodeFloat:
    def test_int_and_float(self):
        assert decode_float(3) == 3.0
        assert decode_float(2.5) == 2.5

    def test_numeric_string(self):
        assert decode_float(" 1.25 ") == 1.25

    @pytest.mark.parametrize("raw", [None, True, "abc", [1], {"v": 1}])
    def test_rejects_non_numbers(self, raw):
        with pytest.raises(NonNumericField):
            decode_float(raw, "balance")

    def test_error_names_field(self):
        with pytest.raises(NonNumericField) as exc:
            decode_float("x", "balance")
        assert exc.value.field == "balance"
        assert exc.value.value == "x"

    def test_integer_beyond_float_range(self):
        with pytest.raises(NonNumericField, match="out of float range"):
            decode_float(10**400, "balance")

    def test_optional_null(self):
        assert decode_optional_float(None) is None
        assert decode_optional_float("4") == 4.0


class TestMaps:
    def test_float_map(self):
        assert decode_float_map({"a": 1, "b": "2.5"}, "overall") == {"a": 1.0, "b": 2.5}

    def test_float_map_rejects_array(self):
        with pytest.raises(MalformedPayload):
            decode_float_map([1, 2], "overall")

    def test_float_map_rejects_non_numeric_entry(self):
        with pytest.raises(NonNumericField):
            decode_float_map({"a": "x"}, "budgets")

    def test_string_map(self):
        assert decode_string_map({"cop.json": "Sponsor"}, "sponsors") == {"cop.json": "Sponsor"}

    def test_string_map_rejects_numbers(self):
        with pytest.raises(MalformedPayload):
            decode_string_map({"cop.json": 3}, "sponsors")

    def test_string_list(self):
        assert decode_string_list(["a", "b"], "errors") == ["a", "b"]

    def test_string_list_rejects_objects(self):
        with pytest.raises(MalformedPayload):
            decode_string_list([{"msg": "x"}], "errors")


class TestStreamSummary:
    def test_wraps_object(self):
        summary = StreamSummary.from_json("cop.json", {"delays": [70, 310], "lagged_values": [1, 2.5]})
        assert summary.name == "cop.json"
        assert summary.delays == [70, 310]
        assert summary.lagged_values == [1.0, 2.5]
        assert summary.get("missing", "x") == "x"

    def test_missing_lagged_values(self):
        summary = StreamSummary.from_json("cop.json", {})
        assert summary.lagged_values is None
        assert summary.delays == []

    def test_rejects_non_object(self):
        with pytest.raises(MalformedPayload):
            StreamSummary.from_json("cop.json", None)


class TestTransactions:
    def test_full_record(self):
        tx = Transaction.from_json({
            "amount": -0.5,
            "stream": "cop.json",
            "delay": 70,
            "epoch_time": 1609459200.5,
            "type": "settlement",
        })
        assert tx.amount == -0.5
        assert tx.stream == "cop.json"
        assert tx.delay == 70
        assert tx.settled_at == datetime(2021, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc)
        assert tx.kind == "settlement"
        assert tx.raw["type"] == "settlement"

    def test_minimal_record(self):
        tx = Transaction.from_json({"amount": "1.5"})
        assert tx.amount == 1.5
        assert tx.stream is None
        assert tx.settled_at is None
        assert "account" in repr(tx)

    def test_missing_amount(self):
        with pytest.raises(MalformedPayload, match="amount"):
            Transaction.from_json({"stream": "cop.json"})

    def test_decode_list_reports_index(self):
        with pytest.raises(NonNumericField) as exc:
            decode_transactions([{"amount": 1}, {"amount": "lots"}])
        assert exc.value.field == "transactions[1].amount"

    def test_decode_list_rejects_object(self):
        with pytest.raises(MalformedPayload):
            decode_transactions({"amount": 1})
