"""Unit tests for data/log line classification."""

import pytest

from shipment_client.protocol import DataRecord, LogLine, classify_record


class TestClassifyRecord:
    def test_plain_text_is_log(self):
        assert classify_record("hello world") == LogLine("hello world")

    def test_log_text_kept_verbatim(self):
        line = "  {broken json: yes  "
        assert classify_record(line) == LogLine(line)

    def test_json_without_context_is_log(self):
        """Valid JSON alone is not enough to be a protocol record."""
        line = '{"level": "info",   "msg": "hi"}'
        outcome = classify_record(line)
        assert isinstance(outcome, LogLine)
        assert outcome.text == line  # raw text, not re-serialised

    @pytest.mark.parametrize("line", ["42", '"text"', "[1, 2]", "null", "true"])
    def test_non_object_json_is_log(self, line):
        assert classify_record(line) == LogLine(line)

    @pytest.mark.parametrize("line", ['{"c": ""}', '{"c": null}', '{"c": 0}'])
    def test_empty_context_is_log(self, line):
        assert isinstance(classify_record(line), LogLine)

    def test_context_bearing_object_is_data(self):
        outcome = classify_record('{"c":"0","result":{"data":"HI!"}}')
        assert outcome == DataRecord({"c": "0", "result": {"data": "HI!"}})

    def test_empty_line_is_log(self):
        assert classify_record("") == LogLine("")

    @pytest.mark.parametrize(
        "line",
        [
            "[" * 100_000,
            '{"c": "0", "result": ' + "1" * 5000 + "}",
            '{"c": "0", "result": NaN}',
            '{"c": "0", "result": -Infinity}',
        ],
        ids=["deep-nesting", "huge-int", "nan", "negative-infinity"],
    )
    def test_non_standard_json_is_log(self, line):
        assert classify_record(line) == LogLine(line)


class TestDataRecord:
    def test_root_result(self):
        record = DataRecord({"c": "0", "result": {"data": "HI!"}})
        assert record.is_root
        assert record.has_result
        assert record.result == {"data": "HI!"}

    def test_nested_context(self):
        record = DataRecord({"c": "0.1", "result": 5})
        assert record.context == "0.1"
        assert not record.is_root

    def test_null_result_still_counts(self):
        record = DataRecord({"c": "0", "result": None})
        assert record.has_result
        assert record.result is None

    def test_no_result(self):
        record = DataRecord({"c": "0", "progress": 0.4})
        assert not record.has_result
