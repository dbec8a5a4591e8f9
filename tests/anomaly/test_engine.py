"""
Tests for the anomaly engine.
"""

import pytest

from sensorlog.anomaly.engine import AnomalyFinding, check, evaluate, is_anomalous
from sensorlog.core.config import Thresholds


class TestEvaluate:
    """Tests for evaluate()."""

    def test_all_in_range(self, make_record, thresholds):
        """In-range readings yield no descriptions and a zero score."""
        finding = evaluate(make_record(), thresholds)

        assert finding.descriptions == ()
        assert finding.deviation_score == 0.0
        assert finding.is_anomalous is False

    def test_bounds_are_inclusive(self, make_record, thresholds):
        """Values exactly on a bound are normal."""
        on_min = make_record(temperature=20.0, humidity=40.0, light=300.0)
        on_max = make_record(temperature=26.0, humidity=60.0, light=800.0)

        assert evaluate(on_min, thresholds).deviation_score == 0.0
        assert evaluate(on_max, thresholds).deviation_score == 0.0

    def test_temperature_above_maximum(self, make_record):
        """temp 30 against [20, 26] contributes exactly 4.0."""
        finding = evaluate(make_record(temperature=30.0), Thresholds(temp_min=20, temp_max=26))

        assert len(finding.descriptions) == 1
        assert "above" in finding.descriptions[0]
        assert "Temperature" in finding.descriptions[0]
        assert finding.deviation_score == 4.0

    def test_temperature_below_minimum(self, make_record):
        """temp 15 against [20, 26] contributes exactly 5.0."""
        finding = evaluate(make_record(temperature=15.0), Thresholds(temp_min=20, temp_max=26))

        assert len(finding.descriptions) == 1
        assert "below" in finding.descriptions[0]
        assert finding.deviation_score == 5.0

    def test_scores_add_across_metrics(self, make_record, thresholds):
        """Per-metric excursions are summed."""
        record = make_record(temperature=18.0, humidity=90.0, light=500.0)

        assert evaluate(record, thresholds).deviation_score == 32.0

    def test_descriptions_follow_metric_order(self, make_record, thresholds):
        """Order is temperature, humidity, light regardless of magnitude."""
        record = make_record(temperature=26.5, humidity=10.0, light=5000.0)
        descriptions = evaluate(record, thresholds).descriptions

        assert len(descriptions) == 3
        assert "Temperature" in descriptions[0]
        assert "Humidity" in descriptions[1]
        assert "Light" in descriptions[2]

    def test_description_contents(self, make_record, thresholds):
        """Descriptions carry the display timestamp, value and bound."""
        record = make_record(timestamp="2024-01-02T10:11:12.345Z", humidity=72.5)
        (description,) = evaluate(record, thresholds).descriptions

        assert "2024-01-02T10:11:12" in description
        assert ".345" not in description
        assert "72.50 %" in description
        assert "60.00 %" in description
        assert "above maximum" in description

    def test_light_rendered_without_decimals(self, make_record, thresholds):
        (description,) = evaluate(make_record(light=120.4), thresholds).descriptions

        assert "120 lux" in description
        assert "below minimum (300 lux)" in description

    def test_finding_to_dict(self, make_record, thresholds):
        finding = evaluate(make_record(temperature=30.0), thresholds)
        data = finding.to_dict()

        assert data["record"]["temperature"] == 30.0
        assert data["deviation_score"] == 4.0
        assert isinstance(data["descriptions"], list)

    @pytest.mark.parametrize(
        "temperature,humidity,light,expected",
        [
            (22.0, 50.0, 500.0, 0.0),
            (27.5, 50.0, 500.0, 1.5),
            (22.0, 35.0, 500.0, 5.0),
            (22.0, 50.0, 900.0, 100.0),
            (10.0, 70.0, 100.0, 220.0),
        ],
    )
    def test_score_is_sum_of_excursions(
        self, make_record, thresholds, temperature, humidity, light, expected
    ):
        record = make_record(temperature=temperature, humidity=humidity, light=light)

        assert evaluate(record, thresholds).deviation_score == pytest.approx(expected)


class TestCheck:
    """Tests for the lightweight check()."""

    def test_matches_full_evaluation(self, make_record, thresholds):
        """check() is exactly the descriptions of evaluate()."""
        record = make_record(temperature=31.0, light=100.0)

        assert check(record, thresholds) == evaluate(record, thresholds).descriptions

    def test_is_anomalous(self, make_record, thresholds):
        assert is_anomalous(make_record(humidity=61.0), thresholds) is True
        assert is_anomalous(make_record(), thresholds) is False

    def test_custom_thresholds_are_used(self, make_record):
        """Thresholds are injected, not global."""
        record = make_record(temperature=28.0)

        assert check(record, Thresholds(temp_max=26.0))
        assert not check(record, Thresholds(temp_max=30.0))


def test_finding_is_anomalous_property(make_record):
    finding = AnomalyFinding(record=make_record(), descriptions=("x",), deviation_score=1.0)

    assert finding.is_anomalous
