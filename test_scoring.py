"""
Unit tests for reusability scoring.
"""

import pytest

from ecovision.records.scoring import (
    ReusabilityLabel,
    compute_reusability_score,
    reusability_label,
)


class TestComputeReusabilityScore:
    """Test the derived score formula."""

    def test_battery_with_two_hazards(self):
        """Test battery category with lithium and cobalt."""
        score = compute_reusability_score("Battery", {"Lithium", "Cobalt"})
        assert score == 10
        assert reusability_label(score) == ReusabilityLabel.NON_REUSABLE

    def test_display_device_with_two_hazards(self):
        """Test a category with no keyword adjustments."""
        score = compute_reusability_score("Display Device", {"Mercury", "Lead"})
        assert score == 40
        assert reusability_label(score) == ReusabilityLabel.MODERATE

    def test_accessory_without_hazards(self):
        """Test accessory bonus."""
        score = compute_reusability_score("Electronic Accessory", set())
        assert score == 90
        assert reusability_label(score) == ReusabilityLabel.HIGHLY_REUSABLE

    def test_matching_is_case_insensitive(self):
        """Test lower-case category keywords still match."""
        assert compute_reusability_score("mobile phone", []) == 80
        assert compute_reusability_score("USB CABLE", []) == 90

    def test_adjustments_stack(self):
        """Test every matching adjustment applies."""
        # 70 - 30 (battery) + 10 (phone)
        assert compute_reusability_score("Phone Battery", []) == 50
        # 70 + 20 (cable) + 10 (computer)
        assert compute_reusability_score("Computer Cable", []) == 100

    def test_clamped_at_zero(self):
        """Test many hazards cannot push the score below zero."""
        hazards = ["Lead", "Mercury", "Cadmium", "Lithium", "Cobalt"]
        assert compute_reusability_score("Battery Pack", hazards) == 0

    def test_clamped_at_hundred(self):
        """Test the score never exceeds 100."""
        assert compute_reusability_score("Phone Cable Accessory", []) == 100

    def test_duplicate_hazards_count_once(self):
        """Test hazardous materials are a set."""
        assert compute_reusability_score("Display", ["Lead", "Lead"]) == 55

    @pytest.mark.parametrize("category", ["", "Battery", "Cable", "Phone", "Misc"])
    @pytest.mark.parametrize("hazard_count", [0, 1, 3, 8])
    def test_always_in_range_and_deterministic(self, category, hazard_count):
        """Test range and purity over a spread of inputs."""
        hazards = [f"h{i}" for i in range(hazard_count)]
        first = compute_reusability_score(category, hazards)
        assert 0 <= first <= 100
        assert compute_reusability_score(category, hazards) == first


class TestReusabilityLabel:
    """Test label thresholds."""

    def test_thresholds(self):
        """Test boundaries at 70 and 40."""
        assert reusability_label(70) == ReusabilityLabel.HIGHLY_REUSABLE
        assert reusability_label(69) == ReusabilityLabel.MODERATE
        assert reusability_label(40) == ReusabilityLabel.MODERATE
        assert reusability_label(39) == ReusabilityLabel.NON_REUSABLE
        assert reusability_label(0) == ReusabilityLabel.NON_REUSABLE
