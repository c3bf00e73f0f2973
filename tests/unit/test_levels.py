"""Level derivation tests."""

from trilo.challenges.levels import LEVEL_NAMES, compute_level


class TestComputeLevel:
    """Levels advance every points_per_level points."""

    def test_level_1_at_zero_points(self):
        result = compute_level(0)
        assert result["level"] == 1
        assert result["name"] == "Novice"

    def test_boundary_999_is_still_level_1(self):
        result = compute_level(999)
        assert result["level"] == 1
        assert result["points_into_level"] == 999

    def test_level_2_at_1000_points(self):
        result = compute_level(1000)
        assert result["level"] == 2
        assert result["name"] == "Apprentice"
        assert result["points_into_level"] == 0

    def test_1050_points_is_apprentice(self):
        result = compute_level(1050)
        assert result["level"] == 2
        assert result["name"] == "Apprentice"
        assert result["points_into_level"] == 50
        assert result["points_for_level"] == 1000

    def test_names_saturate_at_last_entry(self):
        """Levels past the name table keep counting but reuse the last name."""
        result = compute_level(25_000)
        assert result["level"] == 26
        assert result["name"] == LEVEL_NAMES[-1]

    def test_custom_points_per_level(self):
        result = compute_level(500, points_per_level=250)
        assert result["level"] == 3
        assert result["name"] == "Expert"

    def test_negative_total_clamps_to_level_1(self):
        assert compute_level(-10)["level"] == 1
