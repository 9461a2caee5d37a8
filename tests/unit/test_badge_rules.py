"""Badge threshold rules and notification text."""

from __future__ import annotations

from ecotrack.db.models import Badge
from ecotrack.gamification.badge_service import badge_message, badge_qualifies
from ecotrack.gamification.seed import BADGE_SEED_DATA


def _badge(points=None, streak=None) -> Badge:
    return Badge(name="b", description="", points_required=points, streak_required=streak)


class TestBadgeQualifies:
    def test_points_threshold_reached(self):
        assert badge_qualifies(_badge(points=100), points=100, streak=0)

    def test_points_threshold_not_reached(self):
        assert not badge_qualifies(_badge(points=100), points=99, streak=50)

    def test_streak_threshold_reached(self):
        assert badge_qualifies(_badge(streak=3), points=0, streak=3)

    def test_either_threshold_is_enough(self):
        badge = _badge(points=2500, streak=30)
        assert badge_qualifies(badge, points=2500, streak=0)
        assert badge_qualifies(badge, points=0, streak=30)
        assert not badge_qualifies(badge, points=2499, streak=29)

    def test_no_thresholds_never_qualifies(self):
        assert not badge_qualifies(_badge(), points=10_000, streak=365)

    def test_zero_threshold_is_defined(self):
        assert badge_qualifies(_badge(points=0), points=0, streak=0)


class TestBadgeMessage:
    def test_lists_names_in_order(self):
        assert badge_message(["Eco Enthusiast", "Consistent Contributor"]) == (
            "You earned new badges: Eco Enthusiast, Consistent Contributor"
        )


class TestSeedCatalog:
    def test_names_unique(self):
        names = [b["name"] for b in BADGE_SEED_DATA]
        assert len(names) == len(set(names))

    def test_welcome_badge_has_no_thresholds(self):
        welcome = next(b for b in BADGE_SEED_DATA if b["name"] == "Green Starter")
        assert welcome["points_required"] is None
        assert welcome["streak_required"] is None
