import pytest
import itertools
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from graph.nodes.score import (
    BOOKED_ACTION,
    calculate_lead_score,
    get_lead_priority_label,
    score,
    score_band,
    status_from_score,
    suggest_next_action,
    tier_from_priority,
)

class TestCalculateLeadScore:
    """Test the additive lead score."""

    def test_completed_high_score_is_warm_without_engagement(self):
        result = calculate_lead_score({"assessment_completed": True, "overall_score": 85})

        assert result["points"] == 50
        assert result["score"] == "warm"
        assert result["priority"] == 3
        assert result["next_follow_up_days"] == 3
        assert result["tags"] == ["assessment_complete", "high_score", "ready_to_buy"]

    def test_imbalance_bonus_lifts_low_score_to_warm(self):
        result = calculate_lead_score({
            "assessment_completed": True,
            "overall_score": 30,
            "score_breakdown": {
                "current_state": 10,
                "strategy_vision": 80,
                "team_capabilities": 20,
                "implementation": 15,
            },
        })

        assert result["points"] == 40
        assert result["score"] == "warm"
        assert "needs_nurture" in result["tags"]

    def test_balanced_breakdown_gets_no_bonus(self):
        result = calculate_lead_score({
            "assessment_completed": True,
            "overall_score": 55,
            "score_breakdown": {
                "current_state": 50,
                "strategy_vision": 60,
                "team_capabilities": 55,
                "implementation": 70,
            },
        })

        assert result["points"] == 40

    def test_hot_band(self):
        result = calculate_lead_score({
            "assessment_completed": True,
            "overall_score": 75,
            "email_clicked": True,
            "email_opened": True,
        })

        assert result["points"] == 70
        assert result["score"] == "hot"
        assert result["priority"] == 5
        assert result["next_follow_up_days"] == 1

    def test_empty_snapshot_is_cold(self):
        result = calculate_lead_score({})

        assert result["points"] == 0
        assert result["score"] == "cold"
        assert result["priority"] == 1
        assert result["next_follow_up_days"] == 7
        assert result["tags"] == []

    def test_zero_overall_score_counts_as_low(self):
        result = calculate_lead_score({"overall_score": 0})

        assert result["tags"] == ["needs_nurture"]

    def test_ready_to_buy_tag_not_duplicated(self):
        result = calculate_lead_score({"overall_score": 90, "calendar_booked": True})

        assert result["tags"].count("ready_to_buy") == 1

    def test_stale_signup_penalty(self):
        result = calculate_lead_score({"days_since_signup": 45, "chat_used": True})

        assert result["points"] == 5
        assert "unengaged" in result["tags"]

    def test_stale_signup_not_penalized_after_assessment(self):
        result = calculate_lead_score({"days_since_signup": 45, "assessment_completed": True})

        assert result["points"] == 30
        assert "unengaged" not in result["tags"]

    def test_stale_assessment_penalty(self):
        result = calculate_lead_score({"assessment_completed": True, "days_since_assessment": 20})

        assert result["points"] == 25

    def test_points_clamped_to_hundred(self):
        result = calculate_lead_score({
            "assessment_completed": True,
            "overall_score": 95,
            "score_breakdown": {
                "current_state": 100,
                "strategy_vision": 20,
                "team_capabilities": 90,
                "implementation": 90,
            },
            "email_opened": True,
            "email_clicked": True,
            "calendar_booked": True,
            "chat_used": True,
        })

        assert result["points"] == 100

    def test_points_never_negative(self):
        result = calculate_lead_score({"days_since_signup": 90, "days_since_assessment": 90})

        assert result["points"] == 0

    def test_points_always_in_range(self):
        flags = ["assessment_completed", "email_opened", "email_clicked", "calendar_booked", "chat_used"]
        for values in itertools.product([True, False], repeat=len(flags)):
            for overall in [None, 0, 45, 55, 100]:
                for days in [0, 20, 40]:
                    data = dict(zip(flags, values))
                    data.update({"overall_score": overall, "days_since_signup": days, "days_since_assessment": days})

                    result = calculate_lead_score(data)

                    assert 0 <= result["points"] <= 100

    @pytest.mark.parametrize("data", [
        {"calendar_booked": True},
        {"calendar_booked": True, "days_since_signup": 365},
        {"calendar_booked": True, "overall_score": 0, "days_since_signup": 90, "days_since_assessment": 90},
        {"calendar_booked": True, "assessment_completed": True, "overall_score": 99, "chat_used": True},
    ])
    def test_booking_always_hot(self, data):
        result = calculate_lead_score(data)

        assert result["score"] == "hot"
        assert result["priority"] == 5
        assert result["next_follow_up_days"] == 0
        assert result["recommended_action"] == BOOKED_ACTION


class TestScoringHelpers:
    """Test next-action suggestions and label mappings."""

    def test_next_action_booked(self):
        data = {"calendar_booked": True}
        action = suggest_next_action(data, calculate_lead_score(data))

        assert action["urgency"] == "immediate"
        assert action["template"] == "personal_outreach"

    def test_next_action_fresh_assessment(self):
        data = {"assessment_completed": True, "days_since_assessment": 1}
        action = suggest_next_action(data, calculate_lead_score(data))

        assert action["urgency"] == "today"

    def test_next_action_older_assessment(self):
        data = {"assessment_completed": True, "days_since_assessment": 5}
        action = suggest_next_action(data, calculate_lead_score(data))

        assert action["template"] == "follow_up"

    def test_next_action_reengagement(self):
        data = {"days_since_signup": 20}
        action = suggest_next_action(data, calculate_lead_score(data))

        assert action["template"] == "reengagement"

    def test_next_action_default_nurture(self):
        action = suggest_next_action({}, calculate_lead_score({}))

        assert action["template"] == "nurture"
        assert action["urgency"] == "this_week"

    def test_priority_labels(self):
        assert get_lead_priority_label(5) == "🔥 Urgent"
        assert get_lead_priority_label(1) == "❄️ Cold"
        assert get_lead_priority_label(9) == "📊 Unknown"

    def test_tier_from_priority(self):
        assert tier_from_priority(5) == "tier_1"
        assert tier_from_priority(4) == "tier_2"
        assert tier_from_priority(3) == "tier_3"
        assert tier_from_priority(1) == "tier_4"

    @pytest.mark.parametrize("points,band,priority", [
        (100, "hot", 5), (70, "hot", 5), (69, "warm", 3), (40, "warm", 3), (39, "cold", 1), (0, "cold", 1),
    ])
    def test_score_band(self, points, band, priority):
        assert score_band(points)[:2] == (band, priority)

    def test_status_from_score(self):
        assert status_from_score("hot") == "opportunity"
        assert status_from_score("warm") == "qualified"
        assert status_from_score("cold") == "nurturing"
        assert status_from_score("unknown") == "new"


class TestScoreNode:
    """Test the score node."""

    def test_scores_snapshot(self):
        state = {"scoring_data": {"assessment_completed": True, "overall_score": 85}}
        result = score(state)

        assert result["score_result"]["points"] == 50

    def test_skips_without_snapshot(self):
        result = score({"normalized": {"email": "a@b.com"}})

        assert "score_result" not in result

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
