import pytest
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from graph.rules import band, category_band, first_match
from graph.nodes.qualify import (
    assign_tier,
    calculate_ai_readiness_score,
    collect_signals,
    qualify,
    qualify_prospect,
    score_page_views,
    TIER_RULES,
)

class TestRules:
    """Test ordered rule evaluation."""

    def test_first_match_wins(self):
        rules = [(band(10), "first"), (band(5), "second")]

        assert first_match(rules, {"lead_score": 12}) == "first"
        assert first_match(rules, {"lead_score": 7}) == "second"

    def test_default_when_nothing_matches(self):
        assert first_match([(band(10), "x")], {"lead_score": 1}, "fallback") == "fallback"

    def test_category_band(self):
        predicate = category_band("enterprise_ai", 25)

        assert predicate({"category": "enterprise_ai", "lead_score": 25})
        assert not predicate({"category": "enterprise_ai", "lead_score": 24})
        assert not predicate({"category": "ministry_coaching", "lead_score": 90})


class TestTierAssignment:
    """Test the tier cascade."""

    def test_investment_fund_beats_generic_bands(self):
        assert assign_tier(20, "investment_fund") == "tier_1"

    @pytest.mark.parametrize("lead_score,category,tier", [
        (35, "enterprise_ai", "tier_1"),
        (25, "enterprise_ai", "tier_2"),
        (30, "ministry_coaching", "tier_2"),
        (20, "ministry_coaching", "tier_3"),
        (25, "strategic_consulting", "tier_2"),
        (40, "undetermined", "tier_1"),
        (25, "platform_user", "tier_2"),
        (15, "undetermined", "tier_3"),
        (14, "undetermined", "tier_4"),
        (0, "undetermined", "tier_4"),
    ])
    def test_cascade(self, lead_score, category, tier):
        assert assign_tier(lead_score, category) == tier

    def test_rule_list_is_directly_testable(self):
        subject = {"lead_score": 45, "category": "ministry_coaching"}

        assert first_match(TIER_RULES, subject) == "tier_2"


class TestSignals:
    """Test the independently scored evidence sources."""

    def test_ai_readiness_capped(self):
        responses = {
            "ai_familiarity": 4,
            "data_readiness": 3,
            "process_documentation": 5,
            "change_capability": 3,
            "budget_authority": 5,
        }

        assert calculate_ai_readiness_score(responses) == 30

    def test_ai_readiness_ignores_low_answers(self):
        assert calculate_ai_readiness_score({"ai_familiarity": 2, "budget_authority": 3}) == 12

    def test_page_views_capped_at_25(self):
        signal = score_page_views(["/investment", "/investment/a", "/perpetual-engine", "/investment/b"])

        assert signal["score"] == 25
        assert signal["category"] == "investment_fund"

    def test_page_views_highest_weight_wins(self):
        signal = score_page_views(["/investment", "/ministry"])

        assert signal["score"] == 12
        assert signal["category"] == "investment_fund"

    def test_page_views_tie_goes_to_later_bucket(self):
        signal = score_page_views(["/enterprise", "/ministry"])

        assert signal["category"] == "ministry_coaching"

    def test_page_views_without_match(self):
        signal = score_page_views(["/about", "/blog"])

        assert signal["score"] == 0
        assert signal["category"] is None
        assert signal["interests"] == []

    def test_collect_signals_in_fold_order(self):
        signals = collect_signals({
            "company_info": {"employees": 500},
            "form_data": {"role": "CEO"},
            "page_views": ["/chat"],
            "assessment_responses": {"type": "personal"},
        })

        assert [s["kind"] for s in signals] == ["assessment", "page_views", "form", "company"]

    def test_unknown_assessment_type_ignored(self):
        assert collect_signals({"assessment_responses": {"type": "quiz"}}) == []


class TestQualifyProspect:
    """Test prospect classification."""

    def test_executive_role_alone(self):
        profile = qualify_prospect({"form_data": {"role": "Founder / CEO / Owner"}})

        assert profile["lead_score"] == 15
        assert profile["tier"] == "tier_3"
        assert profile["category"] == "undetermined"

    def test_no_signals(self):
        profile = qualify_prospect({})

        assert profile["lead_score"] == 0
        assert profile["category"] == "undetermined"
        assert profile["tier"] == "tier_4"
        assert profile["status"] == "new"
        assert profile["source"] == "organic"
        assert profile["id"].startswith("prospect_")

    def test_enterprise_assessment(self):
        profile = qualify_prospect({
            "assessment_responses": {"type": "enterprise", "budget_authority": 4},
            "form_data": {"email": "cto@acme.com", "name": "Ada", "company": "Acme", "role": "CTO"},
        })

        assert profile["lead_score"] == 25 + 12 + 15
        assert profile["category"] == "enterprise_ai"
        assert profile["tier"] == "tier_1"
        assert profile["email"] == "cto@acme.com"
        assert "ai_implementation" in profile["interests"]

    def test_personal_assessment(self):
        profile = qualify_prospect({"assessment_responses": {"type": "personal"}})

        assert profile["lead_score"] == 15
        assert profile["category"] == "ministry_coaching"
        assert profile["tier"] == "tier_3"

    def test_ministry_title_sets_category_when_unset(self):
        profile = qualify_prospect({"form_data": {"role": "Senior Pastor"}})

        assert profile["lead_score"] == 10
        assert profile["category"] == "ministry_coaching"

    def test_ministry_title_keeps_earlier_category(self):
        profile = qualify_prospect({"page_views": ["/enterprise"], "form_data": {"role": "Pastor"}})

        assert profile["category"] == "enterprise_ai"

    def test_company_info_scored_without_form(self):
        profile = qualify_prospect({"company_info": {"employees": 150, "revenue": 20_000_000}})

        assert profile["lead_score"] == 25

    def test_company_thresholds_are_exclusive(self):
        profile = qualify_prospect({"company_info": {"employees": 100, "revenue": 10_000_000}})

        assert profile["lead_score"] == 0

    def test_interests_deduplicated(self):
        profile = qualify_prospect({
            "assessment_responses": {"type": "personal"},
            "page_views": ["/divine-strategy", "/ministry"],
        })

        assert profile["interests"].count("divine_strategy") == 1

    def test_utm_source(self):
        profile = qualify_prospect({"utm_data": {"source": "linkedin", "campaign": "q3"}})

        assert profile["source"] == "linkedin"
        assert profile["utm_data"] == {"source": "linkedin", "campaign": "q3"}


class TestQualifyNode:
    """Test the qualify node folds in the lead score."""

    def test_uses_higher_of_classifier_and_points(self):
        state = {
            "normalized": {"email": "a@b.com", "signals": {"form_data": {"email": "a@b.com", "role": "CEO"}}},
            "score_result": {"score": "warm", "points": 50, "tags": [], "priority": 3,
                             "recommended_action": "", "next_follow_up_days": 3},
        }

        result = qualify(state)

        assert result["profile"]["lead_score"] == 50
        assert result["profile"]["tier"] == "tier_1"
        assert result["profile"]["status"] == "qualified"

    def test_without_score_result(self):
        state = {"normalized": {"signals": {"form_data": {"role": "CEO"}}}}

        result = qualify(state)

        assert result["profile"]["lead_score"] == 15
        assert result["profile"]["status"] == "new"

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
