import pytest
import os
import sys
from urllib.parse import urlparse, parse_qs

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from graph.nodes.route import (
    CALENDLY_BASE_URL,
    generate_tracking_url,
    get_booking_recommendation,
    get_preparation_guide,
    route,
)

class TestBookingRecommendation:
    """Test call type selection."""

    def test_investment_fund_gets_executive_session(self):
        rec = get_booking_recommendation({"category": "investment_fund", "tier": "tier_3", "lead_score": 5})

        assert rec["call_type"] == "executive_strategy"
        assert rec["priority"] == "high"
        assert rec["estimated_value"] == 100_000
        assert rec["calendly_url"] == f"{CALENDLY_BASE_URL}/executive-strategy-session"
        assert rec["preparation_guide"] == "executive-strategy-prep"

    def test_top_tier_beats_category_rules(self):
        rec = get_booking_recommendation({"category": "enterprise_ai", "tier": "tier_1", "lead_score": 45})

        assert rec["call_type"] == "executive_strategy"

    def test_ministry_tier_2(self):
        rec = get_booking_recommendation({"category": "ministry_coaching", "tier": "tier_2", "lead_score": 30})

        assert rec["call_type"] == "divine_strategy"
        assert rec["priority"] == "high"
        assert rec["estimated_value"] == 25_000

    def test_ministry_lower_tier(self):
        rec = get_booking_recommendation({"category": "ministry_coaching", "tier": "tier_3", "lead_score": 20})

        assert rec["priority"] == "medium"
        assert rec["estimated_value"] == 5_000

    def test_divine_strategy_interest(self):
        rec = get_booking_recommendation({
            "category": "platform_user", "tier": "tier_4", "lead_score": 2, "interests": ["divine_strategy"],
        })

        assert rec["call_type"] == "divine_strategy"

    def test_enterprise_ai_tier_1(self):
        rec = get_booking_recommendation({"category": "enterprise_ai", "tier": "tier_1", "lead_score": 35})

        assert rec["call_type"] == "ai_implementation"
        assert rec["priority"] == "high"
        assert rec["estimated_value"] == 75_000

    def test_enterprise_ai_tier_2(self):
        rec = get_booking_recommendation({"category": "enterprise_ai", "tier": "tier_2", "lead_score": 25})

        assert rec["call_type"] == "ai_implementation"
        assert rec["priority"] == "medium"
        assert rec["estimated_value"] == 25_000

    def test_default_discovery(self):
        rec = get_booking_recommendation({"category": "enterprise_ai", "tier": "tier_3", "lead_score": 20})

        assert rec["call_type"] == "general_discovery"
        assert rec["priority"] == "standard"
        assert rec["estimated_value"] == 0
        assert rec["calendly_url"].endswith("/discovery-call")


class TestTrackingUrl:
    """Test attribution parameters."""

    def test_parameters(self):
        profile = {"id": "prospect_1_abc", "category": "enterprise_ai", "tier": "tier_2", "lead_score": 30}

        url = generate_tracking_url("https://calendly.com/x/call", profile)
        query = parse_qs(urlparse(url).query)

        assert url.startswith("https://calendly.com/x/call?")
        assert query["utm_source"] == ["qualification_system"]
        assert query["utm_medium"] == ["qualification"]
        assert query["utm_campaign"] == ["enterprise_ai"]
        assert query["utm_content"] == ["tier_2"]
        assert query["lead_score"] == ["30"]
        assert query["prospect_id"] == ["prospect_1_abc"]

    def test_values_are_encoded(self):
        url = generate_tracking_url("https://x.test", {"id": "a b&c"}, source="my source")

        assert "prospect_id=a+b%26c" in url
        assert "utm_source=my+source" in url


class TestRouteNode:
    """Test the route node."""

    def test_guides(self):
        guide = get_preparation_guide("ai_implementation")

        assert len(guide["content"]) == 4
        assert len(guide["questions"]) == 4
        assert get_preparation_guide("nope") == get_preparation_guide("general_discovery")

    def test_sets_recommendation_and_tracking_url(self):
        state = {"profile": {"id": "p1", "category": "investment_fund", "tier": "tier_1", "lead_score": 25}}

        result = route(state)

        assert result["recommendation"]["call_type"] == "executive_strategy"
        assert "prospect_id=p1" in result["tracking_url"]

    def test_without_profile(self):
        result = route({})

        assert "recommendation" not in result

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
