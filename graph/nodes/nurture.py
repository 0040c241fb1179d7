"""
Assessment nurture sequence.

Seven e-mails over four weeks that move an assessment taker toward either the
course or a consulting engagement. Content is picked from lookup tables keyed
by the prospect's biggest challenge, industry and weakest score dimension;
every table lookup falls back to a default entry, so any input produces a full
sequence.
"""
from typing import Dict, Any, List, Optional, Tuple

from graph.content import DEFAULT_CONTENT, load_nurture_content
from graph.state import LeadState, NurtureSequenceData, NurtureEmail, SCORE_DIMENSIONS
from graph.templates import (
    TEXT_STYLE,
    bullet_list,
    email_button,
    email_wrapper,
    paragraph,
    signature,
    tip_box,
    value_box,
)
from loguru import logger

SEND_AFTER_DAYS = [2, 4, 7, 10, 14, 21, 28]

# (min overall score, level), checked top down
READINESS_LEVELS = [
    (80, "leader"),
    (60, "implementer"),
    (40, "explorer"),
    (0, "beginner"),
]


def get_readiness_level(score: float) -> str:
    for threshold, level in READINESS_LEVELS:
        if score >= threshold:
            return level
    return "beginner"


def _overall(data: NurtureSequenceData) -> float:
    return data.get("overall_score") or 0


def _lookup(content: Dict[str, Any], table: str, key: Optional[str], default_key: str) -> Dict[str, Any]:
    """Find ``key`` in a content table, falling back to its default entry."""
    entries = content.get(table) or {}
    fallback = content.get(default_key) or DEFAULT_CONTENT[default_key]
    entry = entries.get(key) or entries.get(fallback)
    if entry is None:
        entry = DEFAULT_CONTENT[table][DEFAULT_CONTENT[default_key]]
    return entry


def find_weakest_area(scores: Dict[str, float]) -> Tuple[str, float]:
    """Lowest-scoring dimension; ties go to the first in SCORE_DIMENSIONS."""
    weakest = SCORE_DIMENSIONS[0]
    for key in SCORE_DIMENSIONS[1:]:
        if (scores.get(key) or 0) < (scores.get(weakest) or 0):
            weakest = key
    return weakest, scores.get(weakest) or 0


def is_high_ticket(data: NurtureSequenceData, level: str, content: Dict[str, Any]) -> bool:
    rules = content.get("high_ticket") or DEFAULT_CONTENT["high_ticket"]
    return (
        level in ("implementer", "leader")
        or data.get("team_size") in rules.get("team_sizes", [])
        or data.get("role") in rules.get("roles", [])
    )


def _email(number: int, subject: str, preheader: str, content: str) -> NurtureEmail:
    return {
        "subject": subject,
        "preheader": preheader,
        "html": email_wrapper(content, preheader),
        "send_after_days": SEND_AFTER_DAYS[number - 1],
        "email_number": number,
    }


def quick_win_email(data: NurtureSequenceData, level: str, content: Dict[str, Any]) -> NurtureEmail:
    name = data.get("name", "there")
    challenge = data.get("biggest_challenge", "")
    industry = data.get("industry", "")
    win = _lookup(content, "quick_wins", challenge, "default_challenge")

    body = "".join([
        paragraph(f"Hey {name},"),
        paragraph(f'Yesterday you told me your biggest AI challenge is: <strong>"{challenge}"</strong>'),
        paragraph("I've got a quick win for you that takes less than an hour to implement."),
        f"""<table border="0" cellpadding="0" cellspacing="0" width="100%" style="margin: 25px 0;">
      <tr>
        <td style="background-color: #f0fdf4; border: 2px solid #22c55e; padding: 25px; border-radius: 8px;">
          <p style="margin: 0 0 15px 0; font-size: 20px; font-weight: bold; color: #166534;">🎯 {win['win']}</p>
          <p style="margin: 0 0 15px 0; color: #15803d; font-size: 14px;"><strong>Time to result:</strong> {win['time_to_result']}</p>
          <p style="margin: 0 0 10px 0; color: #166534; font-weight: bold;">Here's exactly what to do:</p>
          {bullet_list(win['steps'], ordered=True)}
        </td>
      </tr>
    </table>""",
        paragraph(f"This isn't theory. It's exactly what I recommend to {industry} companies at your stage."),
        paragraph("<strong>Hit reply and let me know how it goes.</strong> I read every response."),
        tip_box("Pro Tip", "Don't try to automate everything at once. One small win creates momentum for bigger changes.", "⚡"),
        signature("Talk soon", f"Tomorrow I'll share some {industry}-specific AI opportunities you might be missing."),
    ])

    return _email(1, f'{name}, here\'s your quick win for "{challenge}"',
                  "A 30-minute action that creates real momentum", body)


def industry_deep_dive_email(data: NurtureSequenceData, level: str, content: Dict[str, Any]) -> NurtureEmail:
    name = data.get("name", "there")
    industry = data.get("industry", "")
    links = content.get("links") or DEFAULT_CONTENT["links"]
    industry_data = _lookup(content, "industry_opportunities", industry, "default_industry")

    rows = ""
    for i, opp in enumerate(industry_data["opportunities"]):
        background = "#f9fafb" if i % 2 == 0 else "#ffffff"
        rows += f"""<tr>
        <td style="padding: 15px; background-color: {background}; border-bottom: 1px solid #e5e7eb;">
          <p style="margin: 0 0 5px 0; font-size: 16px; font-weight: bold; color: #1f2937;">{i + 1}. {opp['title']}</p>
          <p style="margin: 0; font-size: 14px; color: #6b7280;">
            <span style="color: #059669; font-weight: bold;">Impact:</span> {opp['impact']} &nbsp;|&nbsp;
            <span style="color: #7c3aed;">Difficulty:</span> {opp['difficulty']}
          </p>
        </td>
      </tr>"""

    if level in ("beginner", "explorer"):
        offer = value_box(
            "Free Resource: AI Quick Start Guide",
            f"A step-by-step checklist for implementing your first AI tool, specifically designed for {industry}.",
            "Get the Guide",
            links["chat"],
        )
    else:
        offer = value_box(
            "Ready for Faster Results?",
            "At your level, you're ready for strategic implementation. Let's map out your 90-day AI roadmap.",
            "Book Strategy Call",
            links["strategy_call"],
        )

    body = "".join([
        paragraph(f"Hey {name},"),
        paragraph(f"As promised, here's the {industry} AI breakdown."),
        f"""<table border="0" cellpadding="0" cellspacing="0" width="100%" style="margin: 20px 0;">
      <tr>
        <td style="background-color: #f0f9ff; border-left: 4px solid #0ea5e9; padding: 15px;">
          <p style="margin: 0; color: #0369a1; font-size: 14px;">📊 <strong>Industry Stat:</strong> {industry_data['stat']}</p>
        </td>
      </tr>
    </table>""",
        paragraph(f"Top 3 AI Opportunities for {industry}:",
                  "margin: 0 0 15px 0; font-size: 18px; font-weight: bold; color: #1f2937;"),
        f'<table border="0" cellpadding="0" cellspacing="0" width="100%" style="margin: 20px 0;">{rows}</table>',
        paragraph(f"Based on your assessment score ({_overall(data):g}%), I'd recommend starting with the "
                  "<strong>\"Easy\"</strong> difficulty options first. Quick wins build momentum."),
        offer,
        signature("To your AI success",
                  "In a few days, I'll share how to address your lowest-scoring area from the assessment."),
    ])

    return _email(2, f"The top 3 AI opportunities in {industry} right now", industry_data["stat"], body)


def weakest_area_email(data: NurtureSequenceData, level: str, content: Dict[str, Any]) -> NurtureEmail:
    name = data.get("name", "there")
    key, value = find_weakest_area(data.get("scores") or {})
    area_names = content.get("area_names") or DEFAULT_CONTENT["area_names"]
    advice = (content.get("area_advice") or {}).get(key) or DEFAULT_CONTENT["area_advice"][key]

    body = "".join([
        paragraph(f"Hey {name},"),
        paragraph("Looking at your AI assessment, there's one area holding you back:"),
        f"""<table border="0" cellpadding="0" cellspacing="0" width="100%" style="margin: 20px 0;">
      <tr>
        <td style="background-color: #fef2f2; border: 2px solid #ef4444; padding: 25px; border-radius: 8px;">
          <p style="margin: 0 0 10px 0; font-size: 20px; font-weight: bold; color: #991b1b;">{advice['title']}: {value:g}%</p>
          <p style="margin: 0; color: #b91c1c; font-size: 16px;">{advice['problem']}</p>
        </td>
      </tr>
    </table>""",
        paragraph("Here's the good news: this is actually the <strong>easiest area to improve</strong> "
                  "because it has the most room for growth."),
        paragraph("3 Ways to Improve Fast:", "margin: 0 0 15px 0; font-size: 18px; font-weight: bold; color: #1f2937;"),
        bullet_list(advice["solutions"], ordered=True, item_style="margin-bottom: 10px;"),
        tip_box("The Hidden Benefit",
                f"By improving {advice['title'].lower()}, you'll naturally boost your other scores too. It's all connected.",
                "🔗"),
        paragraph(f'Want a more detailed breakdown? Reply with "DEEP DIVE" and I\'ll send you our {advice["resource"]}.'),
        signature("Here to help", "Next week I'll share a case study from someone who was exactly where you are."),
    ])

    email = _email(3, f"{name}, this is holding back your AI progress",
                   f"Your {area_names.get(key, key)} score is {value:g}%. Here's how to fix it", body)
    email["weakest_area"] = key
    return email


def case_study_email(data: NurtureSequenceData, level: str, content: Dict[str, Any]) -> NurtureEmail:
    name = data.get("name", "there")
    links = content.get("links") or DEFAULT_CONTENT["links"]
    study = _lookup(content, "case_studies", data.get("industry"), "default_case_study")
    label_style = "margin: 0 0 15px 0; font-size: 14px; color: #6b7280; text-transform: uppercase; font-weight: bold;"

    results = "".join(
        f'<li style="margin-bottom: 8px; color: #059669; font-weight: bold;">{result}</li>' for result in study["results"]
    )

    body = "".join([
        paragraph(f"Hey {name},"),
        paragraph(f"Today I want to share a real story from {study['company']} that reminds me of your situation."),
        f"""<table border="0" cellpadding="0" cellspacing="0" width="100%" style="margin: 25px 0; background-color: #f8f9fa; border-radius: 8px; overflow: hidden;">
      <tr>
        <td style="background-color: #667eea; padding: 15px 25px;">
          <p style="margin: 0; color: #ffffff; font-size: 18px; font-weight: bold;">📋 Case Study: {study['company']}</p>
        </td>
      </tr>
      <tr>
        <td style="padding: 25px;">
          <p style="{label_style}">The Situation</p>
          <p style="{TEXT_STYLE}">They were {study['situation']}.</p>
          <p style="{label_style}">The Solution</p>
          <p style="{TEXT_STYLE}">They {study['solution']}.</p>
          <p style="{label_style}">The Results</p>
          <ul style="margin: 0 0 20px 0; padding-left: 20px;">{results}</ul>
          <p style="margin: 0 0 5px 0; padding-left: 15px; border-left: 4px solid #667eea; font-style: italic; color: #374151;">"{study['quote']}"</p>
          <p style="margin: 0; padding-left: 19px; font-size: 14px; color: #6b7280;">{study['role']}</p>
        </td>
      </tr>
    </table>""",
        paragraph("The key insight? They didn't try to do everything at once. They picked <strong>one problem</strong>, "
                  "solved it well, and expanded from there."),
        paragraph(f'Your assessment showed your biggest challenge is "{data.get("biggest_challenge", "")}." '
                  "That's a great place to start."),
        email_button("Let's Map Your First AI Win", links["strategy_call"], "#059669"),
        signature("Cheers"),
    ])

    return _email(4, f"How {study['company']} solved the exact problem you have",
                  f"Real results: {study['results'][0]}", body)


def resource_email(data: NurtureSequenceData, level: str, content: Dict[str, Any]) -> NurtureEmail:
    name = data.get("name", "there")
    links = content.get("links") or DEFAULT_CONTENT["links"]
    toolkit = [
        "✅ AI Tool Selection Checklist",
        "✅ ROI Calculator Spreadsheet",
        "✅ 30-Day Implementation Roadmap",
        "✅ Team Training Guide",
        "✅ Common Pitfalls to Avoid",
    ]
    toolkit_items = "".join(f'<li style="margin-bottom: 10px;">{item}</li>' for item in toolkit)

    body = "".join([
        paragraph(f"Hey {name},"),
        paragraph(f"Two weeks ago you took my AI Readiness Assessment and scored {_overall(data):g}%."),
        paragraph(f"I've been thinking about {data.get('industry', '')} companies at your stage, and I realized "
                  "I should share something valuable with you:"),
        f"""<table border="0" cellpadding="0" cellspacing="0" width="100%" style="margin: 25px 0;">
      <tr>
        <td style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 30px; border-radius: 8px;">
          <p style="margin: 0 0 15px 0; font-size: 22px; font-weight: bold; color: #ffffff;">🎁 Free Resource: AI Implementation Toolkit</p>
          <p style="margin: 0 0 20px 0; color: #e0e7ff; font-size: 16px; line-height: 1.6;">Everything you need to go from "interested in AI" to "implementing AI" in your business:</p>
          <ul style="margin: 0 0 25px 0; padding-left: 20px; color: #ffffff;">{toolkit_items}</ul>
          {email_button("Get the Free Toolkit", links["chat"], "#ffffff", "#667eea")}
        </td>
      </tr>
    </table>""",
        paragraph("This toolkit is based on what I've learned helping dozens of companies implement AI successfully. "
                  "It's the \"starter pack\" I wish existed when I first got into this space."),
        tip_box("Why Free?", "Because I know that once you see results from AI, you'll want to go deeper. "
                "And when you're ready for that, I'll be here.", "🤝"),
        paragraph("Use it, share it with your team, and let me know what questions come up."),
        signature("Your AI advocate",
                  "Next week I want to share something I'm working on that might be a perfect fit for where you are."),
    ])

    return _email(5, f"{name}, I made something for you (free)",
                  "The AI Implementation Toolkit I wish I had when starting out", body)


def soft_pitch_email(data: NurtureSequenceData, level: str, content: Dict[str, Any]) -> NurtureEmail:
    name = data.get("name", "there")
    offers = content.get("offers") or DEFAULT_CONTENT["offers"]
    offer_key = "consulting" if is_high_ticket(data, level, content) else "course"
    offer = offers.get(offer_key) or DEFAULT_CONTENT["offers"][offer_key]

    body = "".join([
        paragraph(f"Hey {name},"),
        paragraph("Over the past few weeks, I've shared quick wins, industry insights, and free resources "
                  "to help you on your AI journey."),
        paragraph("Today I want to share how we can work together more directly."),
        paragraph(f"Based on your assessment ({_overall(data):g}% AI readiness, "
                  f"{data.get('timeline', '')} timeline), I think you'd benefit most from:"),
        f"""<table border="0" cellpadding="0" cellspacing="0" width="100%" style="margin: 25px 0;">
      <tr>
        <td style="border: 2px solid #667eea; padding: 30px; border-radius: 8px;">
          <p style="margin: 0 0 5px 0; font-size: 14px; color: #667eea; font-weight: bold; text-transform: uppercase;">Recommended for You</p>
          <p style="margin: 0 0 10px 0; font-size: 24px; font-weight: bold; color: #1f2937;">{offer['title']}</p>
          <p style="margin: 0 0 20px 0; font-size: 16px; color: #6b7280; font-style: italic;">{offer['subtitle']}</p>
          <p style="{TEXT_STYLE}">{offer['description']}</p>
          <p style="margin: 0 0 10px 0; font-size: 14px; font-weight: bold; color: #1f2937;">What's Included:</p>
          {bullet_list(offer['benefits'])}
          <p style="margin: 0 0 20px 0; font-size: 14px; color: #6b7280;">{offer['price']}</p>
          {email_button(offer['cta'], offer['cta_url'])}
        </td>
      </tr>
    </table>""",
        paragraph(offer["closing"]),
        paragraph("Either way, I'm happy to answer any questions. Just hit reply."),
        signature("To your success"),
    ])

    email = _email(6, f"{name}, here's how we can work together",
                   f"A path designed for your {_overall(data):g}% AI readiness level", body)
    email["offer_type"] = offer["type"]
    return email


def final_cta_email(data: NurtureSequenceData, level: str, content: Dict[str, Any]) -> NurtureEmail:
    name = data.get("name", "there")
    links = content.get("links") or DEFAULT_CONTENT["links"]
    options = [
        ("#f9fafb", "#059669", "Option 1: DIY (Free)",
         "Re-read the emails I've sent, pick one quick win, and implement it this week.",
         links["chat"], "Use the AI Chat for guidance"),
        ("#eff6ff", "#2563eb", "Option 2: Learn Systematically ($497)",
         "Join the AI Foundations Course and master AI implementation at your own pace.",
         links["course"], "Learn about the course"),
        ("#f0fdf4", "#166534", "Option 3: Get Expert Help (Custom)",
         "Work with me directly to create and implement your AI strategy.",
         links["strategy_call"], "Book a strategy call"),
    ]
    option_rows = '<tr><td style="height: 15px;"></td></tr>'.join(
        f"""<tr>
        <td style="padding: 20px; background-color: {background}; border-radius: 8px;">
          <p style="margin: 0 0 10px 0; font-size: 16px; font-weight: bold; color: {color};">{title}</p>
          <p style="margin: 0 0 15px 0; font-size: 14px; color: #374151;">{text}</p>
          <a href="{url}" style="color: {color}; font-weight: bold;">{cta} →</a>
        </td>
      </tr>"""
        for background, color, title, text, url, cta in options
    )

    body = "".join([
        paragraph(f"Hey {name},"),
        paragraph("It's been a month since you took the AI Readiness Assessment."),
        paragraph("I'm curious: <strong>have you taken any action on AI since then?</strong>"),
        paragraph("If yes, amazing. I'd love to hear what you tried. Hit reply and tell me about it."),
        paragraph("If not, that's okay too. Life gets busy. But let me leave you with this:"),
        tip_box("The Cost of Waiting", "Every week you wait to implement AI, your competitors get further ahead. "
                "The companies that move now will have a 2-3 year head start on those who \"plan to look into it.\"",
                "🎯"),
        paragraph(f'Your assessment showed you\'re ready. Your biggest challenge was "{data.get("biggest_challenge", "")}," '
                  "and I've given you a clear path forward."),
        paragraph("Here are your three options:", "margin: 0 0 20px 0; font-size: 18px; font-weight: bold; color: #1f2937;"),
        f'<table border="0" cellpadding="0" cellspacing="0" width="100%" style="margin: 25px 0;">{option_rows}</table>',
        paragraph("Whichever path you choose, I'm rooting for you. AI is going to transform every industry, "
                  "and I want you to be ahead of the curve."),
        signature("Here if you need me",
                  "Even if you don't take action today, stay on this list. I'll keep sharing valuable AI insights "
                  "and case studies. But if you want to move faster, you know where to find me."),
    ])

    return _email(7, f"{name}, one month later: where are you with AI?",
                  "A check-in and your three paths forward", body)


SEQUENCE = [
    quick_win_email,
    industry_deep_dive_email,
    weakest_area_email,
    case_study_email,
    resource_email,
    soft_pitch_email,
    final_cta_email,
]


def generate_nurture_sequence(data: NurtureSequenceData, content: Optional[Dict[str, Any]] = None) -> List[NurtureEmail]:
    """
    Build the seven-email nurture sequence for one assessment submission.

    Args:
        data: Flattened assessment snapshot
        content: Content tables; defaults to ``load_nurture_content()``

    Returns:
        Emails in send order, offsets 2, 4, 7, 10, 14, 21 and 28 days
    """
    content = content if content is not None else load_nurture_content()
    level = get_readiness_level(data.get("overall_score") or 0)
    return [build(data, level, content) for build in SEQUENCE]


def nurture(state: LeadState) -> LeadState:
    """Generate the nurture sequence for an assessment submission."""
    data = state.get("nurture_data")
    if not data:
        logger.info("No assessment data on state, skipping nurture sequence")
        state["nurture_emails"] = []
        return state

    logger.info(f"Starting nurture sequence for: {data.get('email', 'unknown')}")

    try:
        emails = generate_nurture_sequence(data)
        state["nurture_emails"] = emails
        logger.info(f"Generated {len(emails)} nurture emails ({get_readiness_level(data.get('overall_score') or 0)})")

    except Exception as e:
        error_msg = f"Nurture sequence generation failed: {str(e)}"
        logger.error(error_msg)
        state.setdefault("errors", []).append(error_msg)
        state["nurture_emails"] = []

    return state
