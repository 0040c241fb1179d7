"""
HTML building blocks for outbound e-mails.

Table-based markup so Outlook and webmail clients render it the same way.
Interpolated values are inserted as-is (no escaping), so callers own whatever
they pass in.
"""
from typing import Dict, List, Optional

BRAND = "Lorenzo DC"
TAGLINE = "AI Strategy & Implementation"
PRIMARY = "#667eea"
SITE_URL = "https://www.lorenzodc.com"
CHAT_URL = "https://www.lorenzodc.com/chat"
STRATEGY_CALL_URL = "https://calendly.com/lorenzo-theglobalenterprise/ai-strategy-call"

TEXT_STYLE = "margin: 0 0 20px 0; font-size: 16px; color: #374151; line-height: 1.6;"


def email_wrapper(content: str, preheader: str = "") -> str:
    """Wrap body content in the branded header/footer document."""
    return f"""<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">
<html xmlns="http://www.w3.org/1999/xhtml">
<head>
  <meta http-equiv="Content-Type" content="text/html; charset=UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0"/>
  <title>{BRAND} - AI Strategy</title>
  <!--[if mso]>
  <style type="text/css">
    body, table, td {{font-family: Arial, Helvetica, sans-serif !important;}}
  </style>
  <![endif]-->
</head>
<body style="margin: 0; padding: 0; background-color: #f4f4f4; font-family: Arial, Helvetica, sans-serif; -webkit-font-smoothing: antialiased;">
  <div style="display: none; max-height: 0; overflow: hidden;">{preheader}&nbsp;&zwnj;&nbsp;&zwnj;&nbsp;&zwnj;</div>
  <table border="0" cellpadding="0" cellspacing="0" width="100%" style="background-color: #f4f4f4;">
    <tr>
      <td align="center" style="padding: 20px 10px;">
        <table border="0" cellpadding="0" cellspacing="0" width="600" style="background-color: #ffffff; border-radius: 8px; overflow: hidden;">
          <tr>
            <td align="center" bgcolor="{PRIMARY}" style="padding: 30px 40px;">
              <p style="margin: 0; color: #ffffff; font-size: 24px; font-weight: bold;">{BRAND}</p>
              <p style="margin: 5px 0 0 0; color: #e0e7ff; font-size: 14px;">{TAGLINE}</p>
            </td>
          </tr>
          <tr>
            <td style="padding: 40px 40px 30px 40px;">
              {content}
            </td>
          </tr>
          <tr>
            <td bgcolor="#f8f9fa" align="center" style="padding: 30px 40px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 12px; line-height: 1.5;">
              <p style="margin: 0 0 10px 0;">You're receiving this because you took the AI Readiness Assessment at lorenzodc.com</p>
              <p style="margin: 0;">
                <a href="{SITE_URL}" style="color: {PRIMARY}; text-decoration: none;">Website</a> &nbsp;|&nbsp;
                <a href="{CHAT_URL}" style="color: {PRIMARY}; text-decoration: none;">AI Chat</a> &nbsp;|&nbsp;
                <a href="{STRATEGY_CALL_URL}" style="color: {PRIMARY}; text-decoration: none;">Book a Call</a>
              </p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""


def email_button(text: str, url: str, bg_color: str = PRIMARY, text_color: str = "#ffffff") -> str:
    return f"""<table border="0" cellpadding="0" cellspacing="0" width="100%">
    <tr>
      <td align="center" style="padding: 20px 0;">
        <!--[if mso]>
        <v:roundrect xmlns:v="urn:schemas-microsoft-com:vml" xmlns:w="urn:schemas-microsoft-com:office:word" href="{url}" style="height:50px;v-text-anchor:middle;width:280px;" arcsize="10%" strokecolor="{bg_color}" fillcolor="{bg_color}">
          <w:anchorlock/>
          <center style="color:{text_color};font-family:Arial,sans-serif;font-size:16px;font-weight:bold;">{text}</center>
        </v:roundrect>
        <![endif]-->
        <!--[if !mso]><!-->
        <a href="{url}" target="_blank" style="background-color: {bg_color}; border: 1px solid {bg_color}; border-radius: 6px; color: {text_color}; display: inline-block; font-size: 16px; font-weight: bold; line-height: 50px; text-align: center; text-decoration: none; width: 280px;">{text}</a>
        <!--<![endif]-->
      </td>
    </tr>
  </table>"""


def tip_box(title: str, content: str, emoji: str = "💡") -> str:
    return f"""<table border="0" cellpadding="0" cellspacing="0" width="100%" style="margin: 20px 0;">
    <tr>
      <td style="background-color: #fef3c7; border-left: 4px solid #f59e0b; padding: 20px; border-radius: 0 8px 8px 0;">
        <p style="margin: 0 0 10px 0; font-size: 16px; font-weight: bold; color: #92400e;">{emoji} {title}</p>
        <p style="margin: 0; color: #78350f; font-size: 14px; line-height: 1.6;">{content}</p>
      </td>
    </tr>
  </table>"""


def value_box(title: str, description: str, cta_text: str, cta_url: str) -> str:
    return f"""<table border="0" cellpadding="0" cellspacing="0" width="100%" style="margin: 20px 0;">
    <tr>
      <td style="background-color: #eff6ff; border: 1px solid #bfdbfe; padding: 25px; border-radius: 8px;">
        <p style="margin: 0 0 10px 0; font-size: 18px; font-weight: bold; color: #1e40af;">{title}</p>
        <p style="margin: 0 0 15px 0; color: #1e3a8a; font-size: 14px; line-height: 1.6;">{description}</p>
        <a href="{cta_url}" style="color: #2563eb; font-weight: bold; text-decoration: underline;">{cta_text} →</a>
      </td>
    </tr>
  </table>"""


def paragraph(text: str, style: str = TEXT_STYLE) -> str:
    return f'<p style="{style}">{text}</p>'


def bullet_list(items: List[str], ordered: bool = False, item_style: str = "margin-bottom: 8px;") -> str:
    tag = "ol" if ordered else "ul"
    rows = "".join(f'<li style="{item_style}">{item}</li>' for item in items)
    return f'<{tag} style="margin: 0 0 20px 0; padding-left: 20px; color: #374151;">{rows}</{tag}>'


def signature(sign_off: str, postscript: Optional[str] = None) -> str:
    html = f'<p style="margin: 20px 0 0 0; font-size: 16px; color: #374151;">{sign_off},<br/><strong>Lorenzo</strong></p>'
    if postscript:
        html += f'<p style="margin: 10px 0 0 0; font-size: 14px; color: #6b7280;">P.S. {postscript}</p>'
    return html


# (min overall score, label, color, description, timeframe, next steps)
READINESS_REPORTS = [
    (80, "AI-Ready Leader", "#10B981",
     "You're in the top 10% of organizations. You're ready for advanced AI implementations.",
     "30-60 days",
     ["Start with high-impact pilot projects", "Implement AI governance framework",
      "Scale successful pilots across organization", "Consider AI-first strategic initiatives"]),
    (60, "AI-Ready Implementer", "#3B82F6",
     "You have solid foundations. Ready for strategic AI implementation.",
     "60-90 days",
     ["Define clear AI strategy and ROI metrics", "Launch 2-3 focused pilot projects",
      "Invest in team training and capabilities", "Establish data quality processes"]),
    (40, "AI Explorer", "#F59E0B",
     "You're making progress but need more preparation before major AI initiatives.",
     "90-120 days",
     ["Strengthen data organization and quality", "Upskill team with AI literacy training",
      "Start with simple automation tools", "Develop internal AI champion network"]),
    (0, "AI Beginner", "#EF4444",
     "You're at the beginning of your AI journey. Focus on building foundations.",
     "4-6 months",
     ["Begin with AI education and awareness", "Audit and organize your data assets",
      "Experiment with basic AI tools (ChatGPT, etc.)", "Create change management strategy"]),
]


def build_report_email(scores: Dict[str, float], name: str, company: Optional[str] = None) -> Dict[str, str]:
    """Immediate results e-mail sent when an assessment is submitted."""
    overall = scores.get("overall", 0) or 0
    for min_score, label, color, description, timeframe, steps in READINESS_REPORTS:
        if overall >= min_score:
            break

    company_text = f" at {company}" if company else ""
    content = "".join([
        paragraph(f"Hi {name},"),
        paragraph(f"Thanks for taking the AI Readiness Assessment{company_text}. Here are your results."),
        f"""<table border="0" cellpadding="0" cellspacing="0" width="100%" style="margin: 25px 0;">
      <tr>
        <td align="center" style="border: 2px solid {color}; padding: 25px; border-radius: 8px;">
          <p style="margin: 0; font-size: 48px; font-weight: bold; color: {color};">{overall:g}%</p>
          <p style="margin: 10px 0 0 0; font-size: 20px; font-weight: bold; color: #1f2937;">{label}</p>
          <p style="margin: 10px 0 0 0; font-size: 14px; color: #6b7280;">{description}</p>
        </td>
      </tr>
    </table>""",
        paragraph(f"<strong>Recommended next steps</strong> (typical timeframe: {timeframe}):"),
        bullet_list(steps, ordered=True),
        email_button("Get AI Strategy Guidance →", CHAT_URL),
        email_button("Book Strategy Call →", STRATEGY_CALL_URL, "#059669"),
        paragraph("Questions about your results? Hit reply - I personally read every response."),
        signature("Best"),
    ])

    return {
        "subject": f"🎯 {name}, Your AI Readiness Report is Ready!",
        "html": email_wrapper(content, f"Your AI readiness score: {overall:g}% ({label})"),
        "readiness_label": label,
    }
