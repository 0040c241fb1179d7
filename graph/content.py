import os
import json
import copy
from typing import Dict, Any, Optional
from loguru import logger

# Optional JSON file overriding any of the top-level tables below
NURTURE_CONTENT_PATH = os.getenv("NURTURE_CONTENT_JSON", "./infra/nurture_content.json")

DEFAULT_CONTENT: Dict[str, Any] = {
    "version": "default",
    "links": {
        "site": "https://www.lorenzodc.com",
        "chat": "https://www.lorenzodc.com/chat",
        "strategy_call": "https://calendly.com/lorenzo-theglobalenterprise/ai-strategy-call",
        "course": "https://www.lorenzodc.com/contact?service=course",
    },
    "default_challenge": "Don't know where to start",
    "quick_wins": {
        "Don't know where to start": {
            "win": "Your First AI Win in 30 Minutes",
            "steps": [
                "Pick ONE repetitive task you do weekly (emails, scheduling, research)",
                "Try ChatGPT or Claude to help with just that one task",
                "Track how much time you save this week",
            ],
            "time_to_result": "30 minutes to set up, saves 2-3 hours/week",
        },
        "Data is messy or scattered": {
            "win": "The 15-Minute Data Inventory",
            "steps": [
                "List every tool where you store customer/business data",
                "Mark which ones can export to CSV or have APIs",
                "Identify your 'single source of truth' for each data type",
            ],
            "time_to_result": "15 minutes now, clarity for your AI roadmap",
        },
        "Team lacks AI skills": {
            "win": "The Team AI Challenge",
            "steps": [
                "Share one AI tool (ChatGPT) with your team today",
                "Give everyone the same task: 'Use AI to help with one thing this week'",
                "Have a 15-min standup Friday to share what worked",
            ],
            "time_to_result": "5 minutes to set up, team buy-in by Friday",
        },
        "Hard to prove ROI": {
            "win": "The Time-Tracking Trick",
            "steps": [
                "Pick your most time-consuming weekly task",
                "Time yourself doing it the old way (write it down)",
                "Try an AI-assisted approach and compare",
            ],
            "time_to_result": "You'll have real ROI data by end of week",
        },
        "Finding the right tools": {
            "win": "The 3-Tool Test",
            "steps": [
                "Define ONE problem you want solved (be specific)",
                "Try 3 different AI tools for that exact problem",
                "Pick the one that feels most natural after 1 day each",
            ],
            "time_to_result": "3 days to find your perfect tool fit",
        },
        "Getting buy-in from leadership": {
            "win": "The Executive Demo",
            "steps": [
                "Pick a task your leadership cares about (reports, analysis)",
                "Do it with AI assistance, document the time saved",
                "Present a 2-minute before/after demo",
            ],
            "time_to_result": "1 week to build an undeniable proof point",
        },
    },
    "default_industry": "Other",
    "industry_opportunities": {
        "Technology / Software": {
            "opportunities": [
                {"title": "AI-Powered Code Review", "impact": "40% faster PR reviews", "difficulty": "Medium"},
                {"title": "Automated Documentation", "impact": "10+ hours saved/week", "difficulty": "Easy"},
                {"title": "Smart Customer Support", "impact": "60% ticket deflection", "difficulty": "Medium"},
            ],
            "stat": "Tech companies using AI report 34% faster development cycles",
        },
        "Healthcare / Medical": {
            "opportunities": [
                {"title": "Patient Intake Automation", "impact": "15+ hours saved/week", "difficulty": "Easy"},
                {"title": "Clinical Documentation AI", "impact": "50% less admin time", "difficulty": "Medium"},
                {"title": "Appointment Optimization", "impact": "25% fewer no-shows", "difficulty": "Easy"},
            ],
            "stat": "Healthcare orgs using AI see 28% improvement in patient satisfaction",
        },
        "Financial Services / Banking": {
            "opportunities": [
                {"title": "Compliance Monitoring AI", "impact": "80% faster audits", "difficulty": "Medium"},
                {"title": "Automated Reporting", "impact": "20+ hours saved/month", "difficulty": "Easy"},
                {"title": "Risk Assessment Automation", "impact": "3x faster decisions", "difficulty": "Hard"},
            ],
            "stat": "Financial firms using AI report 45% reduction in compliance costs",
        },
        "Professional Services / Consulting": {
            "opportunities": [
                {"title": "Proposal Generation AI", "impact": "3x more proposals/week", "difficulty": "Easy"},
                {"title": "Research Automation", "impact": "60% faster discovery", "difficulty": "Medium"},
                {"title": "Client Communication AI", "impact": "50% faster responses", "difficulty": "Easy"},
            ],
            "stat": "Consulting firms using AI win 40% more proposals",
        },
        "Retail / E-commerce": {
            "opportunities": [
                {"title": "Product Recommendations AI", "impact": "25% higher AOV", "difficulty": "Medium"},
                {"title": "Inventory Forecasting", "impact": "30% less stockouts", "difficulty": "Hard"},
                {"title": "Customer Service Bots", "impact": "70% query automation", "difficulty": "Easy"},
            ],
            "stat": "E-commerce brands using AI see 35% increase in repeat purchases",
        },
        "Education / Training": {
            "opportunities": [
                {"title": "Personalized Learning Paths", "impact": "40% better completion", "difficulty": "Medium"},
                {"title": "AI Grading & Feedback", "impact": "15+ hours saved/week", "difficulty": "Easy"},
                {"title": "Content Creation AI", "impact": "5x faster course builds", "difficulty": "Easy"},
            ],
            "stat": "EdTech using AI reports 50% improvement in student outcomes",
        },
        "Ministry / Non-profit": {
            "opportunities": [
                {"title": "Donor Communication AI", "impact": "3x engagement rate", "difficulty": "Easy"},
                {"title": "Event Planning Automation", "impact": "60% less admin time", "difficulty": "Easy"},
                {"title": "Volunteer Coordination", "impact": "40% better retention", "difficulty": "Medium"},
            ],
            "stat": "Non-profits using AI see 45% increase in donor retention",
        },
        "Manufacturing / Industrial": {
            "opportunities": [
                {"title": "Predictive Maintenance", "impact": "40% less downtime", "difficulty": "Hard"},
                {"title": "Quality Control AI", "impact": "60% fewer defects", "difficulty": "Medium"},
                {"title": "Supply Chain Optimization", "impact": "25% cost reduction", "difficulty": "Hard"},
            ],
            "stat": "Manufacturers using AI report 30% improvement in OEE",
        },
        "Other": {
            "opportunities": [
                {"title": "Process Automation", "impact": "10+ hours saved/week", "difficulty": "Easy"},
                {"title": "Customer Communication", "impact": "50% faster responses", "difficulty": "Easy"},
                {"title": "Data Analysis & Insights", "impact": "3x faster decisions", "difficulty": "Medium"},
            ],
            "stat": "Organizations using AI report 40% productivity improvement",
        },
    },
    "area_names": {
        "current_state": "Current AI State",
        "strategy_vision": "Strategy & Vision",
        "team_capabilities": "Team Capabilities",
        "implementation": "Implementation Readiness",
    },
    "area_advice": {
        "current_state": {
            "title": "Your Current AI State",
            "problem": "You're earlier in your AI journey than most of your competitors.",
            "solutions": [
                "Start with just ONE AI tool for your most time-consuming task",
                "Don't try to transform everything, pick one process to improve",
                "Track your time savings religiously (this builds the case for more investment)",
            ],
            "resource": "AI Adoption Roadmap: From Zero to Integrated",
        },
        "strategy_vision": {
            "title": "Your AI Strategy & Vision",
            "problem": "You don't have a clear roadmap for where AI fits in your business.",
            "solutions": [
                "Define your 'AI North Star': what does success look like in 12 months?",
                "Map your customer journey and identify 3 friction points AI could solve",
                "Set measurable goals: hours saved, revenue impact, customer satisfaction",
            ],
            "resource": "AI Strategy Template: The One-Page Plan",
        },
        "team_capabilities": {
            "title": "Your Team Capabilities",
            "problem": "Your team isn't equipped to adopt AI effectively yet.",
            "solutions": [
                "Make AI literacy part of your culture (weekly 'AI experiment' sharing)",
                "Identify your AI champions, people who are naturally curious",
                "Start with no-code tools that don't require technical expertise",
            ],
            "resource": "Team AI Training: The 2-Week Sprint",
        },
        "implementation": {
            "title": "Your Implementation Readiness",
            "problem": "You have the vision but struggle to execute on AI projects.",
            "solutions": [
                "Document your current processes BEFORE trying to automate them",
                "Start with a 30-day pilot, not a company-wide rollout",
                "Define success metrics upfront so you know if it's working",
            ],
            "resource": "AI Implementation Checklist: 12 Steps to Success",
        },
    },
    "default_case_study": "Professional Services / Consulting",
    "case_studies": {
        "Technology / Software": {
            "company": "A B2B SaaS company",
            "situation": "drowning in support tickets and spending 40+ hours/week on repetitive customer questions",
            "solution": "implemented an AI-powered knowledge base and smart ticket routing system",
            "results": ["62% reduction in support tickets", "15 hours/week saved for the team",
                        "28% improvement in customer satisfaction"],
            "quote": "We went from reactive firefighting to proactive customer success.",
            "role": "Head of Customer Success",
        },
        "Healthcare / Medical": {
            "company": "A multi-location medical practice",
            "situation": "losing 3+ hours daily to patient intake paperwork and appointment scheduling chaos",
            "solution": "deployed AI-powered patient intake forms and smart scheduling optimization",
            "results": ["18 hours/week saved on admin tasks", "35% reduction in no-shows",
                        "4.8/5 patient satisfaction score"],
            "quote": "Our staff finally has time to focus on patient care instead of paperwork.",
            "role": "Practice Manager",
        },
        "Professional Services / Consulting": {
            "company": "A boutique consulting firm",
            "situation": "struggling to scale because proposals took 2-3 days each and partners were maxed out",
            "solution": "built an AI-assisted proposal generation system with their past winning proposals",
            "results": ["3x more proposals submitted per month", "40% higher win rate",
                        "10 hours saved per proposal"],
            "quote": "AI didn't replace our expertise, it amplified it.",
            "role": "Managing Partner",
        },
        "Retail / E-commerce": {
            "company": "A DTC brand",
            "situation": "couldn't scale customer service fast enough during peak seasons without hiring expensive seasonal staff",
            "solution": "implemented an AI chatbot for Tier 1 support with smart escalation to humans",
            "results": ["70% of queries handled by AI", "$180K saved on seasonal hiring", "24/7 customer support"],
            "quote": "Our holiday season went from stressful to smooth.",
            "role": "Director of Operations",
        },
        "Ministry / Non-profit": {
            "company": "A growing ministry",
            "situation": "couldn't keep up with donor communications and was losing touch with supporters",
            "solution": "used AI to personalize donor outreach and automate follow-up sequences",
            "results": ["3x increase in donor engagement", "45% improvement in retention",
                        "25% increase in recurring giving"],
            "quote": "We're now building real relationships at scale.",
            "role": "Development Director",
        },
    },
    "high_ticket": {
        "team_sizes": ["51-200 employees", "200+ employees"],
        "roles": ["Founder / CEO / Owner", "C-Suite Executive (CTO, COO, etc.)"],
    },
    "offers": {
        "consulting": {
            "type": "consulting",
            "title": "AI Strategy Intensive",
            "subtitle": "A focused engagement to accelerate your AI implementation",
            "description": "In 2-3 sessions, we'll create your complete AI roadmap: tools, timeline, team training, and ROI projections.",
            "benefits": [
                "Personalized AI strategy for your specific situation",
                "Tool recommendations based on your tech stack",
                "Implementation roadmap with clear milestones",
                "ROI projections to get leadership buy-in",
                "Ongoing support during implementation",
            ],
            "cta": "Book a Strategy Call",
            "cta_url": "https://calendly.com/lorenzo-theglobalenterprise/ai-strategy-call",
            "price": "Investment starts at $5,000",
            "closing": "If you're ready to move fast and want personalized guidance, this is the path.",
        },
        "course": {
            "type": "course",
            "title": "AI Foundations Course",
            "subtitle": "Learn to implement AI in your business at your own pace",
            "description": "A self-paced program that takes you from \"AI curious\" to \"AI confident\" in 4 weeks.",
            "benefits": [
                "12 video modules covering AI fundamentals to implementation",
                "Templates, checklists, and tools you can use immediately",
                "Private community for questions and support",
                "Monthly live Q&A calls with me",
                "Lifetime access and all future updates",
            ],
            "cta": "Learn More About the Course",
            "cta_url": "https://www.lorenzodc.com/contact?service=course",
            "price": "One-time investment of $497",
            "closing": "If you want to learn at your own pace and implement gradually, this is perfect for you.",
        },
    },
}

_content_cache: Optional[Dict[str, Any]] = None


def load_nurture_content(path: Optional[str] = None, refresh: bool = False) -> Dict[str, Any]:
    """
    Load nurture content tables, overlaying a JSON file on the built-in defaults.

    Only top-level tables present in the file are replaced, so a partial file
    still leaves every lookup with a fallback entry.
    """
    global _content_cache
    if _content_cache is not None and not refresh and path is None:
        return _content_cache

    content = copy.deepcopy(DEFAULT_CONTENT)
    config_path = path or NURTURE_CONTENT_PATH

    try:
        with open(config_path, "r") as f:
            overrides = json.load(f)
        if isinstance(overrides, dict):
            content.update(overrides)
            logger.info(f"Loaded nurture content {content.get('version')} from {config_path}")
        else:
            logger.error(f"Nurture content {config_path} is not a JSON object, using defaults")
    except FileNotFoundError:
        logger.debug(f"Nurture content not found at {config_path}, using defaults")
    except ValueError:
        logger.error(f"Invalid JSON in nurture content {config_path}, using defaults")

    if path is None:
        _content_cache = content
    return content
