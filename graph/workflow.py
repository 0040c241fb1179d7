from langgraph.graph import StateGraph, START, END
from loguru import logger

from graph.state import LeadState
from graph.nodes.capture import capture
from graph.nodes.score import score
from graph.nodes.qualify import qualify
from graph.nodes.persist import persist
from graph.nodes.route import route
from graph.nodes.nurture import nurture
from graph.nodes.notify import notify


def after_capture(state: LeadState) -> str:
    if state.get("validation_errors"):
        logger.info(f"Invalid payload, stopping: {state['validation_errors']}")
        return "reject"
    return "score"


def after_route(state: LeadState) -> str:
    if state.get("event") == "assessment":
        return "nurture"
    return "notify"


def build_workflow():
    """Build the prospect processing workflow."""
    workflow = StateGraph(LeadState)

    workflow.add_node("capture", capture)
    workflow.add_node("score", score)
    workflow.add_node("qualify", qualify)
    workflow.add_node("persist", persist)
    workflow.add_node("route", route)
    workflow.add_node("nurture", nurture)
    workflow.add_node("notify", notify)

    workflow.add_edge(START, "capture")
    workflow.add_conditional_edges("capture", after_capture, {"reject": END, "score": "score"})
    workflow.add_edge("score", "qualify")
    workflow.add_edge("qualify", "persist")
    workflow.add_edge("persist", "route")

    # Only assessment completions get a nurture sequence
    workflow.add_conditional_edges("route", after_route, {"nurture": "nurture", "notify": "notify"})
    workflow.add_edge("nurture", "notify")
    workflow.add_edge("notify", END)

    return workflow.compile()
