from typing import Any, Dict, List

from langgraph.graph import StateGraph, END
from roamly.graph.state import RunState
from roamly.graph.agents import (
    locate_agent,
    classify_agent,
    compose_agent,
    draft_agent,
    verify_draft_agent,
    correction_agent,
    verify_correction_agent,
    fail_agent,
    finalize_agent,
)
from roamly.models.trip_request import TripRequest


def _after_draft_check(state: RunState) -> str:
    return "correct" if state.outliers else "finalize"


def _after_correction_check(state: RunState) -> str:
    return "fail" if state.outliers else "finalize"


def build_graph():
    """
    Draft -> verify -> (correct -> re-verify) -> finalize.

    The correction branch runs at most once, so the model gateway is called
    at most twice per run.
    """
    g = StateGraph(RunState)

    g.add_node("locate", locate_agent)
    g.add_node("classify", classify_agent)
    g.add_node("compose", compose_agent)
    g.add_node("draft", draft_agent)
    g.add_node("verify_draft", verify_draft_agent)
    g.add_node("correct", correction_agent)
    g.add_node("verify_correction", verify_correction_agent)
    g.add_node("fail", fail_agent)
    g.add_node("finalize", finalize_agent)

    g.set_entry_point("locate")
    g.add_edge("locate", "classify")
    g.add_edge("classify", "compose")
    g.add_edge("compose", "draft")
    g.add_edge("draft", "verify_draft")
    g.add_conditional_edges("verify_draft", _after_draft_check, {"correct": "correct", "finalize": "finalize"})
    g.add_edge("correct", "verify_correction")
    g.add_conditional_edges("verify_correction", _after_correction_check, {"fail": "fail", "finalize": "finalize"})
    g.add_edge("fail", END)
    g.add_edge("finalize", END)

    return g.compile()


graph = build_graph()


async def plan_itinerary(request: TripRequest, gateway, geocoder) -> Dict[str, Any]:
    """Run the planner graph for one request and return its final state values."""
    return await graph.ainvoke(
        RunState(request=request),
        config={"configurable": {"gateway": gateway, "geocoder": geocoder}},
    )


async def generate_itinerary(request: TripRequest, gateway, geocoder) -> List[Dict[str, Any]]:
    result = await plan_itinerary(request, gateway, geocoder)
    return result["itinerary"]
