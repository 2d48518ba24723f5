from __future__ import annotations

import logging
from typing import List, Optional, TypedDict

from langgraph.graph import END, StateGraph

from . import ai_client, guard, sources
from .config import SETTINGS
from .models import EvaluationResult, SourceItem

logger = logging.getLogger(__name__)


class GraphState(TypedDict):
    input: str
    claim: str
    score: str
    evidence: str
    breakdown: List[SourceItem]
    timeline: List[str]


def node_guard(state: GraphState) -> GraphState:
    state["claim"] = guard.check_input(state["input"], guard.INJECTION_PATTERNS, SETTINGS)
    state["timeline"].append(f"Guard: accepted {len(state['claim'])} characters.")
    return state


def node_moderation(state: GraphState) -> GraphState:
    guard.moderate(state["claim"], SETTINGS)
    state["timeline"].append(
        "Moderation: passed." if SETTINGS.moderation_enabled else "Moderation: disabled."
    )
    return state


def node_evaluator(state: GraphState) -> GraphState:
    result = ai_client.request_evaluation(state["claim"], SETTINGS)
    state["score"] = result.score
    state["evidence"] = result.evidence
    state["breakdown"] = list(result.breakdown)
    state["timeline"].append(
        f"Evaluator: score {result.score} with {len(result.breakdown)} cited sources."
    )
    return state


def node_link_checker(state: GraphState) -> GraphState:
    checked = sources.verify_links(
        state["breakdown"], SETTINGS.link_check_timeout, SETTINGS.link_check_workers
    )
    state["breakdown"] = checked
    state["timeline"].append(
        f"Link checker: {sources.verified_count(checked)} of {len(checked)} links alive."
    )
    sources.ensure_enough_sources(checked, SETTINGS.min_verified_sources)
    return state


def node_ranker(state: GraphState) -> GraphState:
    state["breakdown"] = sources.rank_sources(state["breakdown"], SETTINGS.max_sources)
    state["timeline"].append(f"Ranker: kept top {len(state['breakdown'])} sources.")
    return state


def build_graph():
    g = StateGraph(GraphState)
    g.add_node("guard", node_guard)
    g.add_node("moderation", node_moderation)
    g.add_node("evaluator", node_evaluator)
    g.add_node("link_checker", node_link_checker)
    g.add_node("ranker", node_ranker)
    g.set_entry_point("guard")
    g.add_edge("guard", "moderation")
    g.add_edge("moderation", "evaluator")
    g.add_edge("evaluator", "link_checker")
    g.add_edge("link_checker", "ranker")
    g.add_edge("ranker", END)
    return g.compile()


GRAPH = build_graph()


def initial_state(text: Optional[str]) -> GraphState:
    return {
        "input": text or "",
        "claim": "",
        "score": "",
        "evidence": "",
        "breakdown": [],
        "timeline": [],
    }


def evaluate(text: Optional[str]) -> EvaluationResult:
    out = GRAPH.invoke(initial_state(text))
    for line in out["timeline"]:
        logger.info(line)
    return EvaluationResult(score=out["score"], evidence=out["evidence"], breakdown=out["breakdown"])
