from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Iterable

from autoroute.domain.models import ResolvedRoute
from autoroute.graph.model import RouteGraph


@dataclass(frozen=True)
class GraphBuildResult:
    graph: RouteGraph
    generated_at: int


def build_route_graph(routes: Iterable[ResolvedRoute]) -> GraphBuildResult:
    """
    Build a graph from resolved routes.

    Nodes:
      - controller:{qualified class name}
      - route:{server}:{METHOD} {path}  (one per verb)
      - tag:{tag}

    Edges:
      - controller -> route (DECLARES)
      - route -> tag (TAGGED)
    """
    g = RouteGraph()

    for r in routes:
        cid = g.node(f"controller:{r.controller}", "controller", r.controller.rsplit(".", 1)[-1])
        for method in r.methods:
            verb = method.upper()
            rid = g.node(f"route:{r.server}:{verb} {r.path}", "route", f"{verb} {r.path}")
            g.link(cid, rid, "DECLARES")
            for tag in r.tags:
                g.link(rid, g.node(f"tag:{tag}", "tag", tag), "TAGGED")

    return GraphBuildResult(graph=g, generated_at=int(time.time()))


def graph_to_json(result: GraphBuildResult, timestamp: bool = False, **extra: object) -> str:
    """Same routes, same text; ``timestamp=True`` adds ``generated_at``."""
    payload: dict[str, object] = dict(extra)
    if timestamp:
        payload["generated_at"] = result.generated_at
    payload["nodes"] = [{"id": n.id, "type": n.type, "label": n.label} for n in result.graph.ordered_nodes()]
    payload["edges"] = [{"src": e.src, "dst": e.dst, "type": e.type} for e in result.graph.ordered_edges()]
    return json.dumps(payload, indent=2)


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def graph_to_dot(result: GraphBuildResult) -> str:
    lines = ["digraph autoroute {", '  rankdir="LR";', '  node [shape="box"];']
    for node in result.graph.ordered_nodes():
        lines.append(f"  {_quote(node.id)} [label={_quote(node.label)}];")
    for e in result.graph.ordered_edges():
        lines.append(f"  {_quote(e.src)} -> {_quote(e.dst)} [label={_quote(e.type)}];")
    lines.append("}")
    return "\n".join(lines)
