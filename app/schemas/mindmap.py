from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field


# ── Request ──────────────────────────────────────────────────────────────────

class MindMapRequest(BaseModel):
    """Request body for mind map generation."""
    topic: str = Field(..., min_length=1, description="Subject to build a study mind map for")


# ── Response ─────────────────────────────────────────────────────────────────

class MindMapNode(BaseModel):
    """A single concept in the map."""
    model_config = ConfigDict(extra="allow")

    id: str
    label: str


class MindMapEdge(BaseModel):
    """A directed relationship between two node ids."""
    model_config = ConfigDict(extra="allow")

    id: str
    source: str
    target: str


class MindMapData(BaseModel):
    """
    Flat graph returned to the client: nodes plus the edges between them.
    Keys the model adds beyond these are kept so model_dump() matches the wire.
    """
    model_config = ConfigDict(extra="allow")

    nodes: List[MindMapNode]
    edges: List[MindMapEdge]


# ── Integrity report ─────────────────────────────────────────────────────────

def find_integrity_issues(data: Any) -> List[str]:
    """
    List problems in a model-produced mind map without fixing them:
    wrong shapes, duplicate node ids, edges pointing at unknown nodes.
    An empty list means the graph looks consistent.
    """
    if not isinstance(data, dict):
        return ["mind map is not a JSON object"]

    nodes = data.get("nodes")
    edges = data.get("edges")
    issues: List[str] = []
    if not isinstance(nodes, list):
        issues.append("'nodes' is not a list")
        nodes = []
    if not isinstance(edges, list):
        issues.append("'edges' is not a list")
        edges = []

    seen: set[str] = set()
    for node in nodes:
        node_id = node.get("id") if isinstance(node, dict) else None
        if not isinstance(node_id, str):
            issues.append(f"node without string id: {node!r}")
            continue
        if node_id in seen:
            issues.append(f"duplicate node id '{node_id}'")
        seen.add(node_id)

    for edge in edges:
        if not isinstance(edge, dict):
            issues.append(f"edge is not an object: {edge!r}")
            continue
        for end in ("source", "target"):
            ref = edge.get(end)
            if ref not in seen:
                issues.append(f"edge '{edge.get('id')}' {end} '{ref}' references no node")

    return issues
