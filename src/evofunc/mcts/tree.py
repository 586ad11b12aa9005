"""Whole-tree operations: program reconstruction, compaction, export."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import networkx as nx

from ..core.arena import Arena, ArenaHandle
from ..core.instructions import Program
from .backprop import best_child_score
from .node import ProgramNode

logger = logging.getLogger(__name__)

NodeHandle = ArenaHandle[ProgramNode]


def program_for(arena: Arena[ProgramNode], root: NodeHandle, handle: NodeHandle) -> Program:
    """Rebuild the program a node stands for by walking up to the root."""
    instructions = []
    current = handle
    while current != root:
        node = arena.get(current)
        instructions.append(node.instruction)
        if node.parent is None:
            logger.warning(f"Node {current.index} has no parent")
            break
        current = node.parent
    # Walked leaf to root
    instructions.reverse()
    return Program.create(instructions)


def copy_live_tree(
    old_arena: Arena[ProgramNode],
    root: NodeHandle,
    best: NodeHandle,
    minimum_visits: int
) -> Tuple[Arena[ProgramNode], NodeHandle, Optional[NodeHandle]]:
    """Depth-first copy of the tree into a fresh arena.

    Children visited fewer than minimum_visits times are dropped together
    with their subtrees. The root is always kept. Child scores are
    recomputed over the children that survive.

    Returns:
        (new arena, new root handle, new handle of best or None if pruned)
    """
    new_arena: Arena[ProgramNode] = Arena.with_capacity(len(old_arena))
    new_root: Optional[NodeHandle] = None
    new_best: Optional[NodeHandle] = None

    # (old handle, new parent handle, slot in new parent's children)
    pending: List[Tuple[NodeHandle, Optional[NodeHandle], int]] = [(root, None, 0)]

    while pending:
        old_handle, new_parent, slot = pending.pop()
        node = old_arena.get(old_handle).copy()
        node.children = [
            c for c in node.children
            if old_arena.get(c).visits >= minimum_visits
        ]
        node.child_score = best_child_score(old_arena, node)
        if new_parent is not None:
            node.parent = new_parent

        new_handle = new_arena.allocate(node)
        if new_parent is None:
            new_root = new_handle
        else:
            new_arena.get(new_parent).children[slot] = new_handle
        if old_handle == best:
            new_best = new_handle

        # Reversed so children are allocated in preorder
        for i in reversed(range(len(node.children))):
            pending.append((node.children[i], new_handle, i))

    return new_arena, new_root, new_best


def tree_statistics(arena: Arena[ProgramNode], root: NodeHandle) -> Dict[str, int]:
    """Counts over every node except the root."""
    done = 0
    dead = 0
    for handle in arena:
        node = arena.get(handle)
        if handle == root:
            continue
        if node.done:
            done += 1
        if node.self_score is None:
            dead += 1
    return {
        "total_nodes": len(arena) - 1,
        "done_nodes": done,
        "dead_nodes": dead,
        "root_visits": arena.get(root).visits,
    }


def _format_score(score: Optional[float]) -> str:
    return "/" if score is None else str(score)


def node_name(handle: NodeHandle, root: NodeHandle) -> str:
    return "root" if handle == root else f"n{handle.index}"


def tree_to_graph(
    arena: Arena[ProgramNode],
    root: NodeHandle,
    consts: Sequence[float],
    variables: Sequence[float] = ()
) -> nx.DiGraph:
    """Directed graph of the tree with one attribute record per node."""
    graph = nx.DiGraph()
    pending = [root]
    while pending:
        handle = pending.pop()
        node = arena.get(handle)
        program = program_for(arena, root, handle)
        name = node_name(handle, root)
        graph.add_node(
            name,
            instruction=repr(node.instruction),
            self_score=node.self_score,
            child_score=node.child_score,
            done=node.done,
            visits=node.visits,
            program=program.render(),
            result=program.evaluate_to_result(consts, variables),
        )
        if node.parent is not None:
            graph.add_edge(node_name(node.parent, root), name)
        pending.extend(node.children)
    return graph


def graph_to_dot(graph: nx.DiGraph) -> str:
    """Render a tree graph from tree_to_graph as Graphviz DOT text."""
    lines = ["digraph{"]
    for name, data in graph.nodes(data=True):
        label = "\\n".join([
            data["instruction"],
            f"self={_format_score(data['self_score'])}",
            f"child={_format_score(data['child_score'])}",
            f"done={str(data['done']).lower()}",
            f"prog=[{data['program']}]",
            f"result={data['result']}",
        ])
        lines.append(f'{name} [label="{label}"]')
    for parent, child in graph.edges():
        lines.append(f"{parent} -> {child}")
    lines.append("}")
    return "\n".join(lines) + "\n"
