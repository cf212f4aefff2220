"""
Builds the reply forest of the notes chat from the flat ``notes`` table.

Rows only store ``parent_id``; the tree is rebuilt on every read in two
linear passes. Sibling order is the input order, so callers decide the
display order with the query (the chat reads ``created_at`` ascending).
"""
import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, Iterator, List, Sequence, Tuple

from schemas.note import NoteForest, NoteNode, NoteRead, ThreadEntry

logger = logging.getLogger(__name__)


def organize_notes(notes: Sequence[Any]) -> NoteForest:
    """
    Turns flat note rows (ORM objects, schemas or dicts) into root notes
    with nested ``replies``.

    A note whose parent does not exist is left out of the tree, together
    with its own replies. Such notes, and notes caught in a parent cycle,
    are returned in ``orphans`` instead of being lost silently.
    """
    nodes: Dict[int, NoteNode] = {}
    order: List[NoteNode] = []
    for note in notes:
        node = NoteNode.model_validate(note, from_attributes=True)
        nodes[node.id] = node
        order.append(node)

    roots: List[NoteNode] = []
    for node in order:
        if node.parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(node.parent_id)
        if parent is None:
            logger.warning("Note %s points to missing parent %s", node.id, node.parent_id)
            continue
        parent.replies.append(node)

    reachable = {node.id for _, node in iter_thread(roots)}
    orphans = [
        NoteRead.model_validate(node.model_dump(exclude={"replies"}))
        for node in order
        if node.id not in reachable
    ]
    if orphans:
        logger.warning("%s note(s) are not reachable from any root", len(orphans))

    return NoteForest(roots=roots, orphans=orphans)


def iter_thread(roots: Iterable[NoteNode]) -> Iterator[Tuple[int, NoteNode]]:
    """Pre-order walk yielding (depth, node), with an explicit stack instead of recursion."""
    stack: List[Tuple[int, NoteNode]] = [(0, root) for root in reversed(list(roots))]
    seen = set()
    while stack:
        depth, node = stack.pop()
        if node.id in seen:
            continue
        seen.add(node.id)
        yield depth, node
        for reply in reversed(node.replies):
            stack.append((depth + 1, reply))


def flatten_forest(forest: NoteForest) -> List[ThreadEntry]:
    return [
        ThreadEntry(
            depth=depth,
            note=NoteRead.model_validate(node.model_dump(exclude={"replies"})),
            reply_count=len(node.replies),
        )
        for depth, node in iter_thread(forest.roots)
    ]


def descendant_ids(notes: Iterable[Any], note_id: int) -> List[int]:
    """Ids of ``note_id`` and every note below it, parents before children."""
    children: Dict[int, List[int]] = defaultdict(list)
    for note in notes:
        parent_id = note["parent_id"] if isinstance(note, dict) else note.parent_id
        row_id = note["id"] if isinstance(note, dict) else note.id
        if parent_id is not None:
            children[parent_id].append(row_id)

    collected: List[int] = []
    seen = set()
    stack = [note_id]
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        collected.append(current)
        stack.extend(reversed(children.get(current, [])))
    return collected


def depth_of(notes: Iterable[Any], note_id: int) -> int:
    """Number of ancestors above ``note_id``, walking parent links without recursion."""
    parents: Dict[int, Any] = {}
    for note in notes:
        row_id = note["id"] if isinstance(note, dict) else note.id
        parents[row_id] = note["parent_id"] if isinstance(note, dict) else note.parent_id

    depth = 0
    seen = {note_id}
    current = parents.get(note_id)
    while current is not None and current in parents and current not in seen:
        seen.add(current)
        depth += 1
        current = parents[current]
    return depth
