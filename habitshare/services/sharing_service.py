"""Shared-item visibility: one view of each shared item per participant.

When an owner shares an item, the recipient gets their own copy once they
accept. Both records live in the store, so a naive list shows duplicates or
the wrong party's record. ``visible_items`` reconciles them for one user:

- as recipient, the sender's original is never shown; the copy is
- as sender, the original is shown; a copy that leaked into the sender's
  items is hidden
- each visible item carries the other party as a participant

Edges that reference items missing from the snapshot are skipped and counted
so one bad edge never blanks the list.

Edges created before copies were recorded carry no ``copied_item_id``. Those
go through ``match_legacy_copy``, which is the only place that guesses.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from habitshare.core.config import Constants
from habitshare.domain.item import Item
from habitshare.domain.share import MatchConfidence, ParticipantRole, ShareEdge, ShareStatus
from habitshare.models.service_models import (
    CopyBackfill,
    LegacyMatch,
    Participant,
    ResolutionResult,
    VisibleItem,
)


_NO_TIMESTAMP = datetime.min.replace(tzinfo=UTC)


def legacy_copy_id(edge: ShareEdge) -> str:
    """Copy id the legacy client wrote when a recipient accepted a share."""
    return f"{Constants.LEGACY_COPY_ID_PREFIX}_{edge.original_item_id}_{edge.recipient_id}"


def match_legacy_copy(
    edge: ShareEdge,
    candidates: Iterable[Item],
    *,
    max_gap: timedelta | None = None,
) -> LegacyMatch | None:
    """Pick the recipient's copy for an edge that has no copy reference.

    Degraded path. A candidate carrying the legacy deterministic copy id is a
    high-confidence match. Otherwise the recipient-owned candidate created
    nearest to the edge is a low-confidence match. Nothing further is tried.

    Args:
        edge: Legacy share edge
        candidates: Items that may be the copy (already-claimed copies excluded)
        max_gap: Largest allowed distance between edge and copy creation times

    Returns:
        LegacyMatch, or None when no candidate qualifies
    """
    owned = [item for item in candidates if item.owner_id == edge.recipient_id]

    expected_id = legacy_copy_id(edge)
    for item in owned:
        if item.id == expected_id:
            return LegacyMatch(item_id=item.id, confidence=MatchConfidence.HIGH)

    if edge.created_at is None:
        return None

    created_at = edge.created_at
    timed = [item for item in owned if item.created_at is not None]
    best = min(timed, key=lambda item: (abs(item.created_at - created_at), item.id), default=None)
    if best is None:
        return None
    if max_gap is not None and abs(best.created_at - created_at) > max_gap:
        return None

    return LegacyMatch(item_id=best.id, confidence=MatchConfidence.LOW)


def _legacy_order(edge: ShareEdge) -> tuple[bool, datetime, str]:
    """Oldest edges claim copies first; edges without timestamps go last."""
    return (edge.created_at is None, edge.created_at or _NO_TIMESTAMP, edge.id)


def _match_legacy_edges(
    edges: Iterable[ShareEdge],
    items: Sequence[Item],
    excluded_ids: set[str],
    max_gap: timedelta | None,
) -> dict[str, LegacyMatch]:
    """Match accepted legacy edges to copies, each copy claimed at most once."""
    claimed = set(excluded_ids)
    matches = {}
    for edge in sorted(edges, key=_legacy_order):
        candidates = [item for item in items if item.id not in claimed]
        match = match_legacy_copy(edge, candidates, max_gap=max_gap)
        if match is not None:
            claimed.add(match.item_id)
            matches[edge.id] = match
    return matches


def _add_participant(participants: list[Participant], participant: Participant) -> None:
    """Append unless the same user already appears in the same role."""
    if any(p.user_id == participant.user_id and p.role == participant.role for p in participants):
        return
    participants.append(participant)


def visible_items(  # noqa: C901
    items_owned_by_user: Sequence[Item],
    share_edges: Sequence[ShareEdge],
    current_user_id: str,
    *,
    legacy_match_window: timedelta | None = None,
) -> ResolutionResult:
    """Compute the items a user should see, with share participants attached.

    Args:
        items_owned_by_user: The user's items, in display order
        share_edges: Share edges from the snapshot (edges not involving the user are ignored)
        current_user_id: User whose list is being built
        legacy_match_window: Cap on the timestamp gap for legacy copy matching

    Returns:
        ResolutionResult with visible items in input order, plus unresolved
        and low-confidence edge IDs
    """
    owned_ids = {item.id for item in items_owned_by_user}
    hidden: set[str] = set()
    unresolved: list[str] = []
    low_confidence: list[str] = []
    participants: dict[str, list[Participant]] = defaultdict(list)

    relevant = []
    for edge in share_edges:
        if current_user_id not in (edge.sender_id, edge.recipient_id):
            continue
        if edge.is_self_share:
            unresolved.append(edge.id)
            continue
        relevant.append(edge)

    # Hide-set first: it depends only on the edges
    for edge in relevant:
        if edge.recipient_id == current_user_id:
            hidden.add(edge.original_item_id)
        elif edge.copied_item_id is not None:
            hidden.add(edge.copied_item_id)

    legacy_edges = []
    for edge in relevant:
        if edge.sender_id == current_user_id:
            if edge.original_item_id not in owned_ids:
                unresolved.append(edge.id)
                continue
            if edge.status != ShareStatus.DECLINED:
                _add_participant(
                    participants[edge.original_item_id],
                    Participant(
                        user_id=edge.recipient_id,
                        role=ParticipantRole.RECIPIENT,
                        status=edge.status,
                        edge_id=edge.id,
                    ),
                )
            continue

        if edge.status == ShareStatus.DECLINED:
            continue

        if edge.copied_item_id is None:
            if edge.status == ShareStatus.ACCEPTED:
                legacy_edges.append(edge)
            continue

        if edge.copied_item_id not in owned_ids:
            # A pending share has no copy yet; an accepted one must
            if edge.status == ShareStatus.ACCEPTED:
                unresolved.append(edge.id)
            continue

        _add_participant(
            participants[edge.copied_item_id],
            Participant(
                user_id=edge.sender_id,
                role=ParticipantRole.SENDER,
                status=edge.status,
                edge_id=edge.id,
            ),
        )

    if legacy_edges:
        explicit_copies = {edge.copied_item_id for edge in share_edges if edge.copied_item_id is not None}
        originals = {edge.original_item_id for edge in share_edges}
        matches = _match_legacy_edges(
            legacy_edges,
            [item for item in items_owned_by_user if item.id not in hidden],
            explicit_copies | originals,
            legacy_match_window,
        )
        for edge in legacy_edges:
            match = matches.get(edge.id)
            if match is None:
                unresolved.append(edge.id)
                continue
            if match.confidence == MatchConfidence.LOW:
                low_confidence.append(edge.id)
            _add_participant(
                participants[match.item_id],
                Participant(
                    user_id=edge.sender_id,
                    role=ParticipantRole.SENDER,
                    status=edge.status,
                    edge_id=edge.id,
                    confidence=match.confidence,
                ),
            )

    visible = []
    seen: set[str] = set()
    for item in items_owned_by_user:
        if item.id in hidden or item.id in seen:
            continue
        seen.add(item.id)
        visible.append(VisibleItem(item_id=item.id, participants=list(participants.get(item.id, []))))

    return ResolutionResult(
        items=visible,
        unresolved_references=len(unresolved),
        unresolved_edge_ids=unresolved,
        low_confidence_edge_ids=low_confidence,
    )


def propose_copy_backfill(
    share_edges: Sequence[ShareEdge],
    items: Sequence[Item],
    *,
    max_gap: timedelta | None = None,
) -> list[CopyBackfill]:
    """Propose copied_item_id values for accepted legacy edges across a snapshot.

    Uses the same matcher as ``visible_items``, so a backfill applies exactly
    the matches users already see. Items already referenced as copies or
    originals are never proposed.

    Args:
        share_edges: All share edges in the snapshot
        items: All items in the snapshot, any owner
        max_gap: Largest allowed distance between edge and copy creation times

    Returns:
        One proposal per edge that could be matched, oldest edge first
    """
    legacy_edges = [
        edge
        for edge in share_edges
        if edge.is_legacy and edge.status == ShareStatus.ACCEPTED and not edge.is_self_share
    ]
    if not legacy_edges:
        return []

    explicit_copies = {edge.copied_item_id for edge in share_edges if edge.copied_item_id is not None}
    originals = {edge.original_item_id for edge in share_edges}
    matches = _match_legacy_edges(legacy_edges, items, explicit_copies | originals, max_gap)

    return [
        CopyBackfill(edge_id=edge.id, copied_item_id=matches[edge.id].item_id, confidence=matches[edge.id].confidence)
        for edge in sorted(legacy_edges, key=_legacy_order)
        if edge.id in matches
    ]
