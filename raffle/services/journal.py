from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..db import session_scope
from ..models import Entry, RandomnessRequestRecord, Winner, from_timestamp, utcnow
from ..types import RaffleEntered, RequestCancelled, RequestedRaffleWinner, WinnerPicked


class RaffleJournal:
    """Writes controller events to the database for history queries."""

    def __call__(self, event: Any) -> None:
        if isinstance(event, RaffleEntered):
            self.record_entry(event)
        elif isinstance(event, RequestedRaffleWinner):
            self.record_request(event)
        elif isinstance(event, WinnerPicked):
            self.record_winner(event)
        elif isinstance(event, RequestCancelled):
            self.close_request(event.request_id, "cancelled")

    def record_entry(self, event: RaffleEntered) -> None:
        with session_scope() as session:
            session.add(
                Entry(
                    round_number=event.round_number,
                    player=event.player,
                    value=str(event.value),
                )
            )

    def record_request(self, event: RequestedRaffleWinner) -> None:
        with session_scope() as session:
            record = session.get(RandomnessRequestRecord, event.request_id)
            if record is None:
                record = RandomnessRequestRecord(
                    request_id=event.request_id, round_number=event.round_number
                )
                session.add(record)
            record.status = "pending"

    def record_winner(self, event: WinnerPicked) -> None:
        with session_scope() as session:
            winner = session.get(Winner, event.round_number)
            if winner is None:
                winner = Winner(round_number=event.round_number)
                session.add(winner)
            winner.winner = event.winner
            winner.prize = str(event.prize)
            winner.picked_at = from_timestamp(event.picked_at)

            pending = (
                session.query(RandomnessRequestRecord)
                .filter(
                    RandomnessRequestRecord.round_number == event.round_number,
                    RandomnessRequestRecord.status == "pending",
                )
                .all()
            )
            for record in pending:
                record.status = "fulfilled"
                record.closed_at = utcnow()

    def close_request(self, request_id: int, status: str) -> None:
        with session_scope() as session:
            record = session.get(RandomnessRequestRecord, request_id)
            if record is None:
                return
            record.status = status
            record.closed_at = utcnow()

    def list_winners(self, limit: Optional[int] = None) -> List[Dict[str, object]]:
        with session_scope() as session:
            query = session.query(Winner).order_by(Winner.round_number.desc())
            if limit:
                query = query.limit(limit)
            return [winner.to_dict() for winner in query.all()]

    def list_requests(self, limit: Optional[int] = None) -> List[Dict[str, object]]:
        with session_scope() as session:
            query = session.query(RandomnessRequestRecord).order_by(
                RandomnessRequestRecord.request_id.desc()
            )
            if limit:
                query = query.limit(limit)
            return [record.to_dict() for record in query.all()]

    def list_entries(self, round_number: int) -> List[Dict[str, object]]:
        with session_scope() as session:
            entries = (
                session.query(Entry)
                .filter(Entry.round_number == round_number)
                .order_by(Entry.id)
                .all()
            )
            return [entry.to_dict() for entry in entries]
