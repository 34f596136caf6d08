from __future__ import annotations

import datetime as dt

from sqlalchemy import BigInteger, Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def from_timestamp(value: float) -> dt.datetime:
    return dt.datetime.fromtimestamp(value, dt.timezone.utc).replace(tzinfo=None)


class Entry(Base):
    __tablename__ = "entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    round_number = Column(Integer, nullable=False, index=True)
    player = Column(String(42), nullable=False, index=True)
    value = Column(String(78), nullable=False)  # wei, decimal string
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "round_number": self.round_number,
            "player": self.player,
            "value": self.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class RandomnessRequestRecord(Base):
    __tablename__ = "randomness_requests"

    request_id = Column(BigInteger, primary_key=True)
    round_number = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    requested_at = Column(DateTime, default=utcnow, nullable=False)
    closed_at = Column(DateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "round_number": self.round_number,
            "status": self.status,
            "requested_at": self.requested_at.isoformat() if self.requested_at else None,
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
        }


class Winner(Base):
    __tablename__ = "winners"

    round_number = Column(Integer, primary_key=True)
    winner = Column(String(42), nullable=False)
    prize = Column(String(78), nullable=False)
    picked_at = Column(DateTime, nullable=False)

    def to_dict(self) -> dict:
        return {
            "round_number": self.round_number,
            "winner": self.winner,
            "prize": self.prize,
            "picked_at": self.picked_at.isoformat(),
        }
