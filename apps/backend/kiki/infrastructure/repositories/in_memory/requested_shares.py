"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/requested_shares.py
============================================================
Class: InMemoryRequestedShareRepository

Responsibilities:
  - Solicitudes de compartir (RequestedShare) en memoria.
  - Replicar el índice único parcial: una sola solicitud pending por
    (email, account, student).
  - mark_completed atómico (compare-and-set desde pending).
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from threading import Lock
from typing import Dict
from uuid import UUID

from ....crosscutting.exceptions import UniqueViolationError
from ....domain.entities import RequestedShare, RequestedShareStatus


def _pending_key(request: RequestedShare) -> tuple:
    return (request.requested_email, request.account_id, request.student_id)


class InMemoryRequestedShareRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._requests: Dict[UUID, RequestedShare] = {}

    def create_request(self, request: RequestedShare) -> RequestedShare:
        with self._lock:
            if request.is_pending:
                key = _pending_key(request)
                for other in self._requests.values():
                    if other.is_pending and _pending_key(other) == key:
                        raise UniqueViolationError(
                            "Pending share request already exists",
                            constraint="uq_requested_shares_pending",
                        )
            self._requests[request.id] = replace(request)
            return replace(request)

    def find_pending(
        self, *, email: str, account_id: UUID, student_id: UUID
    ) -> RequestedShare | None:
        key = (email, account_id, student_id)
        with self._lock:
            for request in self._requests.values():
                if request.is_pending and _pending_key(request) == key:
                    return replace(request)
        return None

    def list_pending_for_email(self, email: str) -> list[RequestedShare]:
        with self._lock:
            items = [
                replace(r)
                for r in self._requests.values()
                if r.is_pending and r.requested_email == email
            ]
        return sorted(items, key=lambda r: r.created_at)

    def mark_completed(
        self, request_id: UUID, *, completed_by: UUID, completed_at: datetime
    ) -> bool:
        with self._lock:
            request = self._requests.get(request_id)
            if request is None or not request.is_pending:
                return False
            self._requests[request_id] = replace(
                request,
                status=RequestedShareStatus.COMPLETED,
                completed_by=completed_by,
                completed_at=completed_at,
                updated_at=completed_at,
            )
            return True
