"""Proxy attendance detection.

`evaluate_candidate` is the pure decision; `ProxyDetector` feeds it prior
records from the store. Lookup failures never block a submission.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from rollcall.utils.errors import StoreError

logger = logging.getLogger(__name__)

UNKNOWN_ADDRESS = 'unknown'
RATE_LIMIT_WINDOW = timedelta(seconds=30)


@dataclass(frozen=True)
class Candidate:
    network_address: Optional[str] = None
    fingerprint: Optional[str] = None
    
    @property
    def has_address(self) -> bool:
        return bool(self.network_address) and self.network_address != UNKNOWN_ADDRESS


@dataclass(frozen=True)
class ProxyVerdict:
    suspicious: bool
    reason: Optional[str] = None


CLEAN = ProxyVerdict(False)


def evaluate_candidate(
    candidate: Candidate,
    same_address: Sequence,
    same_fingerprint: Sequence,
    now: datetime,
    strict_address_match: bool = True
) -> ProxyVerdict:
    """
    Classify a submission against prior clean records of the same session.

    Rules run in order and stop at the first match: shared network address,
    shared device fingerprint, then a submission from a shared address less
    than 30 seconds after the previous one. With strict address matching on,
    the first rule always wins over the third.
    """
    if strict_address_match and same_address:
        return ProxyVerdict(True, f"same network address as {same_address[0].student_name}")
    
    if same_fingerprint:
        return ProxyVerdict(True, f"same device fingerprint as {same_fingerprint[0].student_name}")
    
    if same_address:
        last_marked = max(r.marked_at for r in same_address)
        if now - last_marked < RATE_LIMIT_WINDOW:
            return ProxyVerdict(True, "submission rate-limited")
    
    return CLEAN


def shared_device_groups(records: Iterable) -> Dict[str, List[Dict]]:
    """Addresses and fingerprints used by more than one student."""
    by_address = defaultdict(list)
    by_fingerprint = defaultdict(list)
    
    for record in records:
        if record.ip_address and record.ip_address != UNKNOWN_ADDRESS:
            by_address[record.ip_address].append(record)
        if record.browser_fingerprint:
            by_fingerprint[record.browser_fingerprint].append(record)
    
    def _groups(grouped):
        return [
            {'value': key, 'students': [f"{r.student_name} ({r.student_id})" for r in rows]}
            for key, rows in grouped.items() if len(rows) > 1
        ]
    
    return {
        'shared_addresses': _groups(by_address),
        'shared_fingerprints': _groups(by_fingerprint)
    }


class ProxyDetector:
    """Look up prior records and run the proxy rules."""
    
    def __init__(self, store, strict_address_match: bool = True):
        self.store = store
        self.strict_address_match = strict_address_match
    
    def evaluate(self, session_id: int, candidate: Candidate, now: datetime) -> ProxyVerdict:
        same_address = []
        same_fingerprint = []
        
        if candidate.has_address:
            try:
                same_address = self.store.find_records_by_address(session_id, candidate.network_address)
            except StoreError as e:
                logger.warning(f"Network address check unavailable for session {session_id}: {e.message}")
        
        if candidate.fingerprint:
            try:
                same_fingerprint = self.store.find_records_by_fingerprint(session_id, candidate.fingerprint)
            except StoreError as e:
                logger.warning(f"Fingerprint check unavailable for session {session_id}: {e.message}")
        
        verdict = evaluate_candidate(
            candidate, same_address, same_fingerprint, now,
            strict_address_match=self.strict_address_match
        )
        if verdict.suspicious:
            logger.info(f"Suspicious submission for session {session_id}: {verdict.reason}")
        return verdict
