"""Unit tests for settlement proof generation (canonical JSON + sha256)."""
import base64
import hashlib
import json
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from src.pm_common.enums import Outcome
from src.pm_common.errors import MarketIdMismatchError
from src.pm_common.usdc import usdc
from src.pm_settlement.domain.models import MarketResolution, UserPosition
from src.pm_settlement.domain.settlement import (
    calculate_market_settlement,
    calculate_user_settlement,
    generate_market_settlement_proof,
    generate_settlement_proof,
)

RESOLUTION = MarketResolution(
    market_id="mkt-1",
    winning_outcome=Outcome.YES,
    resolved_at=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
    oracle_source="uma",
)
ALICE = UserPosition("alice", "mkt-1", yes_shares=190_909_091, total_cost_basis=usdc(100))
BOB = UserPosition("bob", "mkt-1", no_shares=usdc(150), total_cost_basis=usdc(80))


def _decode(encoded: str) -> dict:
    return json.loads(base64.b64decode(encoded))


class TestUserProof:
    def test_deterministic(self) -> None:
        s = calculate_user_settlement(ALICE, Outcome.YES)
        first = generate_settlement_proof(s, "mkt-1", "session-9", RESOLUTION)
        second = generate_settlement_proof(s, "mkt-1", "session-9", RESOLUTION)
        assert first == second

    def test_hash_matches_encoded_payload(self) -> None:
        s = calculate_user_settlement(ALICE, Outcome.YES)
        proof = generate_settlement_proof(s, "mkt-1", "session-9", RESOLUTION)
        raw = base64.b64decode(proof.encoded_proof)
        assert proof.proof_hash == "0x" + hashlib.sha256(raw).hexdigest()
        assert len(proof.proof_hash) == 66

    def test_payload_fields(self) -> None:
        s = calculate_user_settlement(ALICE, Outcome.YES)
        payload = _decode(generate_settlement_proof(s, "mkt-1", "session-9", RESOLUTION).encoded_proof)
        assert payload["userId"] == "alice"
        assert payload["netPayout"] == "190000001"
        assert payload["protocolFee"] == "909090"
        assert payload["pnl"] == "90000001"
        assert payload["sessionId"] == "session-9"
        assert payload["winningOutcome"] == "YES"
        assert payload["resolvedAt"] == 1772366400000

    def test_pnl_carried(self) -> None:
        s = calculate_user_settlement(BOB, Outcome.YES)
        assert generate_settlement_proof(s, "mkt-1", "s", RESOLUTION).pnl == -usdc(80)

    def test_any_change_changes_hash(self) -> None:
        s = calculate_user_settlement(ALICE, Outcome.YES)
        base = generate_settlement_proof(s, "mkt-1", "session-9", RESOLUTION).proof_hash
        other_session = generate_settlement_proof(s, "mkt-1", "session-10", RESOLUTION).proof_hash
        other_payout = generate_settlement_proof(
            replace(s, net_payout=s.net_payout - 1), "mkt-1", "session-9", RESOLUTION
        ).proof_hash
        assert len({base, other_session, other_payout}) == 3

    def test_market_mismatch_rejected(self) -> None:
        s = calculate_user_settlement(ALICE, Outcome.YES)
        with pytest.raises(MarketIdMismatchError):
            generate_settlement_proof(s, "mkt-2", "session-9", RESOLUTION)


class TestMarketProof:
    def test_independent_of_user_order(self) -> None:
        forward = calculate_market_settlement([ALICE, BOB], RESOLUTION)
        backward = calculate_market_settlement([BOB, ALICE], RESOLUTION)
        assert (
            generate_market_settlement_proof(forward).proof_hash
            == generate_market_settlement_proof(backward).proof_hash
        )

    def test_payload_totals(self) -> None:
        settlement = calculate_market_settlement([ALICE, BOB], RESOLUTION)
        proof = generate_market_settlement_proof(settlement)
        payload = _decode(proof.encoded_proof)
        assert payload["totalPayout"] == "190000001"
        assert payload["oracleSource"] == "uma"
        assert [u["userId"] for u in payload["userPayouts"]] == ["alice", "bob"]
        assert proof.pnl == 90_000_001 - usdc(80)
