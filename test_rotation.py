# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Tests for the rotation cycle engine — pure functions, no HTTP.
Run:  pytest test_rotation.py -v
"""

import random

import pytest

from kutu.core.exceptions import (
    InvalidStateError,
    InvariantViolation,
    PrerequisiteNotMetError,
    ValidationError,
)
from kutu.models.domain import (
    Group,
    GroupStatus,
    Member,
    PaymentStatus,
    RoundPhase,
)
from kutu.services import rotation


# ============================================
# Helpers
# ============================================
def _members(*ids):
    return [Member(id=i, name=f"Member {i}") for i in ids]


def _group(order=("m2", "m1", "m3")):
    return rotation.create_group(
        "G", 100, _members("m1", "m2", "m3"), list(order), group_id="g-test"
    )


def _pay_all(group):
    for mid in group.member_ids:
        group = rotation.record_payment(group, mid)
    return group


def _finish_round(group):
    return rotation.advance_round(rotation.complete_payout(_pay_all(group)))


def _statuses(rnd):
    return {p.member_id: p.status for p in rnd.payments}


# ============================================
# createGroup
# ============================================
class TestCreateGroup:
    def test_scenario_a_fresh_group(self):
        group = _group()
        assert group.status is GroupStatus.PENDING
        assert group.current_round == 1
        assert len(group.rounds) == 1
        rnd = group.rounds[0]
        assert rnd.round_number == 1
        assert rnd.payout_member_id is None
        assert rnd.payout_completed is False
        assert len(rnd.payments) == 3
        assert all(p.status is PaymentStatus.UNPAID for p in rnd.payments)

    def test_default_order_is_insertion_order(self):
        group = rotation.create_group("G", 50, _members("a", "b", "c"))
        assert group.payout_order == ("a", "b", "c")

    def test_shuffled_order_is_a_permutation(self):
        group = rotation.create_group(
            "G", 50, _members("a", "b", "c", "d"), shuffle=True, rng=random.Random(7)
        )
        assert sorted(group.payout_order) == ["a", "b", "c", "d"]

    def test_generates_group_id(self):
        group = rotation.create_group("G", 50, _members("a", "b"))
        assert group.id

    def test_trims_names(self):
        group = rotation.create_group(
            "  Family  ", 50, [Member(id="a", name=" Ali "), Member(id="b", name="Bo")]
        )
        assert group.name == "Family"
        assert group.members[0].name == "Ali"

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            rotation.create_group("   ", 50, _members("a", "b"))

    @pytest.mark.parametrize("amount", [0, -10, float("nan"), float("inf")])
    def test_bad_amount_rejected(self, amount):
        with pytest.raises(ValidationError):
            rotation.create_group("G", amount, _members("a", "b"))

    def test_single_member_rejected(self):
        with pytest.raises(ValidationError):
            rotation.create_group("G", 50, _members("a"))

    def test_duplicate_member_ids_rejected(self):
        with pytest.raises(ValidationError):
            rotation.create_group("G", 50, _members("a", "a"))

    def test_blank_member_name_rejected(self):
        with pytest.raises(ValidationError):
            rotation.create_group("G", 50, [Member(id="a", name="  "), Member(id="b", name="B")])

    @pytest.mark.parametrize("order", [["a"], ["a", "a"], ["a", "x"], ["a", "b", "b"]])
    def test_order_must_be_permutation(self, order):
        with pytest.raises(ValidationError):
            rotation.create_group("G", 50, _members("a", "b"), order)


# ============================================
# recordPayment
# ============================================
class TestRecordPayment:
    def test_scenario_b_partial_payments(self):
        group = _group()
        group = rotation.record_payment(group, "m1")
        group = rotation.record_payment(group, "m2")
        rnd = rotation.current_round(group)
        assert rnd.payout_member_id is None
        assert rotation.round_phase(rnd) is RoundPhase.COLLECTING
        with pytest.raises(PrerequisiteNotMetError):
            rotation.complete_payout(group)

    def test_scenario_c_last_payment_assigns_recipient(self):
        group = _pay_all(_group())
        rnd = rotation.current_round(group)
        assert rnd.payout_member_id == "m2"
        assert rotation.round_phase(rnd) is RoundPhase.AWAITING_PAYOUT

        group = rotation.complete_payout(group)
        assert group.rounds[0].payout_completed is True
        assert group.status is GroupStatus.ACTIVE

    def test_repeat_payment_is_noop(self):
        group = rotation.record_payment(_group(), "m1")
        again = rotation.record_payment(group, "m1")
        assert again.to_record() == group.to_record()

    def test_input_group_not_mutated(self):
        group = _group()
        rotation.record_payment(group, "m1")
        assert _statuses(group.rounds[0])["m1"] is PaymentStatus.UNPAID

    def test_unknown_member_rejected(self):
        with pytest.raises(ValidationError):
            rotation.record_payment(_group(), "nobody")

    def test_rejected_after_payout(self):
        group = rotation.complete_payout(_pay_all(_group()))
        with pytest.raises(InvalidStateError):
            rotation.record_payment(group, "m1")

    def test_rejected_when_completed(self):
        group = _group()
        for _ in range(3):
            group = _finish_round(group)
        assert group.status is GroupStatus.COMPLETED
        with pytest.raises(InvalidStateError):
            rotation.record_payment(group, "m1")

    def test_preassigned_recipient_kept(self):
        group = rotation.assign_recipient(_group())
        group = _pay_all(group)
        assert rotation.current_round(group).payout_member_id == "m2"


# ============================================
# assignRecipient / completePayout
# ============================================
class TestPayout:
    def test_assign_recipient_uses_payout_order(self):
        group = rotation.assign_recipient(_group())
        assert rotation.current_round(group).payout_member_id == "m2"

    def test_assign_recipient_idempotent(self):
        group = rotation.assign_recipient(_group())
        assert rotation.assign_recipient(group) is group

    def test_preassigned_payout_completes_before_everyone_paid(self):
        group = rotation.assign_recipient(rotation.record_payment(_group(), "m1"))
        group = rotation.complete_payout(group)
        assert rotation.current_round(group).payout_completed is True
        assert group.status is GroupStatus.ACTIVE

    def test_assign_recipient_rejected_after_payout(self):
        group = rotation.complete_payout(_pay_all(_group()))
        with pytest.raises(InvalidStateError):
            rotation.assign_recipient(group)

    def test_complete_payout_idempotent(self):
        group = rotation.complete_payout(_pay_all(_group()))
        assert rotation.complete_payout(group) is group

    def test_complete_payout_without_recipient_fails(self):
        with pytest.raises(PrerequisiteNotMetError):
            rotation.complete_payout(_group())

    def test_active_stays_active_on_later_payouts(self):
        group = _finish_round(_group())
        group = rotation.complete_payout(_pay_all(group))
        assert group.status is GroupStatus.ACTIVE


# ============================================
# advanceRound
# ============================================
class TestAdvanceRound:
    def test_scenario_d_opens_round_two(self):
        group = rotation.complete_payout(_pay_all(_group()))
        group = rotation.advance_round(group)
        assert group.current_round == 2
        assert len(group.rounds) == 2
        rnd = rotation.current_round(group)
        assert rnd.round_number == 2
        assert rnd.payout_member_id is None
        assert all(p.status is PaymentStatus.UNPAID for p in rnd.payments)
        assert len(rnd.payments) == 3

    def test_scenario_e_last_round_completes_group(self):
        group = _finish_round(_finish_round(_group()))
        assert group.current_round == 3
        group = rotation.complete_payout(_pay_all(group))
        assert rotation.current_round(group).payout_member_id == "m3"
        group = rotation.advance_round(group)
        assert group.status is GroupStatus.COMPLETED
        assert len(group.rounds) == 3
        assert group.current_round == 3

    def test_recipients_follow_payout_order(self):
        group = _group(order=("m3", "m1", "m2"))
        for _ in range(3):
            group = _finish_round(group)
        assert [r.payout_member_id for r in group.rounds] == ["m3", "m1", "m2"]

    def test_advance_before_payout_fails(self):
        with pytest.raises(PrerequisiteNotMetError):
            rotation.advance_round(_pay_all(_group()))

    def test_advance_completed_group_is_noop(self):
        group = _group()
        for _ in range(3):
            group = _finish_round(group)
        assert rotation.advance_round(group) is group


# ============================================
# setPayoutOrder
# ============================================
class TestSetPayoutOrder:
    def test_reorders_pending_group(self):
        group = rotation.set_payout_order(_group(), ["m3", "m2", "m1"])
        assert group.payout_order == ("m3", "m2", "m1")

    def test_rejects_non_permutation(self):
        with pytest.raises(ValidationError):
            rotation.set_payout_order(_group(), ["m1", "m2"])

    def test_strict_mode_rejects_active_group(self):
        group = _finish_round(_group())
        with pytest.raises(InvalidStateError):
            rotation.set_payout_order(group, ["m2", "m3", "m1"], strict=True)

    def test_completed_slots_are_locked(self):
        group = _finish_round(_group())
        with pytest.raises(InvalidStateError):
            rotation.set_payout_order(group, ["m1", "m2", "m3"])

    def test_open_slots_can_be_swapped(self):
        group = _finish_round(_group())
        group = rotation.set_payout_order(group, ["m2", "m3", "m1"])
        assert group.payout_order == ("m2", "m3", "m1")
        assert group.rounds[0].payout_member_id == "m2"

    def test_assigned_slot_is_locked(self):
        group = rotation.assign_recipient(_group())
        with pytest.raises(InvalidStateError):
            rotation.set_payout_order(group, ["m1", "m2", "m3"])

    def test_same_order_returns_same_group(self):
        group = _group()
        assert rotation.set_payout_order(group, ["m2", "m1", "m3"]) is group


# ============================================
# Roster edits & reset
# ============================================
class TestRosterAndReset:
    def test_scenario_f_remove_member_resets_active_group(self):
        group = _finish_round(_group())
        assert group.status is GroupStatus.ACTIVE
        group = rotation.remove_member(group, "m1")
        assert group.status is GroupStatus.PENDING
        assert group.current_round == 1
        assert len(group.rounds) == 1
        rnd = group.rounds[0]
        assert {p.member_id for p in rnd.payments} == {"m2", "m3"}
        assert all(p.status is PaymentStatus.UNPAID for p in rnd.payments)
        assert rnd.payout_member_id is None
        assert group.payout_order == ("m2", "m3")

    def test_remove_below_minimum_rejected(self):
        group = rotation.create_group("G", 10, _members("a", "b"))
        with pytest.raises(ValidationError):
            rotation.remove_member(group, "a")

    def test_remove_unknown_member_rejected(self):
        with pytest.raises(ValidationError):
            rotation.remove_member(_group(), "zz")

    def test_add_member_appends_to_order_and_resets(self):
        group = _finish_round(_group())
        group = rotation.add_member(group, Member(id="m4", name="Four", phone="601"))
        assert group.payout_order == ("m2", "m1", "m3", "m4")
        assert group.status is GroupStatus.PENDING
        assert len(group.rounds) == 1
        assert len(group.rounds[0].payments) == 4

    def test_add_duplicate_member_rejected(self):
        with pytest.raises(ValidationError):
            rotation.add_member(_group(), Member(id="m1", name="Again"))

    def test_add_blank_named_member_rejected(self):
        with pytest.raises(ValidationError):
            rotation.add_member(_group(), Member(id="m9", name="   "))

    def test_reset_keeps_roster_and_order(self):
        group = _group()
        for _ in range(3):
            group = _finish_round(group)
        reset = rotation.reset_group(group)
        assert reset.status is GroupStatus.PENDING
        assert reset.current_round == 1
        assert len(reset.rounds) == 1
        assert reset.members == group.members
        assert reset.payout_order == group.payout_order

    def test_reset_is_unconditional(self):
        group = rotation.record_payment(_group(), "m1")
        reset = rotation.reset_group(group)
        assert all(p.status is PaymentStatus.UNPAID for p in reset.rounds[0].payments)


# ============================================
# Invariants
# ============================================
class TestInvariants:
    def test_full_cycle_keeps_invariants(self):
        group = _group()
        history = [group]
        for _ in range(3):
            group = _pay_all(group)
            history.append(group)
            group = rotation.complete_payout(group)
            history.append(group)
            group = rotation.advance_round(group)
            history.append(group)
        for g in history:
            rotation.check_invariants(g)
            assert sorted(g.payout_order) == sorted(g.member_ids)
            for r in g.rounds:
                if r.payout_completed:
                    assert r.payout_member_id == g.payout_order[r.round_number - 1]

    def test_status_is_monotonic_over_cycle(self):
        rank = {GroupStatus.PENDING: 0, GroupStatus.ACTIVE: 1, GroupStatus.COMPLETED: 2}
        group = _group()
        seen = [group.status]
        for _ in range(3):
            group = rotation.record_payment(group, "m1")
            seen.append(group.status)
            group = _finish_round(group)
            seen.append(group.status)
        assert [rank[s] for s in seen] == sorted(rank[s] for s in seen)

    def test_detects_foreign_payout_id(self):
        group = _group().model_copy(update={"payout_order": ("m1", "m2", "zz")})
        with pytest.raises(InvariantViolation):
            rotation.check_invariants(group)

    def test_detects_round_gap(self):
        group = _group().model_copy(update={"current_round": 2})
        with pytest.raises(InvariantViolation):
            rotation.check_invariants(group)

    def test_detects_wrong_recipient(self):
        group = _group()
        bad_round = group.rounds[0].model_copy(
            update={"payout_member_id": "m1", "payout_completed": True}
        )
        bad = group.model_copy(update={"rounds": (bad_round,), "status": GroupStatus.ACTIVE})
        with pytest.raises(InvariantViolation):
            rotation.check_invariants(bad)

    def test_detects_active_without_payout(self):
        group = _group().model_copy(update={"status": GroupStatus.ACTIVE})
        with pytest.raises(InvariantViolation):
            rotation.check_invariants(group)

    def test_persisted_shape_uses_contract_names(self):
        record = rotation.record_payment(_group(), "m1").to_record()
        assert set(record) == {
            "id", "name", "contributionAmount", "members", "payoutOrder",
            "currentRound", "status", "rounds",
        }
        assert record["status"] == "Pending"
        rnd = record["rounds"][0]
        assert set(rnd) == {"roundNumber", "payoutMemberId", "payments", "payoutCompleted"}
        assert {"memberId": "m1", "status": "Paid"} in rnd["payments"]

    def test_record_loads_back(self):
        group = _finish_round(_group())
        loaded = Group.model_validate(group.to_record())
        assert loaded.to_record() == group.to_record()
        assert loaded.status is GroupStatus.ACTIVE
