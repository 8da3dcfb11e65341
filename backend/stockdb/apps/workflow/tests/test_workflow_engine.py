from __future__ import annotations

from types import SimpleNamespace

import pytest

from stockdb.apps.workflow import TransitionError, allowed_targets, apply_transition


def _po(status: str, *, supplier_active: bool = True, lines=None, warehouse_id=None):
    return SimpleNamespace(
        status=status,
        supplier=SimpleNamespace(active=supplier_active),
        lines=lines or [],
        receipt_warehouse_id=warehouse_id,
    )


def test_apply_transition_allows_send_with_active_supplier(db_session):
    apply_transition(
        db_session,
        actor_user_id=None,
        entity_type="purchase_order",
        entity_id="po-1",
        from_state="draft",
        to_state="sent",
        before_obj=_po("draft"),
        after_obj=_po("sent"),
    )


def test_apply_transition_rejects_inactive_supplier(db_session):
    with pytest.raises(TransitionError) as excinfo:
        apply_transition(
            db_session,
            actor_user_id=None,
            entity_type="purchase_order",
            entity_id="po-2",
            from_state="draft",
            to_state="sent",
            before_obj=_po("draft"),
            after_obj=_po("sent", supplier_active=False),
        )

    assert excinfo.value.code == "missing_requirements"
    assert excinfo.value.detail[0]["field"] == "supplier_id"


def test_apply_transition_requires_warehouse_for_line_receipt(db_session):
    with pytest.raises(TransitionError) as excinfo:
        apply_transition(
            db_session,
            actor_user_id=None,
            entity_type="purchase_order",
            entity_id="po-3",
            from_state="sent",
            to_state="received",
            before_obj=_po("sent"),
            after_obj=_po("received", lines=[object()]),
        )

    assert excinfo.value.code == "missing_requirements"
    assert {item["field"] for item in excinfo.value.detail} == {"warehouse_id"}


@pytest.mark.parametrize(
    "from_state,to_state",
    [("draft", "received"), ("received", "sent"), ("cancelled", "draft"), ("sent", "draft")],
)
def test_apply_transition_rejects_invalid_transition(db_session, from_state, to_state):
    with pytest.raises(TransitionError) as excinfo:
        apply_transition(
            db_session,
            actor_user_id=None,
            entity_type="purchase_order",
            entity_id="po-4",
            from_state=from_state,
            to_state=to_state,
            before_obj=_po(from_state),
            after_obj=_po(to_state),
        )

    assert excinfo.value.code == "invalid_transition"


def test_terminal_states_have_no_targets():
    assert allowed_targets("purchase_order", "received") == []
    assert allowed_targets("purchase_order", "cancelled") == []
    assert allowed_targets("purchase_order", "draft") == ["cancelled", "sent"]
