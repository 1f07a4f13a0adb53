import pytest

from app.core.enums import LeadStatus
from app.core.errors import InvalidTransitionError, ValidationError
from app.services.lead_status import (
    ALLOWED_TRANSITIONS,
    is_terminal,
    status_color,
    status_label,
    transition,
)


class TestPermissiveTransitions:

    def test_any_token_accepted_by_default(self):
        for current in LeadStatus:
            for requested in LeadStatus:
                res = transition(current, requested)
                assert res.ok
                assert res.value == requested

    def test_terminal_status_can_be_rewritten(self):
        res = transition("converted", "new")
        assert res.ok
        assert res.value == LeadStatus.NEW

    def test_unknown_token_rejected(self):
        res = transition("new", "archived")
        assert not res.ok
        assert isinstance(res.error, ValidationError)
        assert "status" in res.error.details


class TestStrictTransitions:

    def test_forward_move_allowed(self):
        res = transition("new", "contacted", strict=True)
        assert res.ok

    def test_skipping_stage_rejected(self):
        res = transition("new", "negotiation", strict=True)
        assert not res.ok
        assert isinstance(res.error, InvalidTransitionError)
        assert res.error.status_code == 409
        assert res.error.details == {"from": "new", "to": "negotiation"}

    def test_site_visit_is_optional(self):
        assert transition("qualified", "negotiation", strict=True).ok
        assert transition("qualified", "site_visit", strict=True).ok

    def test_terminal_is_final(self):
        for terminal in (LeadStatus.CONVERTED, LeadStatus.LOST):
            assert ALLOWED_TRANSITIONS[terminal] == set()
            assert not transition(terminal, "new", strict=True).ok

    def test_same_status_write_allowed(self):
        assert transition("lost", "lost", strict=True).ok

    def test_lost_unreachable_from_new(self):
        assert not transition("new", "lost", strict=True).ok


class TestStatusDisplay:

    @pytest.mark.parametrize("status,label", [
        ("new", "New"),
        ("site_visit", "Site Visit"),
        (LeadStatus.NEGOTIATION, "Negotiation"),
    ])
    def test_label(self, status, label):
        assert status_label(status) == label

    def test_color(self):
        assert status_color("converted") == "badge-green"
        assert status_color("lost") == "badge-red"

    def test_unknown_color_is_empty(self):
        assert status_color("archived") == ""

    def test_terminal(self):
        assert is_terminal("converted")
        assert is_terminal(LeadStatus.LOST)
        assert not is_terminal("negotiation")
