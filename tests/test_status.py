import pytest
from kungfu import Error, Ok

from lascentlo.errors import ErrorKind
from lascentlo.orders import OrderStatus as S, can_transition, is_terminal, transition

ALLOWED = {
    (S.PENDING, S.PROCESSING),
    (S.PENDING, S.CANCELLED),
    (S.PROCESSING, S.SHIPPED),
    (S.PROCESSING, S.CANCELLED),
    (S.SHIPPED, S.DELIVERED),
}


@pytest.mark.parametrize("current", list(S))
@pytest.mark.parametrize("target", list(S))
def test_transition_table(current: S, target: S) -> None:
    assert can_transition(current, target) == ((current, target) in ALLOWED)


def test_illegal_move_names_both_states() -> None:
    match transition(S.PENDING, S.SHIPPED):
        case Error(e):
            assert e.kind == ErrorKind.ILLEGAL_TRANSITION
            assert "pending" in e.message and "shipped" in e.message
        case Ok(_):
            pytest.fail("pending -> shipped must be rejected")


def test_terminal_states() -> None:
    assert is_terminal(S.DELIVERED)
    assert is_terminal(S.CANCELLED)
    assert not is_terminal(S.SHIPPED)
