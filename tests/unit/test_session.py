from ktbeacon.client.session import SessionState


def test_session_starts_unsent() -> None:
    assert SessionState().has_sent_message is False


def test_claim_first_send_returns_true_once() -> None:
    session = SessionState()
    assert session.claim_first_send() is True
    assert session.has_sent_message is True
    assert session.claim_first_send() is False
    assert session.claim_first_send() is False
