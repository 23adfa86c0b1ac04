"""Tests for the mail outbox and message builders."""

from notifications import messages
from notifications.mailer import LogTransport, MailMessage, Outbox


class FlakyTransport:
    def __init__(self):
        self.delivered = []

    def send(self, message):
        if message.to.startswith("fail"):
            raise OSError("relay refused")
        self.delivered.append(message.to)


def _message(to):
    return MailMessage(to=to, subject="s", html="<p>h</p>", text="t")


def test_outbox_delivers_in_order():
    transport = FlakyTransport()
    box = Outbox(transport)
    for to in ("a@example.com", "b@example.com"):
        box.enqueue(_message(to))
    box.join()
    assert transport.delivered == ["a@example.com", "b@example.com"]


def test_failed_delivery_does_not_stop_the_worker():
    transport = FlakyTransport()
    box = Outbox(transport)
    box.enqueue(_message("fail@example.com"))
    box.enqueue(_message("ok@example.com"))
    box.join()
    assert transport.delivered == ["ok@example.com"]


def test_log_transport_never_raises():
    LogTransport().send(_message("someone@example.com"))


def test_otp_message_carries_code_but_not_in_subject():
    message = messages.otp_message("a@example.com", "alice", "482913", "otp-1", "login")
    assert "482913" in message.text
    assert "482913" in message.html
    assert "482913" not in message.subject


def test_user_supplied_text_is_escaped():
    message = messages.suspicious_reset_message(
        "a@example.com", "alice", "http://x/reset", device="<script>", location="Oslo"
    )
    assert "<script>" not in message.html
