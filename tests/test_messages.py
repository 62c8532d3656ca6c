import pytest

from app.officedesk.db import session_scope
from app.officedesk.models import User
from app.officedesk.modules.messages.models import Message
from app.officedesk.modules.messages.service import send_message, unread_count


def test_send_and_read_conversation(client, login, post, make_user, app):
    sam = make_user("sales", "sam@example.com", name="Sam")
    sue = make_user("sales", "sue@example.com", name="Sue")

    login("sam@example.com")
    r = post("/messages/send", data={"receiver_id": str(sue), "message_text": "Hello Sue"})
    assert r.status_code == 302
    assert f"with={sue}" in r.headers["Location"]
    client.get("/auth/logout")

    with session_scope(app) as s:
        assert unread_count(s, sue) == 1

    login("sue@example.com")
    r = client.get("/dashboard")
    assert r.status_code == 200
    r = client.get(f"/messages?with={sam}")
    assert r.status_code == 200
    assert b"Hello Sue" in r.data
    with session_scope(app) as s:
        assert unread_count(s, sue) == 0
        assert s.query(Message).one().read_at is not None


def test_open_conversation_marks_only_that_contact(app, make_user):
    from app.officedesk.modules.messages.service import mark_read

    a = make_user("sales", "a@example.com")
    b = make_user("sales", "b@example.com")
    c = make_user("sales", "c@example.com")
    with session_scope(app) as s:
        send_message(s, s.get(User, b), a, "from b")
        send_message(s, s.get(User, c), a, "from c")
    with session_scope(app) as s:
        assert mark_read(s, a, sender_id=b) == 1
    with session_scope(app) as s:
        assert unread_count(s, a) == 1
        assert mark_read(s, a) == 1
        assert unread_count(s, a) == 0


def test_send_message_validation(app, make_user):
    a = make_user("sales", "a@example.com")
    with session_scope(app) as s:
        sender = s.get(User, a)
        with pytest.raises(ValueError, match="empty"):
            send_message(s, sender, a, "   ")
        with pytest.raises(ValueError, match="yourself"):
            send_message(s, sender, a, "hi")
        with pytest.raises(ValueError, match="Recipient not found"):
            send_message(s, sender, 9999, "hi")
        with pytest.raises(ValueError, match="recipient"):
            send_message(s, sender, None, "hi")


def test_send_empty_message_flashes(client, login, post, make_user):
    sue = make_user("sales", "sue@example.com")
    login()
    r = post("/messages/send", data={"receiver_id": str(sue), "message_text": ""}, follow_redirects=True)
    assert b"Message cannot be empty." in r.data


def test_unknown_contact_redirects(client, login):
    login()
    r = client.get("/messages?with=9999", follow_redirects=True)
    assert b"Contact not found." in r.data
