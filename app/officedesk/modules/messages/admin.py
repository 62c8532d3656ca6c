from __future__ import annotations

from flask import Blueprint, flash, redirect, render_template, request, url_for

from app.officedesk.db import db_session
from app.officedesk.models import User
from app.officedesk.modules.messages.service import contacts_for, conversation, mark_read, send_message
from app.officedesk.rbac import require_permission
from app.officedesk.utils import current_user, parse_int

bp = Blueprint("messages", __name__)


@bp.get("/messages")
@require_permission("messages.use")
def inbox():
    s = db_session()
    u = current_user()
    other_id = parse_int(request.args.get("with"))

    contact = None
    thread = []
    if other_id:
        contact = s.get(User, other_id)
        if contact is None or contact.id == u.id:
            flash("Contact not found.", "warning")
            return redirect(url_for("messages.inbox"))
        mark_read(s, u.id, sender_id=contact.id)
        thread = conversation(s, u.id, contact.id)
    else:
        mark_read(s, u.id)
    s.commit()

    return render_template(
        "messages/inbox.html",
        contacts=contacts_for(s, u),
        contact=contact,
        thread=thread,
    )


@bp.post("/messages/send")
@require_permission("messages.use")
def send():
    s = db_session()
    u = current_user()
    receiver_id = parse_int(request.form.get("receiver_id"))
    try:
        send_message(s, u, receiver_id, request.form.get("message_text"))
    except ValueError as e:
        flash(str(e), "danger")
        if receiver_id and receiver_id != u.id:
            return redirect(url_for("messages.inbox", **{"with": receiver_id}))
        return redirect(url_for("messages.inbox"))
    s.commit()
    flash("Message sent successfully.", "success")
    return redirect(url_for("messages.inbox", **{"with": receiver_id}))
