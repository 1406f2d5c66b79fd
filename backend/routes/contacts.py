"""
Contact directory API routes: list the directory, resolve criteria to a ranked
shortlist, and send an SMS follow-up.
"""
from datetime import datetime

from flask import Blueprint, jsonify, request

from config import TWILIO_PHONE_NUMBER
from services.contacts import contact_from_dict, find_contact, get_directory
from services.hours import is_open
from services.messages import compose_chat, compose_sms, compose_voice
from services.phone import for_speech, for_text
from services.resolver import Criteria, resolve
from services.sms import send_follow_up_sms

contacts_bp = Blueprint("contacts", __name__, url_prefix="/api")


def _parse_instant(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError, AttributeError):
        raise ValueError(f"'at' must be an ISO-8601 timestamp, got {value!r}")


def _contact_view(contact, at=None) -> dict:
    view = contact.to_dict()
    view["phoneText"] = for_text(contact.phone)
    view["phoneSpeech"] = for_speech(contact.phone)
    if at is not None:
        view["openNow"] = is_open(contact, at)
    return view


@contacts_bp.route("/contacts", methods=["GET"])
def list_contacts():
    """The loaded directory, in file order."""
    return jsonify([_contact_view(c) for c in get_directory()])


@contacts_bp.route("/contacts/resolve", methods=["POST"])
def resolve_contacts():
    """
    Ranked contacts for a situation.

    Request body (JSON): any Criteria field (county, animalType, service,
    requireOpen, rabiesVector, urgency, maxResults), plus optional
        - at: ISO timestamp to evaluate hours against (default: now)
        - channel: "sms" | "voice" | "chat" for the composed message (default "sms")
        - animal: the caller's own word for the animal, used in the SMS safety line
    """
    data = request.get_json(silent=True) or {}
    channel = data.pop("channel", "sms")
    animal = data.pop("animal", None)
    try:
        at = _parse_instant(data.pop("at", None))
        criteria = Criteria.from_dict(data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    if channel not in ("sms", "voice", "chat"):
        return jsonify({"error": f"unknown channel {channel!r}"}), 400

    contacts = resolve(get_directory(), criteria, at=at)
    if channel == "voice":
        message = compose_voice(contacts, at=at)
    elif channel == "chat":
        message = compose_chat(contacts)
    else:
        message = compose_sms(contacts, rabies_vector=criteria.rabies_vector, animal=animal)

    return jsonify({
        "count": len(contacts),
        "contacts": [_contact_view(c, at) for c in contacts],
        "message": message,
    })


@contacts_bp.route("/sms", methods=["POST"])
def send_sms():
    """
    Send the follow-up text.

    Request body (JSON):
        - to (required): caller's number
        - from (optional): hotline number, defaults to TWILIO_PHONE_NUMBER
        - contacts (required): directory names or full contact records, ranked
        - animal or animalType, rabiesVector (optional): shape the safety lines
    """
    data = request.get_json(silent=True) or {}
    to = data.get("to")
    sender = data.get("from") or TWILIO_PHONE_NUMBER
    entries = data.get("contacts") or []
    if not to or not sender or not entries:
        return jsonify({"success": False, "error": "Missing required fields: to, from, contacts"}), 400

    contacts = []
    directory = get_directory()
    try:
        for entry in entries:
            if isinstance(entry, dict):
                contacts.append(contact_from_dict(entry))
                continue
            contact = find_contact(directory, str(entry))
            if contact is None:
                raise ValueError(f"unknown contact {entry!r}")
            contacts.append(contact)
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    result = send_follow_up_sms(
        to,
        sender,
        contacts,
        animal=data.get("animal") or data.get("animalType"),
        rabies_vector=bool(data.get("rabiesVector")),
    )
    return jsonify(result), 200 if result["success"] else 500
