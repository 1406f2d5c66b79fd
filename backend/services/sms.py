"""
SMS follow-up: send the caller a text with the top contact after they opt in.
Uses the Twilio REST client. Never raises to the caller; every outcome comes
back as a result dict with "success".
"""

from typing import Optional, Sequence

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from config import TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN
from services.messages import compose_sms, estimate_segments
from services.phone import is_valid_phone_number, to_e164

_client = None


def _get_client():
    """Return a Twilio client, or None when credentials are missing."""
    global _client
    if _client is None:
        if not TWILIO_ACCOUNT_SID or not TWILIO_AUTH_TOKEN:
            return None
        _client = Client(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN)
    return _client


def send_follow_up_sms(
    to: str,
    from_: str,
    contacts: Sequence,
    animal: Optional[str] = None,
    rabies_vector: bool = False,
) -> dict:
    """Compose the follow-up for *contacts* and send it from the hotline number to the caller."""
    client = _get_client()
    if client is None:
        print("[SMS] Missing Twilio credentials; not sending.")
        return {"success": False, "error": "SMS service not configured"}

    if not to:
        return {"success": False, "error": "Recipient phone number is required"}
    if not from_:
        return {"success": False, "error": "Sender phone number is required"}
    if not contacts:
        return {"success": False, "error": "At least one contact is required"}

    recipient = to_e164(to)
    if not is_valid_phone_number(recipient):
        return {"success": False, "error": f"Recipient {to!r} is not a valid US number"}

    body = compose_sms(contacts, rabies_vector=rabies_vector, animal=animal)
    info = estimate_segments(body)
    print(f"[SMS] Sending {info.segments} segment(s), {info.length} chars ({info.encoding}) to {recipient}")

    try:
        message = client.messages.create(to=recipient, from_=from_, body=body)
    except TwilioRestException as e:
        print(f"[SMS] Twilio API error {e.code}: {e.msg}")
        return {"success": False, "error": e.msg or "Failed to send SMS", "code": e.code}

    print(f"[SMS] Sent {message.sid}")
    return {
        "success": True,
        "messageSid": message.sid,
        "status": message.status,
        "segments": info.segments,
        "to": recipient,
        "from": from_,
    }
