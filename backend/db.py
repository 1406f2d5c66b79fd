"""
Centralized MongoDB connection.
Import `calls_collection` from here in routes/services.
"""
from datetime import datetime

from pymongo import MongoClient

from config import MONGODB_URI

# MongoClient connects lazily, so importing this module never blocks on the network.
mongo_client = MongoClient(MONGODB_URI)
db = mongo_client["wildlife_hotline"]
calls_collection = db["calls"]


def serialize_call(call: dict) -> dict:
    """Convert MongoDB document to JSON-serializable format."""
    if call is None:
        return None
    call_dict = dict(call)
    if "_id" in call_dict:
        if "id" not in call_dict:
            call_dict["id"] = str(call_dict["_id"])
        del call_dict["_id"]
    for key in ("createdAt", "updatedAt"):
        if isinstance(call_dict.get(key), datetime):
            call_dict[key] = call_dict[key].isoformat()
    return call_dict


def _mask_number(phone_number: str) -> str:
    """Mask caller ID to last 4 digits."""
    if not phone_number:
        return "Unknown"
    return f"XXX-XXX-{str(phone_number).strip()[-4:]}"


def parse_transcript(convo: str) -> list:
    """
    Parse transcript string into array of message objects.

    Input format: "Hotline: Hello\nCaller: There's a bat\nHotline: ..."
    Output format: [{"sender": "ai", "text": "Hello"}, {"sender": "caller", ...}]
    """
    messages = []
    for line in (convo or "").strip().split("\n"):
        line = line.strip()
        if line.startswith("Hotline:"):
            text = line[len("Hotline:"):].strip()
            if text:
                messages.append({"sender": "ai", "text": text})
        elif line.startswith("Caller:"):
            text = line[len("Caller:"):].strip()
            if text:
                messages.append({"sender": "caller", "text": text})
    return messages


def record_to_call_doc(record: dict, caller_number: str, now: datetime) -> dict:
    """Build the stored call document from HotlineSession.to_record() plus a summary."""
    return {
        "id": record["call_id"],
        "reference": record.get("reference", ""),
        "numberMasked": _mask_number(caller_number or ""),
        "channel": record.get("channel", "voice"),
        "urgency": record.get("urgency") or "ROUTINE",
        "county": record.get("county") or "",
        "animal": record.get("animal") or "",
        "animalType": record.get("animal_type") or "",
        "rabiesVector": bool(record.get("rabies_vector")),
        "contacts": list(record.get("contacts") or []),
        "smsSent": bool(record.get("sms_sent")),
        "summary": record.get("summary", ""),
        "transcript": parse_transcript(record.get("transcript", "")),
        "createdAt": now,
        "updatedAt": now,
    }


def persist_call_at_end(record: dict, caller_number: str = None) -> dict | None:
    """
    Write the call to MongoDB once when the call ends.
    Single insert per call; a failed write is logged and dropped.
    """
    doc = record_to_call_doc(record, caller_number, datetime.utcnow())
    try:
        calls_collection.insert_one(doc)
        return serialize_call(doc)
    except Exception as e:
        print(f"[DB] Failed to persist call {record.get('call_id')}: {e}")
        return None
