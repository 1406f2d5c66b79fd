"""
Flask routes through the test client: Twilio webhooks, /api/chat and the
contacts API. Gemini, Gradium, Twilio SMS and MongoDB are all replaced.
"""

import pytest

import app as hotline
from routes import contacts as contacts_routes
from services import contacts as contacts_service
from services import triage


@pytest.fixture
def persisted(monkeypatch):
    saved = []
    monkeypatch.setattr(hotline, "persist_call_at_end", lambda record, caller=None: saved.append(record))
    return saved


@pytest.fixture
def texts(monkeypatch):
    sent = []

    def fake_send(to, from_, contacts, animal=None, rabies_vector=False):
        sent.append({"to": to, "from": from_, "contacts": [c.name for c in contacts], "rabies_vector": rabies_vector})
        return {"success": True, "messageSid": "SM1"}

    monkeypatch.setattr(hotline, "send_follow_up_sms", fake_send)
    monkeypatch.setattr(contacts_routes, "send_follow_up_sms", fake_send)
    return sent


@pytest.fixture
def client(monkeypatch, directory, persisted, texts):
    monkeypatch.setattr(contacts_service, "_directory", directory)
    monkeypatch.setattr(hotline, "_run_in_background", lambda fn, *args: fn(*args))
    monkeypatch.setattr(hotline, "generate_call_summary", lambda convo, county, animal, contact: "Bat in Spokane.")

    def no_tts(text, label=""):
        raise RuntimeError("GRADIUM_API_KEY is not set in .env")

    monkeypatch.setattr(hotline, "generate_audio", no_tts)
    hotline.call_sessions.clear()
    with hotline.app.test_client() as test_client:
        yield test_client
    hotline.call_sessions.clear()


def fake_ai(monkeypatch, county="Spokane", animal="bat", urgency="ROUTINE", opt_in=False):
    monkeypatch.setattr(triage, "assess_urgency", lambda convo: urgency)
    monkeypatch.setattr(triage, "extract_county", lambda convo: county)
    monkeypatch.setattr(triage, "extract_animal", lambda convo: animal)
    monkeypatch.setattr(triage, "detect_sms_opt_in", lambda convo: opt_in)
    monkeypatch.setattr(triage, "generate_hotline_reply", lambda history, context: "Call WSU.")


# ── Health ────────────────────────────────────────────────────────────────────

def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    data = r.get_json()
    assert data["status"] == "ok"
    assert data["contactsLoaded"] == 5


# ── Twilio voice ──────────────────────────────────────────────────────────────

def test_incoming_call_greets_with_say_fallback(client):
    r = client.post("/voice", data={"CallSid": "CA1", "From": "+15095550123", "To": "+15095550000"})
    assert r.status_code == 200
    assert r.content_type.startswith("text/xml")
    body = r.get_data(as_text=True)
    assert "<Gather" in body and "/voice/respond" in body
    assert "<Say>" in body and "Wounded Animal Hotline" in body
    assert "CA1" in hotline.call_sessions


def test_low_confidence_reprompts(client):
    r = client.post("/voice/respond", data={"CallSid": "CA1", "SpeechResult": "mumble", "Confidence": "0.1"})
    body = r.get_data(as_text=True)
    assert "<Redirect" in body
    assert "CA1" not in hotline.call_sessions


def test_spoken_turn(client, monkeypatch):
    fake_ai(monkeypatch)
    client.post("/voice", data={"CallSid": "CA2", "From": "+15095550123", "To": "+15095550000"})
    r = client.post("/voice/respond", data={
        "CallSid": "CA2", "SpeechResult": "a bat in Spokane", "Confidence": "0.9",
        "From": "+15095550123", "To": "+15095550000",
    })
    body = r.get_data(as_text=True)
    assert "Call WSU." in body
    assert "<Hangup" not in body
    session = hotline.call_sessions["CA2"]
    assert [c.name for c in session.offered] == ["WSU Veterinary Teaching Hospital"]


def test_danger_hangs_up_and_persists(client, monkeypatch, persisted):
    fake_ai(monkeypatch, urgency="DANGER")
    r = client.post("/voice/respond", data={
        "CallSid": "CA3", "SpeechResult": "a cougar is attacking my dog", "Confidence": "0.95",
    })
    body = r.get_data(as_text=True)
    assert "nine one one" in body
    assert "<Hangup" in body
    assert "CA3" not in hotline.call_sessions
    assert persisted[0]["call_id"] == "CA3"
    assert persisted[0]["ended"] is True
    assert persisted[0]["summary"] == "Bat in Spokane."


def test_pipeline_error_keeps_call_alive(client, monkeypatch):
    def broken(convo):
        raise RuntimeError("Gemini unavailable")

    monkeypatch.setattr(triage, "assess_urgency", broken)
    r = client.post("/voice/respond", data={"CallSid": "CA4", "SpeechResult": "hello", "Confidence": "0.9"})
    assert r.status_code == 200
    body = r.get_data(as_text=True)
    assert "could you repeat that" in body
    assert "<Redirect" in body


def test_status_callback_persists_once(client, monkeypatch, persisted):
    fake_ai(monkeypatch)
    client.post("/api/chat", json={"call_id": "CA5", "message": "bat in Spokane"})
    r = client.post("/voice/status", data={"CallSid": "CA5", "CallStatus": "completed"})
    assert r.status_code == 204
    client.post("/voice/status", data={"CallSid": "CA5", "CallStatus": "completed"})
    assert [rec["call_id"] for rec in persisted] == ["CA5"]
    assert persisted[0]["contacts"] == ["WSU Veterinary Teaching Hospital"]


# ── /api/chat ─────────────────────────────────────────────────────────────────

def test_chat_requires_fields(client):
    r = client.post("/api/chat", json={"message": "hi"})
    assert r.status_code == 400


def test_chat_rejects_unknown_channel(client):
    r = client.post("/api/chat", json={"call_id": "web-1", "message": "hi", "channel": "fax"})
    assert r.status_code == 400


def test_chat_turn(client, monkeypatch):
    fake_ai(monkeypatch)
    r = client.post("/api/chat", json={"call_id": "web-1", "message": "bat in Spokane", "channel": "chat"})
    assert r.status_code == 200
    data = r.get_json()
    assert data["spoken_line"] == "Call WSU."
    assert data["hang_up"] is False
    assert data["status"] == "in_progress"
    assert data["channel"] == "chat"
    assert data["contacts"] == ["WSU Veterinary Teaching Hospital"]

    active = client.get("/api/active-calls").get_json()
    assert [c["call_id"] for c in active] == ["web-1"]


def test_opt_in_sends_one_text(client, monkeypatch, texts):
    fake_ai(monkeypatch, opt_in=True)
    first = client.post("/api/chat", json={"call_id": "web-2", "message": "bat in Spokane, text me",
                                           "from": "+15095550123"}).get_json()
    client.post("/api/chat", json={"call_id": "web-2", "message": "thanks"})
    assert first["sms_sent"] is True
    assert len(texts) == 1
    assert texts[0]["to"] == "+15095550123"
    assert texts[0]["contacts"] == ["WSU Veterinary Teaching Hospital"]
    assert texts[0]["rabies_vector"] is True


# ── Contacts API ──────────────────────────────────────────────────────────────

def test_list_contacts(client):
    data = client.get("/api/contacts").get_json()
    assert len(data) == 5
    assert data[0]["phoneText"] == "509-335-0711"
    assert data[0]["phoneSpeech"] == "5 0 9, 3 3 5, 0 7 1 1"


def test_resolve_contacts(client):
    r = client.post("/api/contacts/resolve", json={
        "county": "Spokane", "animalType": "bats", "at": "2024-07-20T19:00:00Z",
    })
    assert r.status_code == 200
    data = r.get_json()
    assert data["count"] == 1
    assert data["contacts"][0]["name"] == "WSU Veterinary Teaching Hospital"
    assert data["contacts"][0]["openNow"] is True
    assert data["message"].startswith("WSU Veterinary Teaching Hospital (24/7)")


def test_resolve_sms_uses_caller_wording(client):
    body = {"county": "Spokane", "animalType": "small_mammals", "rabiesVector": True,
            "at": "2024-07-17T17:00:00Z"}
    assert client.post("/api/contacts/resolve", json=body).get_json()["message"].startswith(
        "SAFETY: Do NOT touch the animal!"
    )
    body["animal"] = "fox"
    assert client.post("/api/contacts/resolve", json=body).get_json()["message"].startswith(
        "SAFETY: Do NOT touch the fox!"
    )


def test_resolve_voice_channel(client):
    r = client.post("/api/contacts/resolve", json={
        "county": "King", "urgency": "emergency", "channel": "voice", "at": "2024-07-20T19:00:00Z",
    })
    data = r.get_json()
    assert [c["name"] for c in data["contacts"]] == ["WSU Veterinary Teaching Hospital"]
    assert "twenty-four seven" in data["message"]


def test_resolve_nothing_found(client):
    r = client.post("/api/contacts/resolve", json={"county": "King", "service": "livestock_control", "at": "2024-07-20T19:00:00Z"})
    data = r.get_json()
    assert data["count"] == 0
    assert "No local match found" in data["message"]


@pytest.mark.parametrize("body", [
    {"urgency": "whenever"},
    {"county": "Spokane", "at": "yesterday"},
    {"county": "Spokane", "channel": "fax"},
    {"colour": "brown"},
])
def test_resolve_bad_request(client, body):
    assert client.post("/api/contacts/resolve", json=body).status_code == 400


def test_sms_endpoint(client, texts):
    r = client.post("/api/sms", json={
        "to": "+15095550123", "from": "+15095550000", "contacts": ["scraps spokane"],
    })
    assert r.status_code == 200
    assert texts[0]["contacts"] == ["SCRAPS Spokane"]


def test_sms_endpoint_validation(client, texts):
    assert client.post("/api/sms", json={"to": "+15095550123", "contacts": []}).status_code == 400
    r = client.post("/api/sms", json={"to": "+15095550123", "from": "+15095550000", "contacts": ["Nobody"]})
    assert r.status_code == 400
    assert "Nobody" in r.get_json()["error"]
    assert texts == []
