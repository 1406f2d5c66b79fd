"""
Wounded Animal Hotline backend: Flask app with Twilio voice integration and Gradium TTS.

Voice flow (turn-based):
  1. Caller dials the hotline → Twilio POSTs to /voice
  2. We play the greeting (Gradium TTS, cached) inside a speech <Gather>
  3. Caller speaks → Twilio transcribes → POSTs to /voice/respond
  4. We run triage (Gemini extraction + deterministic contact routing),
     speak the reply, and loop
  5. On a 911 redirect or a goodbye the call ends; when it ends (or Twilio
     reports it completed) we summarize it and persist it to MongoDB
  6. If the caller asked for a text, the top contact goes out by SMS

Text-based /api/chat endpoint is kept for testing without a phone.
"""

import os
import threading
import time
import traceback
from dataclasses import replace
from datetime import datetime

import pytz
from flask import Flask, request, jsonify, send_from_directory
from twilio.twiml.voice_response import VoiceResponse, Gather

from dotenv import load_dotenv
load_dotenv()

from flask_cors import CORS

from config import CONTACTS_PATH
from services.ai import generate_call_summary
from services.contacts import get_directory, reload_directory
from services.sms import send_follow_up_sms
from services.system_prompt import SYSTEM_INSTRUCTION
from services.triage import HotlineSession, handle_turn, start_session
from services.voice import AUDIO_DIR, REPEAT_LINE, generate_audio, precache_fixed_lines
from routes.calls import calls_bp
from routes.contacts import contacts_bp
from db import persist_call_at_end


# ═══════════════════════════════════════════════════════════════════════════════
# Contact directory: loaded once. A missing or broken file leaves it empty, and
# every call then gets the statewide-directory pointer.
# ═══════════════════════════════════════════════════════════════════════════════
try:
    reload_directory(CONTACTS_PATH)
except (OSError, ValueError) as e:
    print(f"[Startup] WARNING: could not load contacts from {CONTACTS_PATH}: {e}")


app = Flask(__name__)
CORS(app)

app.register_blueprint(calls_bp)
app.register_blueprint(contacts_bp)


def _twiml(response: VoiceResponse):
    return str(response), 200, {"Content-Type": "text/xml"}


# ═══════════════════════════════════════════════════════════════════════════════
# Global error handler: Twilio must ALWAYS get valid TwiML, never a 500
# ═══════════════════════════════════════════════════════════════════════════════

@app.errorhandler(Exception)
def handle_any_error(e):
    """Last-resort safety net: safe TwiML for Twilio paths, JSON for API paths."""
    print(f"[GLOBAL ERROR] {type(e).__name__}: {e}")
    traceback.print_exc()

    if (request.path or "").startswith("/voice"):
        response = VoiceResponse()
        response.say("We are experiencing a temporary issue. Please hold.")
        response.redirect("/voice", method="POST")
        return _twiml(response)

    return jsonify({"error": "Internal server error", "detail": str(e)}), 500


# ═══════════════════════════════════════════════════════════════════════════════
# In-memory sessions: CallSid → HotlineSession
# ═══════════════════════════════════════════════════════════════════════════════

call_sessions: dict[str, HotlineSession] = {}


def _run_in_background(fn, *args):
    threading.Thread(target=fn, args=args, daemon=True).start()


def _send_sms_for(session: HotlineSession):
    result = send_follow_up_sms(
        session.caller_number,
        session.hotline_number,
        session.offered,
        animal=session.animal,
        rabies_vector=session.rabies_vector,
    )
    if not result["success"]:
        print(f"[SMS] Follow-up for {session.call_sid} failed: {result['error']}")


def _finalize_call(session: HotlineSession):
    """Summarize and persist a finished call. Runs off the request thread."""
    record = session.to_record()
    try:
        record["summary"] = generate_call_summary(
            session.convo,
            county=session.county or "",
            animal=session.animal or "",
            contact=session.offered[0].name if session.offered else "",
        )
    except Exception as e:
        print(f"[Summary] Failed for {session.call_sid}: {e}")
        record["summary"] = ""
    print(f"[Summary] {record['summary']}")
    persist_call_at_end(record, session.caller_number)


def end_call(call_id: str):
    """Drop the live session and persist it. Safe to call twice."""
    session = call_sessions.pop(call_id, None)
    if session is not None:
        _run_in_background(_finalize_call, replace(session, ended=True))


def handle_caller_speech(call_id: str, text: str, caller_phone: str = None,
                         hotline_phone: str = None, channel: str = "voice") -> dict:
    """
    Process one caller utterance and return everything the Twilio handler and
    the JSON API need.
    """
    session = call_sessions.get(call_id)
    if session is None:
        session = start_session(call_id, caller_phone, hotline_phone, channel=channel)

    now = datetime.now(pytz.utc)
    session, spoken_line, hang_up = handle_turn(session, text, get_directory(), now)

    # Mark before sending so a second turn can't text the caller twice.
    if session.sms_opt_in and not session.sms_sent and session.caller_number and session.offered:
        session = replace(session, sms_sent=True)
        _run_in_background(_send_sms_for, session)

    call_sessions[call_id] = session

    result = session.to_record()
    result.update({
        "spoken_line": spoken_line,
        "hang_up": hang_up,
        "status": "completed" if hang_up else "in_progress",
    })

    if hang_up:
        end_call(call_id)
    return result


# ═══════════════════════════════════════════════════════════════════════════════
# Serve generated audio files so Twilio can <Play> them
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/audio/<filename>")
def serve_audio(filename):
    """Serve a generated WAV file. Twilio fetches this URL for <Play>."""
    return send_from_directory(AUDIO_DIR, filename, mimetype="audio/wav")


def _speak(target, text: str, label: str):
    """<Play> Gradium audio for *text*, or <Say> it if TTS is unavailable."""
    try:
        audio_file = generate_audio(text, label=label)
        target.play(f"{request.url_root}audio/{audio_file}")
    except Exception as e:
        print(f"[Gradium ERROR] TTS failed, using <Say> fallback: {e}")
        target.say(text)


def _gather() -> Gather:
    return Gather(
        input="speech",
        action="/voice/respond",
        method="POST",
        speech_timeout="2",
        language="en-US",
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Twilio voice webhooks
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/voice", methods=["POST"])
def voice_incoming():
    """
    Twilio hits this when someone calls the hotline (and when we redirect back
    after silence). Greets once per call, then listens for caller speech.
    """
    call_sid = request.form.get("CallSid", "unknown")
    caller = request.form.get("From")
    hotline = request.form.get("To")

    session = call_sessions.get(call_sid)
    if session is None:
        print(f"[Twilio] Incoming call {call_sid} from {caller}")
        session = start_session(call_sid, caller, hotline)
        call_sessions[call_sid] = session
        prompt = session.messages[0]["content"]
    else:
        prompt = "Are you still there? Tell me about the animal and where you are."

    response = VoiceResponse()
    gather = _gather()
    _speak(gather, prompt, "greeting")
    response.append(gather)
    response.redirect("/voice", method="POST")
    return _twiml(response)


@app.route("/voice/respond", methods=["POST"])
def voice_respond():
    """
    Twilio hits this after <Gather> captures the caller's speech.
    NEVER returns 500; the caller always gets valid TwiML.
    """
    call_sid = request.form.get("CallSid", "unknown")
    speech_result = request.form.get("SpeechResult", "")
    confidence = request.form.get("Confidence", "?")

    print(f"[Twilio] CallSid={call_sid}  Speech=\"{speech_result}\"  Confidence={confidence}")

    try:
        conf = float(confidence)
    except (ValueError, TypeError):
        conf = 0.0

    if not speech_result or conf < 0.4:
        print(f"[Twilio] Ignored — empty or low confidence ({conf:.2f}). Re-prompting.")
        response = VoiceResponse()
        response.redirect("/voice", method="POST")
        return _twiml(response)

    try:
        t0 = time.time()
        result = handle_caller_speech(
            call_sid,
            speech_result,
            caller_phone=request.form.get("From"),
            hotline_phone=request.form.get("To"),
        )
        print(f"[Triage] urgency={result['urgency']}  county={result['county']}  "
              f"animal={result['animal']}  contacts={result['contacts']}  ({time.time() - t0:.1f}s)")

        response = VoiceResponse()
        if result["hang_up"]:
            _speak(response, result["spoken_line"], "closing")
            response.hangup()
        else:
            gather = _gather()
            _speak(gather, result["spoken_line"], "reply")
            response.append(gather)
            response.redirect("/voice", method="POST")
        return _twiml(response)

    except Exception as e:
        # Don't kill the call; ask again and give the pipeline another chance.
        print(f"[voice_respond CRITICAL ERROR] {type(e).__name__}: {e}")
        traceback.print_exc()
        response = VoiceResponse()
        response.say(REPEAT_LINE)
        response.redirect("/voice", method="POST")
        return _twiml(response)


@app.route("/voice/status", methods=["POST"])
def voice_status():
    """Twilio status callback. A finished call is summarized and persisted."""
    call_sid = request.form.get("CallSid", "unknown")
    status = request.form.get("CallStatus", "")
    print(f"[Twilio] Status {call_sid}: {status}")
    if status in ("completed", "busy", "failed", "no-answer", "canceled"):
        end_call(call_sid)
    return "", 204


# ═══════════════════════════════════════════════════════════════════════════════
# JSON API
# ═══════════════════════════════════════════════════════════════════════════════

@app.route("/api/chat", methods=["POST"])
def chat():
    """
    Text-based test route. Simulates one caller utterance per request.
    Send JSON: {"call_id": "any-string", "message": "what the caller says",
                "from": optional caller number, "channel": "voice" | "chat"}
    """
    data = request.get_json(silent=True) or {}
    call_id = data.get("call_id")
    message = data.get("message")

    if not call_id or not message:
        return jsonify({"error": "call_id and message are required"}), 400

    channel = data.get("channel", "voice")
    if channel not in ("voice", "chat"):
        return jsonify({"error": "channel must be 'voice' or 'chat'"}), 400

    result = handle_caller_speech(call_id, message, caller_phone=data.get("from"), channel=channel)
    return jsonify(result)


@app.route("/api/active-calls", methods=["GET"])
def get_active_calls():
    """Live in-memory sessions. /api/calls (Blueprint) returns persisted calls."""
    return jsonify([session.to_record() for session in call_sessions.values()])


@app.route("/api/health")
def health():
    return jsonify({
        "status": "ok",
        "service": "wounded-animal-hotline",
        "contactsLoaded": len(get_directory()),
        "promptLoaded": bool(SYSTEM_INSTRUCTION),
        "features": ["Twilio Voice", "Gemini Triage", "Contact Routing", "SMS Follow-up"],
    })


@app.route("/api")
def index():
    return jsonify({"message": "Wounded Animal Hotline API"})


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5001))
    debug = os.environ.get("FLASK_DEBUG", "0").lower() in ("1", "true", "yes")

    print("=" * 60)
    print(f"  Wounded Animal Hotline starting on http://0.0.0.0:{port}")
    if debug:
        print("  (If using Twilio locally, use ngrok and point webhooks to /voice)")
    print("=" * 60)

    # Pre-cache once (avoid double-run when debug reloader is on)
    if (not debug) or (os.environ.get("WERKZEUG_RUN_MAIN") == "true"):
        precache_fixed_lines()

    app.run(host="0.0.0.0", port=port, debug=debug, use_reloader=debug)
