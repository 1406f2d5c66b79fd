"""
Triage service: one conversational turn of a hotline call.

Each turn:
  1. Append the caller's words to the session.
  2. Assess urgency (DANGER / EMERGENCY / ROUTINE). DANGER short-circuits to 911.
     A caller saying goodbye after hearing a contact ends the call.
  3. Fill in county and animal if we don't have them yet.
  4. Once the county is known, resolve contacts (deterministic, no model involved).
  5. Let Gemini phrase the reply around the routed contacts.

Everything a call accumulates lives on its HotlineSession. Nothing is kept at
module level; the web layer owns one session per CallSid.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional, Sequence

from config import MAX_HISTORY_LENGTH
from services.ai import (
    assess_urgency,
    detect_sms_opt_in,
    extract_animal,
    extract_county,
    generate_hotline_reply,
)
from services.animals import animal_type_for, is_rabies_vector, service_for
from services.messages import compose_chat, compose_voice, generate_reference_number
from services.resolver import Criteria, Urgency, resolve
from services.system_prompt import build_conversation_context

GREETING = (
    "Hello, this is the Wounded Animal Hotline. I'm here to help you find the right resource. "
    "First, are you safe, and at a safe distance from the animal?"
)
DANGER_LINE = (
    "If anyone is in danger right now, hang up and call nine one one. "
    "Get yourself, other people, and pets away from the animal."
)
GOODBYE_LINE = "Thank you for caring about wildlife. Take care, and stay safe."

# Caller wrapping up once they have a number to call.
_CLOSING = re.compile(r"\b(bye|goodbye|that's all|that is all|all set|nothing else)\b")


@dataclass
class HotlineSession:
    """Holds everything known about a single hotline call until it ends."""

    call_sid: str
    caller_number: Optional[str] = None   # Twilio From, used for the SMS follow-up
    hotline_number: Optional[str] = None  # Twilio To, the SMS sender
    channel: str = "voice"                # "voice" or "chat"
    messages: List[dict] = field(default_factory=list)  # [{"role", "content"}]
    county: Optional[str] = None
    animal: Optional[str] = None          # Caller's words, e.g. "baby robin"
    animal_type: Optional[str] = None     # Directory tag, e.g. "songbirds"
    rabies_vector: bool = False
    urgency: str = "ROUTINE"              # DANGER, EMERGENCY, ROUTINE (updated every turn)
    offered: list = field(default_factory=list)  # Ranked contacts from the latest resolution
    sms_opt_in: bool = False
    sms_sent: bool = False
    ended: bool = False
    reference: str = ""

    @property
    def convo(self) -> str:
        """Transcript as "Hotline: ...\\nCaller: ..." lines."""
        speaker = {"assistant": "Hotline", "user": "Caller"}
        return "\n".join(f"{speaker[m['role']]}: {m['content']}" for m in self.messages)

    def criteria(self) -> Criteria:
        return Criteria(
            county=self.county,
            animal_type=self.animal_type,
            service=service_for(self.animal_type),
            rabies_vector=self.rabies_vector,
            urgency=Urgency.EMERGENCY if self.urgency in ("EMERGENCY", "DANGER") else Urgency.ROUTINE,
        )

    def to_record(self) -> dict:
        """JSON-safe snapshot for the API and for persistence."""
        return {
            "call_id": self.call_sid,
            "reference": self.reference,
            "channel": self.channel,
            "county": self.county,
            "animal": self.animal,
            "animal_type": self.animal_type,
            "rabies_vector": self.rabies_vector,
            "urgency": self.urgency,
            "contacts": [c.name for c in self.offered],
            "sms_opt_in": self.sms_opt_in,
            "sms_sent": self.sms_sent,
            "ended": self.ended,
            "transcript": self.convo,
        }


def start_session(call_sid: str, caller_number: str = None, hotline_number: str = None,
                  channel: str = "voice") -> HotlineSession:
    """New session with the greeting already spoken."""
    return HotlineSession(
        call_sid=call_sid,
        caller_number=caller_number,
        hotline_number=hotline_number,
        channel=channel,
        messages=[{"role": "assistant", "content": GREETING}],
        reference=generate_reference_number(call_sid),
    )


def _said(session: HotlineSession, role: str, text: str) -> HotlineSession:
    return replace(session, messages=session.messages + [{"role": role, "content": text}])


def route(session: HotlineSession, directory: Sequence, now: datetime) -> HotlineSession:
    """Resolve contacts for what we know so far. Needs a county; the rest is optional."""
    if not session.county:
        return session
    contacts = resolve(directory, session.criteria(), at=now)
    return replace(session, offered=contacts)


def handle_turn(session: HotlineSession, utterance: str, directory: Sequence, now: datetime) -> tuple:
    """
    One step of the hotline flow. Returns (updated_session, spoken_line, hang_up).
    *now* is passed in so routing is reproducible; the web layer passes the real time.
    """
    session = _said(session, "user", utterance)

    # Urgency every turn: the caller may start calm and escalate.
    urgency = assess_urgency(session.convo)
    session = replace(session, urgency=urgency)

    if urgency == "DANGER":
        session = replace(_said(session, "assistant", DANGER_LINE), ended=True)
        return session, DANGER_LINE, True

    if session.offered and _CLOSING.search(utterance.lower()):
        if not session.sms_opt_in:
            session = replace(session, sms_opt_in=detect_sms_opt_in(session.convo))
        session = replace(_said(session, "assistant", GOODBYE_LINE), ended=True)
        return session, GOODBYE_LINE, True

    if not session.county:
        county = extract_county(session.convo)
        if county != "undefined":
            session = replace(session, county=county)

    if not session.animal:
        animal = extract_animal(session.convo)
        if animal != "undefined":
            session = replace(
                session,
                animal=animal,
                animal_type=animal_type_for(animal),
                rabies_vector=is_rabies_vector(animal),
            )

    session = route(session, directory, now)

    routed = None
    if session.county:
        if session.channel == "chat":
            routed = compose_chat(session.offered)
        else:
            routed = compose_voice(session.offered, at=now)

    if session.offered and not session.sms_opt_in:
        session = replace(session, sms_opt_in=detect_sms_opt_in(session.convo))

    context = build_conversation_context(
        now, session.channel, routed, county=session.county, animal=session.animal
    )
    line = generate_hotline_reply(session.messages[-MAX_HISTORY_LENGTH:], context)
    session = _said(session, "assistant", line)
    return session, line, False
