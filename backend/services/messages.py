"""
Message composer: render a resolved contact list for each channel.

  sms   - the single top contact, hard-capped at SMS_CHAR_LIMIT characters
  voice - one spoken paragraph, phone number read twice for the caller
  chat  - markdown with the primary contact, backups and resources

Every composer handles an empty list by pointing the caller at the statewide
directory. An empty result is never dressed up as a contact.
"""

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from services.contacts import ANIMAL_TYPES
from services.hours import is_always_open, is_open
from services.phone import for_speech, for_text, is_valid_phone_number, to_e164

SMS_CHAR_LIMIT = 300

STATEWIDE_DIRECTORY_URL = "https://wdfw.wa.gov/species-habitats/living/injured-wildlife/rehabilitation/find"
SHORT_LINK = "wdfw.wa.gov/wildlife"
WDFW_GENERAL_PHONE = "+13609022515"
RABIES_INFO_PHONE = "+18002314476"

SMS_SAFETY = "Safety: Don't touch animal\nKeep distance, observe"

# Spelled out for text-to-speech.
_SPOKEN_ACRONYMS = {
    "WDFW": "Washington Department of Fish and Wildlife",
    "WSU": "Washington State University",
    "SCRAPS": "Spokane County Regional Animal Protection Service",
}


@dataclass(frozen=True)
class SegmentInfo:
    segments: int
    length: int
    encoding: str  # "GSM-7" or "Unicode"


def estimate_segments(message: str) -> SegmentInfo:
    """Carrier segment count: 160/153 chars per part for GSM-7, 70/67 for Unicode."""
    length = len(message)
    if any(ord(ch) > 0x7F for ch in message):
        segments = 1 if length <= 70 else -(-length // 67)
        return SegmentInfo(segments, length, "Unicode")
    segments = 1 if length <= 160 else -(-length // 153)
    return SegmentInfo(segments, length, "GSM-7")


def generate_reference_number(call_sid: Optional[str] = None) -> str:
    """Short call reference: last 5 chars of the CallSid, or a random 5-digit number."""
    if not call_sid:
        return str(random.randint(10000, 99999))
    return call_sid[-5:].upper()


def no_match_message(channel: str = "sms") -> str:
    """What the caller gets when resolution came back empty."""
    if channel == "voice":
        return (
            "I couldn't find a local resource for that area. "
            "Please call the Washington Department of Fish and Wildlife at "
            f"{for_speech(WDFW_GENERAL_PHONE)}. Again, that's {for_speech(WDFW_GENERAL_PHONE)}. "
            "They keep the statewide list of wildlife rehabilitators."
        )
    if channel == "chat":
        return (
            "### No Local Contact Found\n\n"
            "We couldn't match a resource to your area. The statewide directory lists "
            "every licensed rehabilitator:\n\n"
            f"- [WDFW Wildlife Rehabilitation Directory]({STATEWIDE_DIRECTORY_URL})\n"
            f"- WDFW general line: {for_text(WDFW_GENERAL_PHONE)}"
        )
    return (
        "No local match found.\n"
        f"Statewide directory: {SHORT_LINK}\n"
        f"WDFW: {for_text(WDFW_GENERAL_PHONE)}"
    )


# =============================================================================
# SMS
# =============================================================================

def _shorten(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def _render_sms(parts: dict, phone: str, rabies_vector: bool, animal: Optional[str]) -> str:
    sections = []
    if rabies_vector:
        # Directory tags ("small_mammals") are not caller wording.
        noun = animal if animal and animal not in ANIMAL_TYPES else "animal"
        sections.append(f"SAFETY: Do NOT touch the {noun}!")

    where = f"{parts['city']} - Call first" if parts["city"] else "Call first"
    sections.append(f"{parts['name']} ({parts['hours']})\n{phone}\n{where}")

    if rabies_vector:
        sections.append(
            "If bitten/scratched:\nGo to ER now, then call\n"
            f"{for_text(RABIES_INFO_PHONE)} (WA Rabies Info)\nKeep people/pets away\nKeep distance, observe"
        )
    else:
        sections.append(SMS_SAFETY)

    if parts["link"]:
        sections.append(f"More: {SHORT_LINK}")
    return "\n\n".join(sections)


# Applied in order until the body fits.
_SMS_TRIMS = (
    lambda p: {**p, "hours": _shorten(p["hours"], 24)},
    lambda p: {**p, "city": ""},
    lambda p: {**p, "name": _shorten(p["name"], 40)},
    lambda p: {**p, "link": False},
)


def compose_sms(contacts: Sequence, rabies_vector: bool = False, animal: Optional[str] = None) -> str:
    """
    SMS body for the top-ranked contact only, at most SMS_CHAR_LIMIT characters.
    Remaining shortlist entries are the conversation's job, not the text's.
    """
    if not contacts:
        return no_match_message("sms")

    primary = contacts[0]
    phone = for_text(primary.phone)
    parts = {
        "name": primary.name,
        "hours": primary.hours or "Call for hours",
        "city": primary.city,
        "link": True,
    }

    body = _render_sms(parts, phone, rabies_vector, animal)
    for trim in _SMS_TRIMS:
        if len(body) <= SMS_CHAR_LIMIT:
            break
        parts = trim(parts)
        body = _render_sms(parts, phone, rabies_vector, animal)

    if len(body) > SMS_CHAR_LIMIT:
        body = _shorten(body, SMS_CHAR_LIMIT)
    return body


# =============================================================================
# Voice
# =============================================================================

def spoken_name(name: str) -> str:
    words = [_SPOKEN_ACRONYMS.get(word, word) for word in name.split()]
    return " ".join(words)


def compose_voice(contacts: Sequence, at: Optional[datetime] = None) -> str:
    """One short spoken paragraph for the top contact. Phone number is said twice."""
    if not contacts:
        return no_match_message("voice")

    primary = contacts[0]
    number = for_speech(primary.phone)
    lines = [f"The best contact for you is {spoken_name(primary.name)}."]

    if is_always_open(primary):
        lines.append("They're available twenty-four seven.")
    elif at is not None and is_open(primary, at):
        lines.append("They're open right now.")
    elif primary.hours:
        lines.append(f"They may be closed right now. Their hours are {primary.hours}.")

    lines.append(f"The number is: {number}. Again, that's {number}.")

    if primary.emergency_phone and primary.emergency_phone != primary.phone:
        lines.append(f"For an emergency, call {for_speech(primary.emergency_phone)}.")

    lines.append("Please call them first before you move the animal.")
    return " ".join(lines)


# =============================================================================
# Chat
# =============================================================================

def _phone_link(phone: str) -> str:
    text = for_text(phone)
    if text == "911":
        return "[911](tel:911)"
    e164 = to_e164(phone)
    if not is_valid_phone_number(e164):
        return text
    return f"[{text}](tel:{e164})"


def compose_chat(contacts: Sequence) -> str:
    """Markdown for web/app chat: primary contact in full, up to two backups."""
    if not contacts:
        return no_match_message("chat")

    primary = contacts[0]
    out = ["### Primary Contact", "", f"**{primary.name}**"]
    out.append(f"- **Phone**: {_phone_link(primary.phone)}")
    if primary.emergency_phone and primary.emergency_phone != primary.phone:
        out.append(f"- **Emergency**: {_phone_link(primary.emergency_phone)}")
    out.append(f"- **Hours**: {primary.hours or 'Call for hours'}")
    if primary.address:
        out.append(f"- **Location**: {primary.address}")
    if primary.email:
        out.append(f"- **Email**: {primary.email}")
    if primary.url:
        out.append(f"- **Website**: [{primary.url}]({primary.url})")
    if primary.notes:
        out += ["", primary.notes]

    backups = list(contacts[1:3])
    if backups:
        out += ["", "### Other Options", ""]
        for contact in backups:
            out.append(f"- **{contact.name}**: {_phone_link(contact.phone)} ({contact.hours or 'call for hours'})")

    out += [
        "",
        "### Safety Instructions",
        "",
        "**Do not touch or approach the animal.**",
        "- Keep your distance and observe from a safe place",
        "- Keep pets and children away",
        "- Do not feed it or give it water",
        "",
        "### Next Steps",
        "",
        f"1. Call {primary.name} at the number above",
        "2. Describe the animal's location and condition",
        "3. Follow their instructions before transporting anything",
        "",
        "### Additional Resources",
        "",
        f"- [WDFW Wildlife Rehabilitation Directory]({STATEWIDE_DIRECTORY_URL})",
    ]
    return "\n".join(out)
