"""
Manual check of the Gemini calls in services.ai against the live API.
Run from backend/:  python test/test_gemini.py
Requires GEMINI_API_KEY in .env. Not collected as a pytest test.
"""

import os
import sys
from datetime import datetime

import pytz

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from services.ai import (
    assess_urgency,
    detect_sms_opt_in,
    extract_animal,
    extract_county,
    generate_call_summary,
    generate_hotline_reply,
)
from services.contacts import load_directory
from services.messages import compose_voice
from services.resolver import Criteria, resolve
from services.system_prompt import build_conversation_context
from config import CONTACTS_PATH


def main():
    print("=== Gemini AI service test ===\n")

    convo = """Hotline: Hello, this is the Wounded Animal Hotline. Are you safe?
Caller: Yes. There's a bat lying on my porch in Cheney, that's Spokane County. My cat was batting at it."""

    county = extract_county(convo)
    print(f"1. extract_county      -> {county!r}")

    animal = extract_animal(convo)
    print(f"2. extract_animal      -> {animal!r}")

    urgency = assess_urgency(convo)
    print(f"3. assess_urgency      -> {urgency!r}")

    danger = assess_urgency("Caller: There's a cougar in my backyard and my kids are outside!")
    print(f"4. assess_urgency (cougar) -> {danger!r}")

    opt_in = detect_sms_opt_in(convo + "\nHotline: Would you like me to text you this?\nCaller: Yes, please.")
    print(f"5. detect_sms_opt_in   -> {opt_in!r}\n")

    now = datetime.now(pytz.utc)
    contacts = resolve(load_directory(CONTACTS_PATH), Criteria(county="Spokane", animal_type="bats", rabies_vector=True), at=now)
    context = build_conversation_context(now, "voice", compose_voice(contacts, at=now), county="Spokane", animal=animal)
    history = [
        {"role": "assistant", "content": "Hello, this is the Wounded Animal Hotline. Are you safe?"},
        {"role": "user", "content": "Yes. There's a bat on my porch in Cheney, Spokane County."},
    ]
    reply = generate_hotline_reply(history, context)
    print("6. generate_hotline_reply:")
    print(f"   -> {reply!r}\n")

    summary = generate_call_summary(convo, "Spokane", animal, contacts[0].name if contacts else "")
    print("7. generate_call_summary:")
    print(f"   -> {summary!r}\n")

    print("=== Done ===")


if __name__ == "__main__":
    main()
