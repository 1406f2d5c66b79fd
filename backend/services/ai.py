"""
AI service: Gemini calls for fact extraction (county, animal, urgency, SMS
opt-in) and for writing the hotline's next spoken line. Extraction uses short
few-shot prompts; the reply uses SYSTEM_INSTRUCTION plus the routed contacts.
Uses the google-genai SDK (client.models.generate_content).

Nothing here picks contacts. Routing is deterministic and lives in
services.resolver; the model only reads the result back to the caller.
"""

from typing import List

from google import genai
from google.genai import types

# Import config so we can switch model in one place.
from config import GEMINI_API_KEY, GEMINI_MODEL
from services.system_prompt import SYSTEM_INSTRUCTION

# -----------------------------------------------------------------------------
# Gemini client (lazy init on first use so we don't fail if key is missing at import).
# -----------------------------------------------------------------------------
_client = None


def _get_client():
    """Return configured Gemini client; initializes on first call."""
    global _client
    if _client is None:
        if not GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY is not set")
        _client = genai.Client(api_key=GEMINI_API_KEY)
    return _client


def _ask(prompt: str) -> str:
    response = _get_client().models.generate_content(model=GEMINI_MODEL, contents=prompt)
    return (response.text or "").strip()


def _few_shot(examples, label: str) -> str:
    return "\n".join(f"Conversation: {c}\n{label}: {e}" for c, e in examples)


# -----------------------------------------------------------------------------
# Few-shot constants: 2–4 examples per task. Each teaches "undefined" when the
# caller hasn't said it yet.
# -----------------------------------------------------------------------------

FEW_SHOT_COUNTY = [
    ("Caller: I'm out near Cheney, that's Spokane County.", "Spokane"),
    ("Caller: We're in Pullman.", "Whitman"),
    ("Caller: It's on the highway outside Yakima.", "Yakima"),
    ("Caller: There's a hurt bird in my yard.", "undefined"),
]

FEW_SHOT_ANIMAL = [
    ("Caller: There's a bat on my porch and it isn't moving.", "bat"),
    ("Caller: A deer got hit and it's on the shoulder.", "deer"),
    ("Caller: I found a baby bird under a tree.", "baby songbird"),
    ("Caller: I'm in Spokane County and I need help.", "undefined"),
]

# DANGER = people at risk right now (911). EMERGENCY = badly hurt animal or
# possible rabies exposure. ROUTINE = everything else.
FEW_SHOT_URGENCY = [
    ("Caller: A coyote is attacking my dog in the yard!", "DANGER"),
    ("Caller: There's an elk standing in the middle of the freeway.", "DANGER"),
    ("Caller: My son picked up a bat and it scratched him.", "EMERGENCY"),
    ("Caller: A hawk hit my window and its wing is bleeding.", "EMERGENCY"),
    ("Caller: There's a fawn alone in the field, it looks fine.", "ROUTINE"),
    ("Caller: A raccoon keeps getting into my garbage.", "ROUTINE"),
]

FEW_SHOT_OPT_IN = [
    ("Assistant: Would you like me to text you this information?\nCaller: Yes please.", "YES"),
    ("Assistant: Would you like me to text you this information?\nCaller: No, I wrote it down.", "NO"),
    ("Caller: Can you text me that number?", "YES"),
    ("Caller: It's a bat in Spokane.", "NO"),
]


def extract_county(convo: str) -> str:
    """
    Washington county the animal is in, without the word "County".
    Returns "undefined" when the caller hasn't said enough to tell.
    """
    # The model may map a city to its county; the resolver only accepts exact county names.
    prompt = f"""You are a wildlife hotline analyst in Washington State. From the conversation, name the county where the animal is. Answer with the county name only, without the word "County". If you cannot tell, respond with exactly: undefined

Examples:
{_few_shot(FEW_SHOT_COUNTY, "County")}

Current conversation:
{convo}

County (or "undefined"):"""
    text = _ask(prompt)
    if not text or "undefined" in text.lower():
        return "undefined"
    return text.replace("County", "").replace("county", "").strip()


def extract_animal(convo: str) -> str:
    """Short species description as the caller gave it, or "undefined"."""
    prompt = f"""You are a wildlife hotline analyst. Extract what kind of animal the caller is calling about, in 3 words or fewer. If the caller has not said, respond with exactly: undefined

Examples:
{_few_shot(FEW_SHOT_ANIMAL, "Animal")}

Current conversation:
{convo}

Animal (or "undefined"):"""
    text = _ask(prompt).lower()
    if not text or "undefined" in text:
        return "undefined"
    return text


def assess_urgency(convo: str) -> str:
    """
    One of "DANGER", "EMERGENCY", "ROUTINE", judged on the FULL conversation so far.
    Called every turn; urgency can change as the caller says more.
    """
    prompt = f"""You are a wildlife hotline urgency analyst. Based on the full conversation, assign exactly one level.

Levels:
- DANGER: a person or pet is in danger right now (attack, cornered, animal on a highway)
- EMERGENCY: badly injured animal, or a person possibly exposed to rabies (bite, scratch, touched a bat)
- ROUTINE: everything else (healthy babies, nuisance animals, questions)

Examples:
{_few_shot(FEW_SHOT_URGENCY, "Urgency")}

Current conversation:
{convo}

Respond with ONLY the level (DANGER, EMERGENCY, or ROUTINE):"""
    text = _ask(prompt).upper()
    for level in ("DANGER", "EMERGENCY", "ROUTINE"):
        if level in text:
            return level
    # Conflicting or garbled signal: err toward the emergency resource.
    return "EMERGENCY"


def detect_sms_opt_in(convo: str) -> bool:
    """True when the caller asked for, or agreed to, a text with the contact info."""
    prompt = f"""You are a wildlife hotline analyst. Did the caller ask for or agree to receive a text message with the contact information?

Examples:
{_few_shot(FEW_SHOT_OPT_IN, "Answer")}

Current conversation:
{convo}

Respond with ONLY YES or NO:"""
    return _ask(prompt).upper().startswith("YES")


def generate_hotline_reply(history: List[dict], context: str) -> str:
    """
    Next spoken line. *history* is [{"role": "user"|"assistant", "content": ...}],
    already trimmed by the caller; *context* carries time, channel and routed contacts.
    """
    contents = [
        types.Content(
            role="model" if m["role"] == "assistant" else "user",
            parts=[types.Part(text=m["content"])],
        )
        for m in history
    ]
    response = _get_client().models.generate_content(
        model=GEMINI_MODEL,
        contents=contents,
        config=types.GenerateContentConfig(
            system_instruction=f"{SYSTEM_INSTRUCTION}\n\n{context}",
            temperature=0.7,
            max_output_tokens=1024,
        ),
    )
    text = (response.text or "").strip()
    if not text:
        return "I'm sorry, could you tell me that again?"
    return text


def generate_call_summary(convo: str, county: str, animal: str, contact: str) -> str:
    """Two-sentence summary stored with the call record."""
    prompt = f"""Summarize this wildlife hotline call in two short sentences for the call log: what the animal was, where, and who the caller was referred to.

County: {county or "unknown"}
Animal: {animal or "unknown"}
Referred to: {contact or "statewide directory"}

Conversation:
{convo}

Summary:"""
    text = _ask(prompt)
    return text or f"{animal or 'Animal'} call in {county or 'unknown county'}, referred to {contact or 'statewide directory'}."
