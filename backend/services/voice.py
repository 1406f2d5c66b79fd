"""
Gradium TTS service: turns hotline lines into WAV files that Twilio plays to
the caller via <Play>.

The fixed lines (greeting, 911 redirect, re-prompts) are generated once at
startup and cached. Only Gemini's replies hit the Gradium API during a call.
If Gradium is unavailable the caller of generate_audio() falls back to <Say>.
"""

import asyncio
import os
import time
import uuid

import gradium

from config import GRADIUM_API_KEY
from services.triage import DANGER_LINE, GOODBYE_LINE, GREETING

# Directory where generated audio files are stored temporarily.
AUDIO_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "audio_cache")
os.makedirs(AUDIO_DIR, exist_ok=True)

GRADIUM_REGION = os.getenv("GRADIUM_REGION", "us")
GRADIUM_VOICE_ID = os.getenv("GRADIUM_VOICE_ID", "YTpq7expH9539ERJ")
GRADIUM_BASE_URL = f"https://{GRADIUM_REGION}.api.gradium.ai/api/"
PRECACHE_CONCURRENCY = 4

REPEAT_LINE = "I'm sorry, could you repeat that?"
FIXED_LINES = [GREETING, DANGER_LINE, REPEAT_LINE, GOODBYE_LINE]

# text -> filename in AUDIO_DIR
_audio_cache: dict[str, str] = {}


def _api_key() -> str:
    key = GRADIUM_API_KEY or os.getenv("GRADIUM_API_KEY")
    if not key:
        raise RuntimeError("GRADIUM_API_KEY is not set in .env")
    return key


async def _synthesize(key: str, text: str) -> bytes:
    client = gradium.client.GradiumClient(api_key=key, base_url=GRADIUM_BASE_URL)
    result = await client.tts(
        setup={
            "model_name": "default",
            "voice_id": GRADIUM_VOICE_ID,
            "output_format": "wav",
        },
        text=text + " <flush>",
    )
    return result.raw_data


def _write(filename: str, audio: bytes) -> str:
    with open(os.path.join(AUDIO_DIR, filename), "wb") as f:
        f.write(audio)
    return filename


def generate_audio(text: str, label: str = "") -> str:
    """
    WAV filename for *text*. Cached lines return instantly; anything else is
    synthesized now. Raises if Gradium isn't configured or the call fails.
    """
    if text in _audio_cache:
        return _audio_cache[text]

    key = _api_key()
    tag = label.replace(" ", "_")[:20] if label else "resp"
    t0 = time.time()
    filename = _write(f"{tag}_{uuid.uuid4().hex[:8]}.wav", asyncio.run(_synthesize(key, text)))
    print(f"[Gradium TTS] Generated {filename} in {time.time() - t0:.1f}s for: {text[:60]}...")
    return filename


def precache_fixed_lines():
    """Generate every fixed line at startup, PRECACHE_CONCURRENCY at a time."""
    try:
        key = _api_key()
    except RuntimeError:
        print("[Startup] WARNING: GRADIUM_API_KEY not set, skipping pre-cache.")
        return

    print(f"[Startup] Pre-caching {len(FIXED_LINES)} fixed hotline lines...")
    t_start = time.time()

    async def _all():
        sem = asyncio.Semaphore(PRECACHE_CONCURRENCY)

        async def _one(line: str) -> bytes:
            async with sem:
                return await _synthesize(key, line)

        return await asyncio.gather(*[_one(line) for line in FIXED_LINES])

    for i, (line, audio) in enumerate(zip(FIXED_LINES, asyncio.run(_all()))):
        _audio_cache[line] = _write(f"cached_{i:02d}.wav", audio)

    print(f"[Startup] Pre-cached {len(_audio_cache)} lines in {time.time() - t_start:.1f}s.")
