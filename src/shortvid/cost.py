"""
Cost estimation for a run's provider calls.
"""

# Average narration speed used to guess audio length before synthesis.
CHARS_PER_MINUTE = 900.0

DEFAULT_RATES = {
    "image_per_unit": 0.12,  # dall-e-3 hd 1024x1792
    "tts_per_mchar": 15.0,
    "stt_openai_per_min": 0.006,
    "gpt_in_per_mtok": 2.50,
    "gpt_out_per_mtok": 10.00,
    "script_tokens_in": 200.0,
    "script_tokens_out": 1000.0,
}


def estimate_costs(
    num_scenes: int,
    narration_chars: int,
    *,
    stt_mode: str,
    rates: dict[str, float] | None = None,
) -> dict[str, float]:
    """Estimate costs for one run from the generated script."""
    rates = {**DEFAULT_RATES, **(rates or {})}
    audio_minutes = narration_chars / CHARS_PER_MINUTE
    image_cost = num_scenes * float(rates["image_per_unit"])
    tts_cost = (narration_chars / 1_000_000.0) * float(rates["tts_per_mchar"])
    stt_cost = audio_minutes * float(rates["stt_openai_per_min"]) if stt_mode == "openai" else 0.0
    script_cost = (float(rates["script_tokens_in"]) / 1_000_000.0) * float(
        rates["gpt_in_per_mtok"]
    ) + (float(rates["script_tokens_out"]) / 1_000_000.0) * float(rates["gpt_out_per_mtok"])
    total = image_cost + tts_cost + stt_cost + script_cost
    return {
        "image_cost": image_cost,
        "tts_cost": tts_cost,
        "stt_cost": stt_cost,
        "script_cost": script_cost,
        "total": total,
        "audio_minutes": audio_minutes,
    }
