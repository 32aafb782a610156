"""Credit cost estimation for learnplan.

Pure, deterministic pricing functions: same inputs always produce the same
charge, and every estimate is bounded so the worst-case cost of a single call
is known up front.
"""

import math
from typing import List, NamedTuple

from learnplan.models.constants import (
    ASK_BASE_CREDITS,
    ASK_WITH_ATTACHMENTS_CREDITS,
    CHARS_PER_TOKEN,
    CHAT_HISTORY_SAMPLE_SIZE,
    MAX_CHAT_CREDITS,
    MAX_ESTIMATED_OUTPUT_TOKENS,
    MIN_CHAT_CREDITS,
    MIN_ESTIMATED_OUTPUT_TOKENS,
    OUTPUT_TOKEN_BUFFER,
    OUTPUT_TOKEN_MULTIPLIER,
    OUTPUT_TOKEN_WEIGHT,
    PLAYLIST_BASE_CREDITS,
    PLAYLIST_MAX_BILLED_VIDEOS,
    PLAYLIST_MAX_CREDITS,
    TOKENS_PER_CREDIT,
)


class ChatCostEstimate(NamedTuple):
    """Token and credit estimate for a chat request."""
    input_tokens: int
    output_tokens: int
    effective_tokens: int
    credits: int


def _clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))


def compute_credits_from_tokens(input_tokens: int, output_tokens: int) -> ChatCostEstimate:
    """Convert token counts into a bounded credit charge.

    Output tokens are weighted more heavily than input tokens. The result is
    always between MIN_CHAT_CREDITS and MAX_CHAT_CREDITS.

    Args:
        input_tokens: Prompt tokens (estimated or reported by the model)
        output_tokens: Completion tokens (estimated or reported by the model)

    Returns:
        ChatCostEstimate with the effective token count and credits
    """
    effective_tokens = input_tokens + OUTPUT_TOKEN_WEIGHT * output_tokens
    raw_credits = math.ceil(effective_tokens / TOKENS_PER_CREDIT)
    credits = _clamp(raw_credits, MIN_CHAT_CREDITS, MAX_CHAT_CREDITS)
    return ChatCostEstimate(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        effective_tokens=effective_tokens,
        credits=credits,
    )


def estimate_chat_cost(prompt_text: str, history_text: str = "") -> ChatCostEstimate:
    """Estimate the credit cost of a chat request from its text alone.

    Args:
        prompt_text: The new question
        history_text: Recent conversation text sent along with the question

    Returns:
        ChatCostEstimate (credits is non-decreasing in total text length)
    """
    chars = len((history_text or "") + "\n" + (prompt_text or ""))
    input_tokens = max(1, math.ceil(chars / CHARS_PER_TOKEN))
    output_tokens = math.ceil(input_tokens * OUTPUT_TOKEN_MULTIPLIER) + OUTPUT_TOKEN_BUFFER
    output_tokens = _clamp(output_tokens, MIN_ESTIMATED_OUTPUT_TOKENS, MAX_ESTIMATED_OUTPUT_TOKENS)
    return compute_credits_from_tokens(input_tokens, output_tokens)


def build_history_sample(message_contents: List[str]) -> str:
    """Join the trailing messages of a chat into the text used for estimation."""
    return "\n".join(message_contents[-CHAT_HISTORY_SAMPLE_SIZE:])


def estimate_youtube_playlist_cost(video_count: int) -> int:
    """Price a plan generated from a YouTube playlist.

    Flat base, one credit per video for the first few videos, hard cap
    regardless of playlist size.
    """
    billed_videos = min(PLAYLIST_MAX_BILLED_VIDEOS, max(0, video_count))
    return min(PLAYLIST_MAX_CREDITS, PLAYLIST_BASE_CREDITS + billed_videos)


def attachment_flat_charge(has_attachments: bool) -> int:
    """Flat charge for asking a question; attachments replace the base rate."""
    return ASK_WITH_ATTACHMENTS_CREDITS if has_attachments else ASK_BASE_CREDITS
