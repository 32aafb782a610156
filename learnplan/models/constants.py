"""Constants for learnplan.

This module centralizes all credit prices, estimation knobs and default values
used throughout the application.
"""

import os

from dotenv import load_dotenv

load_dotenv()


# Credits granted once when a user signs up
SIGNUP_CREDITS = int(os.getenv("SIGNUP_CREDITS", "50"))

# Chat token estimation (approx 4 chars per token)
CHARS_PER_TOKEN = 4
OUTPUT_TOKEN_MULTIPLIER = 0.5
OUTPUT_TOKEN_BUFFER = 128
MIN_ESTIMATED_OUTPUT_TOKENS = 64
MAX_ESTIMATED_OUTPUT_TOKENS = 2048
OUTPUT_TOKEN_WEIGHT = 4  # Output tokens cost 4x input tokens
TOKENS_PER_CREDIT = 2000
MIN_CHAT_CREDITS = 1
MAX_CHAT_CREDITS = 8

# Number of trailing chat messages sampled for the estimate
CHAT_HISTORY_SAMPLE_SIZE = 5

# Flat charge for asking a question
ASK_BASE_CREDITS = 5
ASK_WITH_ATTACHMENTS_CREDITS = 10

# YouTube playlist plan pricing
PLAYLIST_BASE_CREDITS = 5
PLAYLIST_MAX_BILLED_VIDEOS = 10
PLAYLIST_MAX_CREDITS = 15

# Attachments accepted by the assistant
ALLOWED_ATTACHMENT_TYPES = (
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
)

# Session queries
DEFAULT_SESSION_LIST_LIMIT = 50
ACTIVE_SESSION_LOOKBACK = 10

# Chat titles are the first question truncated to this many characters
CHAT_TITLE_MAX_LENGTH = 50
