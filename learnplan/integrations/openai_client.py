"""OpenAI integration for the learning assistant.

The assistant answers a user's question in the context of the recent chat
history and any attachments the user uploaded.
"""

import os
import logging
from datetime import datetime
from typing import List, NamedTuple, Optional, Sequence
from openai import OpenAI, APIError
from dotenv import load_dotenv

from learnplan.models.chat import Message

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

ASSISTANT_SYSTEM_PROMPT = """You are a helpful assistant that builds learning plans for users.

When the user asks to learn something, answer with a structured plan:
- Break the plan into days; each step has a title, a short description and a realistic time estimate in minutes
- Multiple steps on the same day are fine
- Include links to the user's uploaded files as resources where relevant
- Keep answers concise and actionable

Current date: {today}"""


class AssistantUnavailableError(Exception):
    """The assistant could not produce a reply."""


class AssistantReply(NamedTuple):
    """Text produced by the assistant plus the token usage reported for it."""
    content: str
    input_tokens: Optional[int]
    output_tokens: Optional[int]


class OpenAIClient:
    """Client for OpenAI API integration."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key. If None, reads from OPENAI_API_KEY environment variable.
            model: Chat model name. If None, uses OPENAI_MODEL.

        Note:
            Without an API key the client still initializes; `generate_reply`
            then raises AssistantUnavailableError.
        """
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model or OPENAI_MODEL
        self.client = None

        if self.api_key:
            self.client = OpenAI(api_key=self.api_key)
        else:
            logger.warning("OPENAI_API_KEY not found in environment. Assistant replies will not be available.")

    def _build_messages(self, question: str, history: Sequence[Message], attachment_names: Sequence[str]) -> List[dict]:
        messages = [{
            "role": "system",
            "content": ASSISTANT_SYSTEM_PROMPT.format(today=datetime.utcnow().date().isoformat()),
        }]
        for message in history:
            messages.append({"role": message.role, "content": message.content})

        prompt = question
        if attachment_names:
            listed = "\n".join(f"File {index + 1}: {name}" for index, name in enumerate(attachment_names))
            prompt += f"\n\nThe user has uploaded {len(attachment_names)} file(s):\n{listed}"
        messages.append({"role": "user", "content": prompt})
        return messages

    def generate_reply(
        self,
        question: str,
        history: Sequence[Message] = (),
        attachment_names: Sequence[str] = (),
    ) -> AssistantReply:
        """Ask the assistant a question.

        Args:
            question: The user's question
            history: Earlier chat messages to include as context, oldest first
            attachment_names: Names of files the user attached

        Returns:
            AssistantReply with the reply text and reported token usage

        Raises:
            AssistantUnavailableError: If the client is not configured or the API call fails
        """
        if not self.client:
            raise AssistantUnavailableError("OpenAI client is not configured")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self._build_messages(question, history, attachment_names),
                temperature=0.7,
            )
        except APIError as e:
            error_code = getattr(e, 'code', None)
            status_code = getattr(e, 'status_code', None)

            if error_code == 'insufficient_quota':
                logger.warning("OpenAI API quota insufficient. Please check billing/payment method in OpenAI dashboard.")
            elif status_code == 429:
                logger.warning("OpenAI API rate limit exceeded. Please wait before retrying.")
            else:
                logger.error(f"OpenAI API error: {status_code or 'unknown'} ({error_code or 'unknown'})")
            # Don't log full error message as it might contain sensitive info
            raise AssistantUnavailableError("Assistant request failed") from e
        except Exception as e:
            logger.error(f"Error calling OpenAI API: {type(e).__name__}")
            raise AssistantUnavailableError("Assistant request failed") from e

        content = (response.choices[0].message.content or "").strip()
        usage = getattr(response, "usage", None)
        return AssistantReply(
            content=content,
            input_tokens=getattr(usage, "prompt_tokens", None),
            output_tokens=getattr(usage, "completion_tokens", None),
        )
