"""Tests for the YouTube and OpenAI clients and the file store."""

import pytest
import requests
from unittest.mock import MagicMock, patch

from learnplan.integrations.openai_client import AssistantUnavailableError, OpenAIClient
from learnplan.integrations.youtube import YouTubeClient, YouTubeError, extract_playlist_id
from learnplan.models.chat import Message
from learnplan.storage.file_store import FileStore


class TestExtractPlaylistId:
    """Test playlist ID extraction."""

    @pytest.mark.parametrize("value,expected", [
        ("https://www.youtube.com/playlist?list=PL123abc", "PL123abc"),
        ("https://www.youtube.com/watch?v=xyz&list=PLabc_-9&index=2", "PLabc_-9"),
        ("PLbare-id_1", "PLbare-id_1"),
        ("not a playlist url", None),
        ("", None),
    ])
    def test_extract(self, value, expected):
        assert extract_playlist_id(value) == expected


class TestYouTubeClient:
    """Test playlist fetching with a mocked HTTP layer."""

    def test_fetch_sorts_by_position(self):
        response = MagicMock()
        response.json.return_value = {
            "items": [
                {"snippet": {"title": "Two", "description": "", "position": 1, "resourceId": {"videoId": "v2"}}},
                {"snippet": {"title": "One", "description": "Intro", "position": 0, "resourceId": {"videoId": "v1"}}},
                {"snippet": {"title": "Deleted video", "position": 2, "resourceId": {}}},
            ]
        }
        with patch("learnplan.integrations.youtube.requests.get", return_value=response) as mock_get:
            videos = YouTubeClient(api_key="test-key").fetch_playlist("PL1")

        assert [v.video_id for v in videos] == ["v1", "v2"]
        assert videos[0].watch_url == "https://www.youtube.com/watch?v=v1"
        assert mock_get.call_args.kwargs["params"]["playlistId"] == "PL1"

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("YOUTUBE_API_KEY", raising=False)
        with pytest.raises(YouTubeError):
            YouTubeClient().fetch_playlist("PL1")

    def test_http_failure(self):
        with patch(
            "learnplan.integrations.youtube.requests.get",
            side_effect=requests.ConnectionError("offline"),
        ):
            with pytest.raises(YouTubeError):
                YouTubeClient(api_key="test-key").fetch_playlist("PL1")


class TestOpenAIClient:
    """Test the assistant client without network access."""

    def test_unconfigured_client_raises(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(AssistantUnavailableError):
            OpenAIClient().generate_reply("hello")

    def test_reply_and_usage(self):
        client = OpenAIClient(api_key="test-key")
        completion = MagicMock()
        completion.choices = [MagicMock()]
        completion.choices[0].message.content = "  Day 1: basics  "
        completion.usage.prompt_tokens = 120
        completion.usage.completion_tokens = 40
        client.client = MagicMock()
        client.client.chat.completions.create.return_value = completion

        history = [Message(id="m1", chat_id="c1", role="user", content="earlier", created_at="2024-03-15T00:00:00")]
        reply = client.generate_reply("Teach me SQL", history=history, attachment_names=["notes.pdf"])

        assert reply.content == "Day 1: basics"
        assert reply.input_tokens == 120
        assert reply.output_tokens == 40
        sent = client.client.chat.completions.create.call_args.kwargs["messages"]
        assert sent[0]["role"] == "system"
        assert sent[1] == {"role": "user", "content": "earlier"}
        assert "notes.pdf" in sent[-1]["content"]

    def test_api_failure_raises(self):
        client = OpenAIClient(api_key="test-key")
        client.client = MagicMock()
        client.client.chat.completions.create.side_effect = RuntimeError("network")
        with pytest.raises(AssistantUnavailableError):
            client.generate_reply("hello")


class TestFileStore:
    """Test the local blob store."""

    def test_save_read_delete(self, tmp_path):
        store = FileStore(root=str(tmp_path))
        storage_id = store.save(b"%PDF-1.4")

        assert store.read(storage_id) == b"%PDF-1.4"
        assert store.delete(storage_id) is True
        assert store.delete(storage_id) is False

    def test_rejects_path_traversal(self, tmp_path):
        with pytest.raises(ValueError):
            FileStore(root=str(tmp_path)).read("../etc/passwd")
