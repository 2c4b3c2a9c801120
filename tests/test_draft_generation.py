"""
Unit tests for Layer 3: Draft generation
Tests thread builder, prompts, generator, draft storage, image generation,
style samples, voice analysis and the generate-now workflow
"""
import sys
import os
import tempfile
import shutil
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import settings
from models.content_item import EngagementMetrics, IngestedContentItem
from models.draft import ThreadPart
from layer_1_ingestion.source_storage import SourceStorage
from layer_2_trend_analysis.trend_storage import TrendStorage
from layer_3_draft_generation import generate_drafts as generate_module
from layer_3_draft_generation.draft_generator import DraftGenerator
from layer_3_draft_generation.draft_storage import DraftStorage
from layer_3_draft_generation.image_generator import ImageGenerator
from layer_3_draft_generation.platform_prompts import (
    DRAFT_PROMPTS,
    build_image_prompt,
    build_system_prompt,
    build_user_prompt,
)
from layer_3_draft_generation.style_analysis import (
    VoiceAnalyzer,
    analyze_tone,
    extract_formatting_habits,
    extract_phrase_patterns,
    validate_vocabulary,
    word_frequency_vocabulary,
)
from layer_3_draft_generation.style_store import StyleStore
from layer_3_draft_generation.thread_builder import (
    MAX_TWEET_CHARS,
    create_twitter_thread,
    format_twitter_point,
    sanitize_twitter_output,
    topic_hashtag,
)
from utils import http_client
from utils.errors import (
    DraftNotFoundError,
    DraftValidationError,
    ImageGenerationError,
    ImageGenerationTimeout,
    NoActiveSourcesError,
    RateLimitError,
    StyleSampleNotFoundError,
    StyleValidationError,
)

LONG_X_COPY = (
    "AI agents are quietly changing how small teams ship products every single week. "
    "The best founders treat them like junior teammates with clear goals and tight feedback loops. "
    "Start with one boring workflow, measure the time saved, then expand to the next one. "
    "Tools matter less than the habits you build around them."
)


class TestThreadBuilder:
    """Test X thread splitting"""

    def test_sanitize_removes_tweet_labels(self):
        text = "Tweet 1: First point\n## Tweet 2: Second point"
        assert sanitize_twitter_output(text) == "First point\nSecond point"

    def test_short_copy_is_single_post(self):
        assert create_twitter_thread("Tweet 1: Short and sweet", "AI") == ["Short and sweet"]

    def test_long_copy_becomes_numbered_thread(self):
        posts = create_twitter_thread(LONG_X_COPY, "AI agents")

        assert 1 < len(posts) <= 3
        for idx, post in enumerate(posts, 1):
            assert post.startswith(f"{idx}/ ")
            assert len(post) <= MAX_TWEET_CHARS

    def test_point_gets_emoji_and_hashtag(self):
        assert format_twitter_point("AI is changing business", 1, "Future Tech") == \
            "1/ AI is changing business 🤖 #FutureTech"

    def test_emoji_matches_whole_word_start(self):
        assert format_twitter_point("The plain truth", 2, "") == "2/ The plain truth"

    def test_topic_hashtag(self):
        assert topic_hashtag("AI agents!") == "#AIagents"
        assert topic_hashtag("") == ""


class TestPlatformPrompts:
    """Test prompt building"""

    def test_system_prompt_with_tones_and_samples(self):
        prompt = build_system_prompt("linkedin", ["witty", "bold"], ["My old post"])
        assert prompt.startswith(DRAFT_PROMPTS["linkedin"])
        assert "TONE REQUIREMENTS: Incorporate these tones: witty, bold." in prompt
        assert "[Sample 1] My old post" in prompt

    def test_system_prompt_plain(self):
        assert build_system_prompt("x") == DRAFT_PROMPTS["x"]

    def test_user_prompt(self):
        prompt = build_user_prompt("instagram", "Morning routines", ["snippet one"])
        assert "Create engaging content for instagram about: Morning routines." in prompt
        assert "- snippet one" in prompt

    def test_image_prompt_aspect(self):
        assert "16:9" in build_image_prompt("linkedin", "Content", "Topic")
        assert "4:5" in build_image_prompt("instagram", "Content", "Topic")


class TestDraftGenerator:
    """Test draft generation with a mocked LLM and style store"""

    def setup_method(self):
        self.llm = MagicMock()
        self.style_store = MagicMock()
        self.style_store.find_similar.return_value = ["A post I wrote"]
        self.generator = DraftGenerator(llm_client=self.llm, style_store=self.style_store)
        self.sleep_patcher = patch('layer_3_draft_generation.draft_generator.time.sleep')
        self.mock_sleep = self.sleep_patcher.start()

    def teardown_method(self):
        self.sleep_patcher.stop()

    def test_pauses_between_platforms(self):
        self.llm.generate_with_retry.return_value = "copy"
        with patch.object(settings, 'LLM_BATCH_DELAY', 2.5):
            self.generator.generate_drafts("AI", platforms=["x", "linkedin", "instagram"])
        assert self.mock_sleep.call_count == 2
        self.mock_sleep.assert_called_with(2.5)

    def test_single_platform_does_not_pause(self):
        self.llm.generate_with_retry.return_value = "copy"
        self.generator.generate_drafts("AI", platforms=["linkedin"])
        self.mock_sleep.assert_not_called()

    def test_generates_all_platforms_by_default(self):
        self.llm.generate_with_retry.return_value = "Tweet 1: Short take"
        results = self.generator.generate_drafts("AI agents", user_id="u1")

        assert set(results) == {"x", "linkedin", "instagram"}
        assert results["x"]["content"] == "Short take"
        assert results["x"]["is_thread"] is False
        assert results["x"]["threads"][0].content == "Short take"
        assert results["linkedin"]["threads"] == []

    def test_style_samples_in_system_prompt(self):
        self.llm.generate_with_retry.return_value = "copy"
        self.generator.generate_drafts("AI agents", platforms=["linkedin"], user_id="u1")

        self.style_store.find_similar.assert_called_once_with("u1", "linkedin", "AI agents", limit=4)
        system = self.llm.generate_with_retry.call_args.kwargs["system_instruction"]
        assert "[Sample 1] A post I wrote" in system

    def test_style_failure_does_not_block(self):
        self.style_store.find_similar.side_effect = Exception("chroma down")
        self.llm.generate_with_retry.return_value = "copy"
        results = self.generator.generate_drafts("AI", platforms=["instagram"], user_id="u1")
        assert results["instagram"]["content"] == "copy"

    def test_one_platform_failure_isolated(self):
        self.llm.generate_with_retry.side_effect = [Exception("boom"), "linkedin copy", "insta copy"]
        results = self.generator.generate_drafts("AI")

        assert "error" in results["x"]
        assert results["linkedin"]["content"] == "linkedin copy"
        assert results["instagram"]["content"] == "insta copy"

    def test_long_x_copy_is_threaded(self):
        self.llm.generate_with_retry.return_value = LONG_X_COPY
        result = self.generator.generate_drafts("AI agents", platforms=["x"])["x"]
        assert result["is_thread"] is True
        assert all(isinstance(part, ThreadPart) for part in result["threads"])

    def test_invalid_input(self):
        with pytest.raises(DraftValidationError):
            self.generator.generate_drafts("  ")
        with pytest.raises(DraftValidationError):
            self.generator.generate_drafts("AI", platforms=["myspace"])

    def test_optimize_draft_saves_new_draft(self):
        temp_dir = tempfile.mkdtemp()
        try:
            storage = DraftStorage(storage_dir=temp_dir)
            original = storage.save_draft("u1", {"platform": "linkedin", "content": "Plain post",
                                                 "original_topic": "AI"})
            self.llm.generate_with_retry.return_value = "Optimized post"

            optimized = self.generator.optimize_draft("u1", original.id, storage=storage)

            assert optimized.id != original.id
            assert optimized.content == "Optimized post"
            assert optimized.status == "generated"
            assert optimized.extra["based_on"] == original.id
            assert optimized.extra["original_content"] == "Plain post"
            assert "optimized_at" in optimized.extra
            assert self.llm.generate_with_retry.call_args[0][0] == \
                "Please optimize this content for linkedin: Plain post"
            assert storage.list_drafts("u1")["pagination"]["total"] == 2
        finally:
            shutil.rmtree(temp_dir)


class TestDraftStorage:
    """Test draft persistence"""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.storage = DraftStorage(storage_dir=self.temp_dir)

    def teardown_method(self):
        shutil.rmtree(self.temp_dir)

    def test_save_and_get(self):
        draft = self.storage.save_draft("u1", {
            "platform": "x",
            "content": "Hello",
            "threads": [ThreadPart("1", "1/ Hello", 8), ThreadPart("2", "2/ World", 8)],
            "original_topic": "Greetings",
        })
        loaded = self.storage.get_draft("u1", draft.id)

        assert loaded.status == "generated"
        assert loaded.is_thread
        assert [p.content for p in loaded.threads] == ["1/ Hello", "2/ World"]
        assert loaded.original_topic == "Greetings"
        assert "saved_at" in loaded.extra

    def test_validation(self):
        with pytest.raises(DraftValidationError):
            self.storage.save_draft("u1", {"platform": "tiktok", "content": "x"})
        with pytest.raises(DraftValidationError):
            self.storage.save_draft("u1", {"platform": "x", "content": "   "})

    def test_pagination_newest_first(self):
        ids = [self.storage.save_draft("u1", {"platform": "x", "content": f"post {i}"}).id for i in range(3)]

        page = self.storage.list_drafts("u1", limit=2)
        assert [d.id for d in page["drafts"]] == [ids[2], ids[1]]
        assert page["pagination"]["has_more"] is True

        page = self.storage.list_drafts("u1", limit=2, offset=2)
        assert [d.id for d in page["drafts"]] == [ids[0]]
        assert page["pagination"]["has_more"] is False

    def test_platform_filter(self):
        self.storage.save_draft("u1", {"platform": "x", "content": "a"})
        self.storage.save_draft("u1", {"platform": "linkedin", "content": "b"})
        drafts = self.storage.list_drafts("u1", platform="linkedin")["drafts"]
        assert [d.content for d in drafts] == ["b"]

    def test_update(self):
        draft = self.storage.save_draft("u1", {"platform": "x", "content": "a"})
        updated = self.storage.update_draft("u1", draft.id, {"content": "b", "status": "accepted", "id": "hack"})
        assert updated.content == "b"
        assert updated.status == "accepted"
        assert updated.id == draft.id
        assert self.storage.get_draft("u1", draft.id).status == "accepted"

    def test_update_rejects_bad_values(self):
        draft = self.storage.save_draft("u1", {"platform": "x", "content": "a"})
        with pytest.raises(DraftValidationError):
            self.storage.update_draft("u1", draft.id, {"status": "published"})
        with pytest.raises(DraftValidationError):
            self.storage.update_draft("u1", draft.id, {"content": ""})

    def test_missing_and_delete(self):
        draft = self.storage.save_draft("u1", {"platform": "x", "content": "a"})
        with pytest.raises(DraftNotFoundError):
            self.storage.get_draft("u2", draft.id)
        self.storage.delete_draft("u1", draft.id)
        with pytest.raises(DraftNotFoundError) as exc:
            self.storage.delete_draft("u1", draft.id)
        assert exc.value.status_code == 404


class TestImageGenerator:
    """Test Replicate polling with mocked HTTP"""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.generator = ImageGenerator(api_token="token", output_dir=self.temp_dir,
                                        poll_interval=0, max_attempts=3)

    def teardown_method(self):
        shutil.rmtree(self.temp_dir)

    def test_success_downloads_image(self):
        with patch.object(http_client, 'request_json') as mock_json, \
                patch.object(http_client, 'request') as mock_request:
            mock_json.side_effect = [
                {"id": "p1", "status": "starting"},
                {"id": "p1", "status": "succeeded", "output": ["https://replicate.delivery/img.webp"]},
            ]
            mock_request.return_value = MagicMock(content=b"image-bytes")

            result = self.generator.generate_image("Post body", "linkedin", "AI", user_id="u1")

        start_payload = mock_json.call_args_list[0].kwargs["json"]["input"]
        assert start_payload["aspect_ratio"] == "16:9"
        assert start_payload["num_inference_steps"] == 4
        assert result["image_url"] == "https://replicate.delivery/img.webp"
        assert result["local_path"].startswith(os.path.join(self.temp_dir, "u1"))
        with open(result["local_path"], "rb") as f:
            assert f.read() == b"image-bytes"

    def test_failed_prediction(self):
        with patch.object(http_client, 'request_json') as mock_json:
            mock_json.return_value = {"id": "p1", "status": "failed", "error": "NSFW"}
            with pytest.raises(ImageGenerationError):
                self.generator.generate_image("Post", "instagram")

    def test_timeout(self):
        with patch.object(http_client, 'request_json') as mock_json:
            mock_json.return_value = {"id": "p1", "status": "processing"}
            with pytest.raises(ImageGenerationTimeout) as exc:
                self.generator.generate_image("Post", "instagram")
        assert exc.value.status_code == 408
        # one start + three polls, every poll checked
        assert mock_json.call_count == 4

    def test_success_on_last_poll(self):
        with patch.object(http_client, 'request_json') as mock_json, \
                patch.object(http_client, 'request') as mock_request:
            mock_json.side_effect = [
                {"id": "p1", "status": "starting"},
                {"id": "p1", "status": "processing"},
                {"id": "p1", "status": "processing"},
                {"id": "p1", "status": "succeeded", "output": ["https://replicate.delivery/late.webp"]},
            ]
            mock_request.return_value = MagicMock(content=b"late")

            result = self.generator.generate_image("Post", "instagram", user_id="u1")

        assert result["image_url"] == "https://replicate.delivery/late.webp"
        assert mock_json.call_count == 4

    def test_finished_start_response_skips_polling(self):
        with patch.object(http_client, 'request_json') as mock_json, \
                patch.object(http_client, 'request') as mock_request:
            mock_json.return_value = {"id": "p1", "status": "succeeded", "output": "https://replicate.delivery/now.webp"}
            mock_request.return_value = MagicMock(content=b"now")

            result = self.generator.generate_image("Post", "linkedin", user_id="u1")

        assert result["image_url"] == "https://replicate.delivery/now.webp"
        assert mock_json.call_count == 1

    def test_x_not_supported(self):
        with pytest.raises(DraftValidationError):
            self.generator.generate_image("Post", "x")


class TestStyleStore:
    """Test style samples with a mocked Chroma collection"""

    def setup_method(self):
        self.embeddings = MagicMock()
        self.embeddings.embed_texts.side_effect = lambda texts: [[0.1, 0.2] for _ in texts]
        self.embeddings.embed_query.return_value = [0.1, 0.2]
        self.chroma = MagicMock()
        self.collection = self.chroma.get_or_create_collection.return_value
        self.store = StyleStore(embeddings_client=self.embeddings, chroma_client=self.chroma,
                                collection_name="test_styles")

    def test_add_samples_in_chunks(self):
        lines = [f"sample {i}" for i in range(150)] + ["", "   "]
        assert self.store.add_samples("u1", "linkedin", lines) == 150
        assert self.collection.add.call_count == 2
        metadata = self.collection.add.call_args_list[0].kwargs["metadatas"][0]
        assert metadata["user_id"] == "u1"
        assert metadata["platform"] == "linkedin"

    def test_add_samples_validation(self):
        with pytest.raises(StyleValidationError):
            self.store.add_samples("u1", "myspace", ["a"])
        with pytest.raises(StyleValidationError):
            self.store.add_samples("u1", "x", ["", "  "])
        with pytest.raises(StyleValidationError):
            self.store.add_samples("u1", "x", "not a list")

    def test_find_similar(self):
        self.collection.get.return_value = {"ids": ["a", "b"]}
        self.collection.query.return_value = {"documents": [["closest", "next"]]}

        assert self.store.find_similar("u1", "x", "AI agents", limit=4) == ["closest", "next"]
        kwargs = self.collection.query.call_args.kwargs
        assert kwargs["n_results"] == 2
        assert kwargs["where"] == {"$and": [{"user_id": "u1"}, {"platform": "x"}]}

    def test_find_similar_without_samples(self):
        self.collection.get.return_value = {"ids": []}
        assert self.store.find_similar("u1", "x", "AI") == []
        self.embeddings.embed_query.assert_not_called()

    def test_delete_other_users_sample(self):
        self.collection.get.return_value = {"metadatas": [{"user_id": "someone-else"}]}
        with pytest.raises(StyleSampleNotFoundError):
            self.store.delete_sample("u1", "sample-id")
        self.collection.delete.assert_not_called()


class TestVoiceAnalysis:
    """Test tone, formatting, phrases and vocabulary"""

    def test_tone_empty(self):
        tones = analyze_tone([])
        assert [t["name"] for t in tones] == ["Professional", "Inspirational", "Casual", "Technical", "Humorous"]
        assert all(t["percentage"] == 0 for t in tones)

    def test_tone_percentages(self):
        tones = {t["name"]: t["percentage"] for t in analyze_tone(["Our business strategy is built on data"])}
        assert tones["Professional"] == 100
        assert tones["Humorous"] == 0

    def test_tone_mix(self):
        tones = {t["name"]: t["percentage"] for t in analyze_tone(["A business idea that will inspire you"])}
        # professional 20, inspirational 25
        assert tones["Professional"] == 44
        assert tones["Inspirational"] == 56

    def test_formatting_habits(self):
        habits = extract_formatting_habits([
            '**Bold** start\n- item one\nWhy? How? Wow!! "quote" and "another" @friend → next...',
            "**again**",
        ])
        assert habits == [
            'Uses bold/emphasis formatting',
            'Uses bullet points and lists',
            'Frequently asks questions',
            'Uses exclamation marks for emphasis',
            'Uses ellipsis for dramatic effect',
            'Uses quotes and citations',
            'Uses mentions and hashtags',
            'Uses arrows and directional indicators',
        ]

    def test_phrase_patterns(self):
        patterns = extract_phrase_patterns([
            "This is a game changer. Moreover it is a deep dive.",
            "Another game changer!",
        ])
        assert patterns[0] == {"text": "game changer", "type": "idiom", "frequency": 2,
                               "context": "Common idiomatic expressions"}
        assert {p["text"] for p in patterns} == {"game changer", "moreover", "deep dive"}

    def test_validate_vocabulary(self):
        items = validate_vocabulary([
            {"text": "ship it", "frequency": 40, "category": "slang", "confidence": 3},
            {"text": ""},
            "nope",
        ] + [{"text": f"w{i}", "frequency": 1, "category": "action", "confidence": 0.4} for i in range(30)])

        assert items[0] == {"text": "ship it", "frequency": 10, "category": "phrase", "confidence": 1.0,
                            "context": "Identified through AI analysis"}
        assert len(items) == 25

    def test_vocabulary_falls_back_to_phrases(self):
        llm = MagicMock()
        llm.generate_json.side_effect = Exception("quota")
        vocabulary = VoiceAnalyzer(llm_client=llm).extract_vocabulary(["Time for a deep dive"])
        assert vocabulary == [{"text": "deep dive", "frequency": 1, "category": "phrase",
                               "confidence": 0.5, "context": "Fallback pattern detection"}]

    def test_vocabulary_falls_back_to_word_frequency(self):
        llm = MagicMock()
        llm.generate_json.return_value = None
        vocabulary = VoiceAnalyzer(llm_client=llm).extract_vocabulary(["shipping shipping daily"])
        assert vocabulary[0]["text"] == "shipping"
        assert vocabulary[0]["frequency"] == 2
        assert vocabulary[0]["category"] == "business"

    def test_word_frequency_skips_stop_words(self):
        assert [v["text"] for v in word_frequency_vocabulary("the and go builders")] == ["builders"]

    def test_analyze_profile(self):
        llm = MagicMock()
        llm.generate_json.return_value = [{"text": "ship it", "frequency": 3, "category": "action",
                                           "confidence": 0.9, "context": "closing line"}]
        profile = VoiceAnalyzer(llm_client=llm).analyze(["Ship it! Ship it!"])
        assert profile["sample_count"] == 1
        assert profile["vocabulary"][0]["text"] == "ship it"
        assert "Uses exclamation marks for emphasis" in profile["formatting_habits"]


class TestGenerateNow:
    """Test the one-click generation workflow"""

    def setup_method(self):
        generate_module.reset_rate_limits()
        self.temp_dir = tempfile.mkdtemp()
        self.sources = SourceStorage(storage_dir=os.path.join(self.temp_dir, "sources"))
        self.drafts = DraftStorage(storage_dir=os.path.join(self.temp_dir, "drafts"))
        self.trends = TrendStorage(storage_dir=os.path.join(self.temp_dir, "trends"))
        self.ingestion = MagicMock()
        self.ingestion.ingest_from_sources.return_value = [
            IngestedContentItem(
                id=f"x_{i}", source_id="s", source_type="x",
                content=f"Post {i} about #Topic{i} and #shared",
                published_at=datetime.now(timezone.utc),
                engagement_metrics=EngagementMetrics(likes=i * 10),
            )
            for i in range(5)
        ]
        self.generator = MagicMock()
        self.generator.generate_drafts.return_value = {
            "x": {"content": "x copy", "threads": [], "is_thread": False},
            "linkedin": {"error": "Failed to generate linkedin content"},
            "instagram": {"content": "ig copy", "threads": [], "is_thread": False},
        }

    def teardown_method(self):
        generate_module.reset_rate_limits()
        shutil.rmtree(self.temp_dir)

    def run(self, user_id="u1", **kwargs):
        return generate_module.generate_now(
            user_id,
            source_storage=self.sources,
            ingestion_service=self.ingestion,
            generator=self.generator,
            draft_storage=self.drafts,
            trend_storage=self.trends,
            **kwargs,
        )

    def test_generates_drafts_for_top_topics(self):
        self.sources.create_source("u1", {"type": "x", "handle": "creator"})

        result = self.run()

        assert result["ok"] is True
        assert len(result["trends"]) == 3
        assert self.generator.generate_drafts.call_count == 3
        # linkedin failed for every topic
        assert len(result["drafts"]) == 6
        assert {d.platform for d in result["drafts"]} == {"x", "instagram"}
        assert self.drafts.list_drafts("u1", limit=50)["pagination"]["total"] == 6
        assert self.trends.get_recent("u1", trend_types=["heuristic"])

    def test_no_active_sources(self):
        with pytest.raises(NoActiveSourcesError) as exc:
            self.run(user_id="nobody")
        assert exc.value.status_code == 400

    def test_platform_filter_without_matches(self):
        self.sources.create_source("u1", {"type": "x", "handle": "creator"})
        with pytest.raises(NoActiveSourcesError):
            self.run(include_platforms=["youtube"])

    def test_rate_limited(self):
        self.sources.create_source("u1", {"type": "x", "handle": "creator"})
        self.run()
        with pytest.raises(RateLimitError) as exc:
            self.run()
        assert exc.value.status_code == 429
        assert 0 < exc.value.retry_after <= 60

    def test_rate_limit_window(self):
        generate_module.check_rate_limit("u9", now=100.0)
        with pytest.raises(RateLimitError) as exc:
            generate_module.check_rate_limit("u9", now=130.0)
        assert exc.value.retry_after == 31
        generate_module.check_rate_limit("u9", now=161.0)
        generate_module.check_rate_limit("other-user", now=161.0)
