"""
Tests for the service facade and the public application wrapper.
"""
from unittest.mock import patch

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from fragrance_lab.app import FragranceLabApp
from fragrance_lab.config import FragranceLabConfig
from fragrance_lab.exceptions import AgentNotInitializedError, EmptyInput, MissingRecipe, ModelCallFailed
from fragrance_lab.schemas import ChatResponse
from fragrance_lab.service import FragranceLabService

CHOICES_REPLY = (
    "Fresh it is!\n"
    "```json\n"
    '{"content": "Pick a top note", "choices": ["Lemon", "Bergamot", "Peppermint"]}\n'
    "```"
)

RECIPE_REPLY = (
    "```json\n"
    '{"content": "Your recipe", "recipe": {"top_notes": ["Lemon"], "middle_notes": ["Rose"], '
    '"base_notes": ["Vanilla"], "name": "First Light"}}\n'
    "```"
)


@pytest.fixture
def config():
    return FragranceLabConfig(warmup_on_start=True)


@pytest.fixture
def lab(config, scripted_model, catalog):
    def _build(*replies):
        lab_app = FragranceLabApp(config)
        lab_app.initialize(language_model=scripted_model(*replies), catalog=catalog)
        return lab_app
    return _build


class TestFragranceLabApp:
    """Test initialization and wiring."""

    def test_use_before_initialize(self, config):
        with pytest.raises(AgentNotInitializedError):
            FragranceLabApp(config).start_session()

    def test_initialize_uses_configured_provider(self, config):
        lab_app = FragranceLabApp(config)
        with patch("fragrance_lab.app.get_llm_instance") as factory:
            factory.return_value = FakeListChatModel(responses=[CHOICES_REPLY])
            lab_app.initialize()

        factory.assert_called_once_with(
            "openai", "gpt-4o-mini", temperature=0.7, timeout=30.0
        )
        session_id = lab_app.start_session().session_id
        assert lab_app.chat(session_id, "fresh please").phase == "top"

    def test_initialize_is_idempotent(self, lab):
        lab_app = lab("ok")
        service = lab_app.service
        lab_app.initialize()
        assert lab_app.service is service

    def test_bundled_catalog_loaded_on_warmup(self, config, scripted_model):
        lab_app = FragranceLabApp(config)
        lab_app.initialize(language_model=scripted_model("ok"))
        assert len(lab_app.service.catalog) == 25


class TestChat:
    """Test turns through the facade."""

    def test_chat_response(self, lab):
        lab_app = lab(CHOICES_REPLY)
        session_id = lab_app.start_session().session_id

        response = lab_app.chat(session_id, "Something fresh for summer")

        assert isinstance(response, ChatResponse)
        assert response.applied
        assert response.phase == "top"
        assert response.message["options"] == ["Lemon", "Bergamot", "Peppermint"]
        assert response.state["loading"] is False
        assert len(lab_app.get_state(session_id).messages) == 2
        assert response.to_dict()["session_id"] == session_id

    def test_model_failure_surfaces_error(self, lab):
        lab_app = lab(ModelCallFailed("Request timed out", status_code=504))
        session_id = lab_app.start_session().session_id

        response = lab_app.chat(session_id, "hello")

        assert not response.applied
        assert response.message is None
        assert response.error_kind == "ModelCallFailed"
        assert response.state["error"] == "Request timed out"
        assert response.state["messages"] == []
        assert response.phase == "welcome"

    def test_violations_reported(self, lab):
        reply = RECIPE_REPLY.replace('"Vanilla"', '"Vanila"')
        lab_app = lab(CHOICES_REPLY, reply)
        session_id = lab_app.start_session().session_id

        lab_app.chat(session_id, "fresh")
        response = lab_app.chat(session_id, "lemon")

        assert response.error_kind == "RecipeValidationFailed"
        assert response.violations == [{
            "category": "base",
            "note": "Vanila",
            "reason": "not in the essential oil catalog",
            "suggestion": "Vanilla",
        }]

    def test_empty_input_raises(self, lab):
        lab_app = lab("ok")
        session_id = lab_app.start_session().session_id

        with pytest.raises(EmptyInput):
            lab_app.chat(session_id, "   ")

        assert lab_app.get_state(session_id).loading is False

    def test_unknown_session_is_created(self, lab):
        lab_app = lab(CHOICES_REPLY)
        response = lab_app.chat("fresh-session", "hello")
        assert response.session_id == "fresh-session"

    def test_end_session(self, lab):
        lab_app = lab("ok")
        session_id = lab_app.start_session().session_id

        lab_app.end_session(session_id)

        assert lab_app.get_state(session_id) is None


class TestRegenerateNote:
    """Test note regeneration through the facade."""

    def test_requires_recipe(self, lab):
        lab_app = lab("ok")
        session_id = lab_app.start_session().session_id

        with pytest.raises(MissingRecipe):
            lab_app.regenerate_note(session_id, "top", "brighter")

    def test_regenerates_after_recipe(self, lab):
        regen = '```json\n{"notes": {"base": ["Sandalwood"]}}\n```'
        lab_app = lab(CHOICES_REPLY, RECIPE_REPLY, regen)
        session_id = lab_app.start_session().session_id
        lab_app.chat(session_id, "fresh")
        lab_app.chat(session_id, "lemon")

        response = lab_app.regenerate_note(session_id, "base", "woodier")

        assert response.applied
        assert response.phase == "middle"
        assert response.state["recipe"]["base_notes"] == ["Sandalwood"]
        assert response.state["recipe"]["top_notes"] == ["Lemon"]


class TestLazyWarmup:
    def test_service_warms_up_on_first_turn(self, scripted_model, catalog):
        service = FragranceLabService(FragranceLabConfig(warmup_on_start=False))
        service.set_language_model(scripted_model(CHOICES_REPLY))
        service.set_catalog(catalog)

        response = service.chat(service.start_session().session_id, "hello")

        assert response.phase == "top"

    def test_warmup_without_model(self):
        service = FragranceLabService(FragranceLabConfig())
        with pytest.raises(AgentNotInitializedError):
            service.warmup()
