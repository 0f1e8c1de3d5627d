"""Unit tests for the conversation controller state machine."""

import asyncio

import pytest

from chat_widget.adapters.outbound.storage import InMemoryKeyValueStore
from chat_widget.application.dtos.chat import ChatReply
from chat_widget.application.errors import NetworkFailure, ServerError, ValidationError
from chat_widget.application.use_cases.user_messages_de import UserMessagesDE
from chat_widget.domain.entities.conversation_state import ConversationMode
from tests.support.fakes import ControllerHarness, FailingKeyValueStore


@pytest.fixture
def harness():
    """Create a controller wired to in-memory doubles."""
    return ControllerHarness()


async def _mounted(harness: ControllerHarness) -> ControllerHarness:
    await harness.controller.mount()
    return harness


async def _into_lead_form(harness: ControllerHarness) -> None:
    harness.chat.replies.append(ChatReply(answer="Gerne!", intent="lead"))
    await harness.controller.send_message("Ich möchte ein Angebot")
    harness.controller.confirm_lead()


def _fill(update, **overrides):
    fields = {"name": "Erika", "email": "erika@example.com", "consent": True}
    fields.update(overrides)
    update(**fields)


@pytest.mark.asyncio
async def test_mount_creates_session_and_loads_history(harness):
    """Test that mounting yields a session and its transcript."""
    harness.history.payloads["session-1"] = {
        "messages": [{"userMessage": "Hallo", "botAnswer": "Hi!"}]
    }

    session_id = await harness.controller.mount()

    assert session_id == "session-1"
    assert harness.controller.session_id == "session-1"
    assert harness.transcript() == [("user", "Hallo"), ("assistant", "Hi!")]
    assert harness.controller.state.last_user_message == "Hallo"
    assert harness.controller.mode == ConversationMode.IDLE
    assert not harness.controller.is_ephemeral


@pytest.mark.asyncio
async def test_send_message_appends_user_and_assistant(harness):
    """Test a plain chat turn."""
    await _mounted(harness)
    harness.chat.replies.append(ChatReply(answer="Hi!", intent="other"))

    reply = await harness.controller.send_message("Hallo")

    assert reply.answer == "Hi!"
    assert harness.chat.sent == [("session-1", "Hallo")]
    assert harness.transcript() == [("user", "Hallo"), ("assistant", "Hi!")]
    assert harness.controller.mode == ConversationMode.IDLE
    assert not harness.controller.state.loading


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   "])
async def test_empty_message_is_ignored(harness, text):
    """Test that blank input is not sent."""
    await _mounted(harness)

    assert await harness.controller.send_message(text) is None
    assert harness.chat.sent == []
    assert harness.transcript() == []


@pytest.mark.asyncio
async def test_empty_answer_is_not_appended(harness):
    """Test that a reply without answer text adds no assistant message."""
    await _mounted(harness)
    harness.chat.replies.append(ChatReply(answer="", intent="support"))

    await harness.controller.send_message("Hilfe")

    assert harness.transcript() == [("user", "Hilfe")]
    assert harness.controller.mode == ConversationMode.SUPPORT_FORM_OPEN


@pytest.mark.asyncio
async def test_lead_intent_awaits_confirmation(harness):
    """Test that a lead intent asks before opening the form."""
    await _mounted(harness)
    harness.chat.replies.append(ChatReply(answer="Gerne!", intent="lead"))

    await harness.controller.send_message("Angebot bitte")

    assert harness.controller.mode == ConversationMode.AWAITING_LEAD_CONFIRMATION
    assert not harness.controller.state.lead_form_visible


@pytest.mark.asyncio
async def test_lead_intent_opens_form_without_confirmation_step():
    """Test the direct variant of the lead flow."""
    harness = await _mounted(ControllerHarness(lead_confirmation_step=False))
    harness.chat.replies.append(ChatReply(answer="Gerne!", intent="lead"))

    await harness.controller.send_message("Angebot bitte")

    assert harness.controller.mode == ConversationMode.LEAD_FORM_OPEN
    assert harness.controller.state.lead_form_visible


@pytest.mark.asyncio
async def test_confirm_lead_opens_form(harness):
    """Test accepting the contact offer."""
    await _mounted(harness)
    await _into_lead_form(harness)

    assert harness.controller.mode == ConversationMode.LEAD_FORM_OPEN
    assert harness.transcript()[-1] == ("assistant", UserMessagesDE.LEAD_CONFIRMED_ACK)


@pytest.mark.asyncio
async def test_decline_lead_returns_to_idle(harness):
    """Test declining the contact offer."""
    await _mounted(harness)
    harness.chat.replies.append(ChatReply(answer="Gerne!", intent="lead"))
    await harness.controller.send_message("Angebot bitte")

    assert harness.controller.decline_lead() is True

    assert harness.controller.mode == ConversationMode.IDLE
    assert harness.transcript()[-1] == ("assistant", UserMessagesDE.LEAD_DECLINED_ACK)


@pytest.mark.asyncio
async def test_confirm_outside_awaiting_is_noop(harness):
    """Test that confirm/decline only act while a confirmation is pending."""
    await _mounted(harness)

    assert harness.controller.confirm_lead() is False
    assert harness.controller.decline_lead() is False
    assert harness.controller.mode == ConversationMode.IDLE
    assert harness.transcript() == []


@pytest.mark.asyncio
async def test_other_intent_closes_pending_lead_offer(harness):
    """Test that a non-lead intent returns to plain chat."""
    await _mounted(harness)
    harness.chat.replies.extend(
        [ChatReply(answer="Gerne!", intent="lead"), ChatReply(answer="49 EUR", intent="other")]
    )
    await harness.controller.send_message("Angebot bitte")

    await harness.controller.send_message("Was kostet es?")

    assert harness.controller.mode == ConversationMode.IDLE


@pytest.mark.asyncio
async def test_lead_intent_keeps_open_form(harness):
    """Test that a repeated lead intent does not close the form being filled."""
    await _mounted(harness)
    await _into_lead_form(harness)
    harness.controller.update_lead_form(name="Erika")
    harness.chat.replies.append(ChatReply(answer="Noch Fragen?", intent="lead"))

    await harness.controller.send_message("Und Rabatt?")

    assert harness.controller.mode == ConversationMode.LEAD_FORM_OPEN
    assert harness.controller.state.lead_form.name == "Erika"


@pytest.mark.asyncio
async def test_support_intent_replaces_lead_flow(harness):
    """Test that lead and support modes are mutually exclusive."""
    await _mounted(harness)
    await _into_lead_form(harness)
    harness.chat.replies.append(ChatReply(answer="Oh nein", intent="support"))

    await harness.controller.send_message("Login kaputt")

    assert harness.controller.mode == ConversationMode.SUPPORT_FORM_OPEN
    assert not harness.controller.state.lead_form_visible


@pytest.mark.asyncio
async def test_support_button_opens_form_from_any_mode(harness):
    """Test the explicit support action."""
    await _mounted(harness)
    harness.chat.replies.append(ChatReply(answer="Gerne!", intent="lead"))
    await harness.controller.send_message("Angebot bitte")

    harness.controller.open_support()

    assert harness.controller.mode == ConversationMode.SUPPORT_FORM_OPEN


@pytest.mark.asyncio
async def test_update_form_rejects_unknown_fields(harness):
    """Test that only contact fields can be set."""
    await _mounted(harness)

    with pytest.raises(ValueError):
        harness.controller.update_lead_form(company="ACME")


@pytest.mark.asyncio
async def test_submit_lead_success(harness):
    """Test a completed lead flow."""
    await _mounted(harness)
    await _into_lead_form(harness)
    _fill(harness.controller.update_lead_form)

    assert await harness.controller.submit_lead() is True

    assert harness.controller.mode == ConversationMode.LEAD_SUBMITTED
    assert harness.transcript()[-1] == ("assistant", UserMessagesDE.LEAD_THANK_YOU)
    assert harness.controller.state.lead_form.name == ""
    assert harness.leads.payloads[0].message == "Ich möchte ein Angebot"
    assert len(harness.tickets.payloads) == 1


@pytest.mark.asyncio
async def test_submit_lead_validation_error_keeps_form_open(harness):
    """Test the inline error for a lead without email."""
    await _mounted(harness)
    await _into_lead_form(harness)
    _fill(harness.controller.update_lead_form, email="")

    assert await harness.controller.submit_lead() is False

    assert harness.controller.mode == ConversationMode.LEAD_FORM_OPEN
    assert harness.controller.state.lead_form.error == UserMessagesDE.LEAD_MISSING_FIELDS
    assert harness.controller.state.lead_form.name == "Erika"
    assert harness.leads.payloads == []


@pytest.mark.asyncio
async def test_submit_lead_total_failure_keeps_form_open(harness):
    """Test the inline error when no collaborator accepted the lead."""
    await _mounted(harness)
    await _into_lead_form(harness)
    _fill(harness.controller.update_lead_form)
    harness.leads.fail = True
    harness.tickets.fail = True

    assert await harness.controller.submit_lead() is False

    assert harness.controller.mode == ConversationMode.LEAD_FORM_OPEN
    assert harness.controller.state.lead_form.error == UserMessagesDE.SUBMISSION_FAILED


@pytest.mark.asyncio
async def test_submit_lead_requires_open_form(harness):
    """Test that submitting outside the lead form does nothing."""
    await _mounted(harness)

    assert await harness.controller.submit_lead() is False
    assert harness.leads.payloads == []


@pytest.mark.asyncio
async def test_submit_support_success(harness):
    """Test a completed support flow."""
    await _mounted(harness)
    harness.chat.replies.append(ChatReply(answer="Das tut mir leid.", intent="other"))
    await harness.controller.send_message("Login geht nicht")
    harness.controller.open_support()
    _fill(harness.controller.update_support_form)

    assert await harness.controller.submit_support() is True

    assert harness.controller.mode == ConversationMode.SUPPORT_SUBMITTED
    assert harness.transcript()[-1] == ("assistant", UserMessagesDE.SUPPORT_TICKET_CREATED)
    ticket = harness.tickets.payloads[0]
    assert ticket.message == "Login geht nicht"
    assert ticket.last_messages == ["user: Login geht nicht", "assistant: Das tut mir leid."]


@pytest.mark.asyncio
async def test_submit_support_failure_sets_error(harness):
    """Test the inline error when ticket creation fails."""
    await _mounted(harness)
    harness.controller.open_support()
    _fill(harness.controller.update_support_form)
    harness.tickets.fail = True

    assert await harness.controller.submit_support() is False
    assert harness.controller.state.support_form.error == UserMessagesDE.SUBMISSION_FAILED
    assert harness.controller.mode == ConversationMode.SUPPORT_FORM_OPEN


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [NetworkFailure("down"), ServerError("500", status_code=500)])
async def test_chat_failure_keeps_user_message_and_allows_retry(harness, error):
    """Test that a failed send can be retried."""
    await _mounted(harness)
    harness.chat.replies.extend([error, ChatReply(answer="Hi!", intent="other")])

    assert await harness.controller.send_message("Hallo") is None
    assert harness.transcript() == [("user", "Hallo")]
    assert harness.controller.state.failed_message == "Hallo"
    assert not harness.controller.state.loading

    await harness.controller.retry_failed_message()

    assert harness.transcript() == [("user", "Hallo"), ("assistant", "Hi!")]
    assert harness.controller.state.failed_message is None
    assert harness.chat.sent == [("session-1", "Hallo"), ("session-1", "Hallo")]


@pytest.mark.asyncio
async def test_send_while_loading_is_ignored(harness):
    """Test that only one chat request is in flight."""
    await _mounted(harness)
    harness.chat.gate = asyncio.Event()
    harness.chat.replies.append(ChatReply(answer="Hi!", intent="other"))

    first = asyncio.create_task(harness.controller.send_message("Hallo"))
    await asyncio.sleep(0)
    assert harness.controller.state.loading
    assert await harness.controller.send_message("Noch da?") is None
    harness.chat.gate.set()
    await first

    assert harness.chat.sent == [("session-1", "Hallo")]


@pytest.mark.asyncio
async def test_reset_starts_new_session(harness):
    """Test that reset clears transcript, mode and forms under a new id."""
    await _mounted(harness)
    await _into_lead_form(harness)
    harness.controller.update_lead_form(name="Erika")

    new_id = await harness.controller.reset()

    assert new_id == "session-2"
    assert harness.controller.session_id == "session-2"
    assert harness.transcript() == []
    assert harness.controller.mode == ConversationMode.IDLE
    assert harness.controller.state.lead_form.name == ""
    assert await harness.store.get("yjar_chat_session_id") == "session-2"
    assert harness.history.calls == ["session-1", "session-2"]


@pytest.mark.asyncio
async def test_reply_after_reset_is_discarded(harness):
    """Test that a chat reply for the old session never reaches the new one."""
    await _mounted(harness)
    harness.chat.gate = asyncio.Event()
    harness.chat.replies.append(ChatReply(answer="Alt", intent="lead"))

    task = asyncio.create_task(harness.controller.send_message("Hallo"))
    await asyncio.sleep(0)
    await harness.controller.reset()
    harness.chat.gate.set()

    assert await task is None
    assert harness.transcript() == []
    assert harness.controller.mode == ConversationMode.IDLE


@pytest.mark.asyncio
async def test_history_for_old_session_is_discarded_after_reset(harness):
    """Test the history race between mount and reset."""
    harness.history.payloads["session-1"] = {"messages": [{"role": "user", "content": "alt"}]}
    harness.history.gate = asyncio.Event()

    mount = asyncio.create_task(harness.controller.mount())
    await asyncio.sleep(0)
    reset = asyncio.create_task(harness.controller.reset())
    await asyncio.sleep(0)
    harness.history.gate.set()
    await mount
    await reset

    assert harness.controller.session_id == "session-2"
    assert harness.transcript() == []


@pytest.mark.asyncio
async def test_messages_sent_during_history_load_follow_history(harness):
    """Test that local messages are kept after a late history response."""
    harness.history.payloads["session-1"] = {
        "messages": [{"userMessage": "Früher", "botAnswer": "Damals"}]
    }
    harness.history.gate = asyncio.Event()
    harness.chat.replies.append(ChatReply(answer="Hi!", intent="other"))

    mount = asyncio.create_task(harness.controller.mount())
    await asyncio.sleep(0)
    await harness.controller.send_message("Hallo")
    harness.history.gate.set()
    await mount

    assert harness.transcript() == [
        ("user", "Früher"),
        ("assistant", "Damals"),
        ("user", "Hallo"),
        ("assistant", "Hi!"),
    ]
    assert harness.controller.state.last_user_message == "Hallo"


@pytest.mark.asyncio
async def test_storage_unavailable_degrades_to_ephemeral_session():
    """Test that the widget stays usable without durable storage."""
    harness = ControllerHarness(store=FailingKeyValueStore())
    harness.chat.replies.append(ChatReply(answer="Hi!", intent="other"))

    session_id = await harness.controller.mount()
    await harness.controller.send_message("Hallo")

    assert session_id
    assert harness.controller.is_ephemeral
    assert harness.transcript() == [("user", "Hallo"), ("assistant", "Hi!")]

    new_id = await harness.controller.reset()
    assert new_id != session_id


@pytest.mark.asyncio
async def test_vote_through_controller(harness):
    """Test voting buttons enable state and at-most-once submission."""
    await _mounted(harness)
    harness.chat.replies.append(ChatReply(answer="Hi!", intent="other"))
    await harness.controller.send_message("Hallo")

    assert not harness.controller.can_vote(0)
    assert harness.controller.can_vote(1)
    assert await harness.controller.vote(1, "up") is True
    assert await harness.controller.vote(1, "up") is False
    assert not harness.controller.can_vote(1)
    assert len(harness.feedback.payloads) == 1

    with pytest.raises(ValidationError):
        await harness.controller.vote(0, "up")


@pytest.mark.asyncio
async def test_durable_feedback_marks_restored_on_mount():
    """Test that votes persisted for a session disable buttons after a reload."""
    store = InMemoryKeyValueStore()
    history = {
        "messages": [
            {"role": "user", "content": "Hallo"},
            {"role": "assistant", "content": "Hi!"},
        ]
    }

    first = ControllerHarness(store=store, feedback_store=store)
    first.history.payloads["session-1"] = history
    await first.controller.mount()
    await first.controller.vote(1, "down")

    reloaded = ControllerHarness(store=store, feedback_store=store)
    reloaded.history.payloads["session-1"] = history
    await reloaded.controller.mount()

    assert reloaded.controller.session_id == "session-1"
    assert not reloaded.controller.can_vote(1)


@pytest.mark.asyncio
async def test_vote_during_history_load_follows_its_message(harness):
    """Test that a vote cast before the history arrived stays on the voted message."""
    harness.history.payloads["session-1"] = {
        "messages": [{"userMessage": "Früher", "botAnswer": "Damals"}]
    }
    harness.history.gate = asyncio.Event()
    harness.chat.replies.append(ChatReply(answer="Neu!", intent="other"))

    mount = asyncio.create_task(harness.controller.mount())
    await asyncio.sleep(0)
    await harness.controller.send_message("Hallo")
    assert await harness.controller.vote(1, "up") is True
    harness.history.gate.set()
    await mount

    assert harness.transcript()[3] == ("assistant", "Neu!")
    assert not harness.controller.can_vote(3)
    assert harness.controller.can_vote(1)
    assert await harness.controller.vote(3, "down") is False
    assert len(harness.feedback.payloads) == 1


@pytest.mark.asyncio
async def test_vote_in_flight_across_history_merge(harness):
    """Test that a vote resolving after the history merge marks the shifted message."""
    harness.history.payloads["session-1"] = {
        "messages": [{"userMessage": "Früher", "botAnswer": "Damals"}]
    }
    harness.history.gate = asyncio.Event()
    harness.chat.replies.append(ChatReply(answer="Neu!", intent="other"))
    feedback_gate = asyncio.Event()
    submitted = []

    async def slow_submit(payload):
        await feedback_gate.wait()
        submitted.append(payload)

    harness.feedback.submit = slow_submit

    mount = asyncio.create_task(harness.controller.mount())
    await asyncio.sleep(0)
    await harness.controller.send_message("Hallo")
    vote = asyncio.create_task(harness.controller.vote(1, "up"))
    await asyncio.sleep(0)
    harness.history.gate.set()
    await mount

    assert not harness.controller.can_vote(3)
    assert harness.controller.can_vote(1)

    feedback_gate.set()
    assert await vote is True
    assert not harness.controller.can_vote(3)
    assert harness.controller.can_vote(1)
    assert len(submitted) == 1


@pytest.mark.asyncio
async def test_durable_vote_during_history_load_is_stored_under_merged_index():
    """Test that persisted marks use the index the message has after the merge."""
    store = InMemoryKeyValueStore()
    harness = ControllerHarness(store=store, feedback_store=store)
    harness.history.payloads["session-1"] = {
        "messages": [{"userMessage": "Früher", "botAnswer": "Damals"}]
    }
    harness.history.gate = asyncio.Event()
    harness.chat.replies.append(ChatReply(answer="Neu!", intent="other"))

    mount = asyncio.create_task(harness.controller.mount())
    await asyncio.sleep(0)
    await harness.controller.send_message("Hallo")
    await harness.controller.vote(1, "up")
    harness.history.gate.set()
    await mount

    prefix = f"chat_widget:feedback:{harness.hasher.hash('session-1')}"
    assert await store.get(f"{prefix}:3") == "up"
    assert await store.get(f"{prefix}:1") is None
    assert harness.controller.can_vote(1)


@pytest.mark.asyncio
async def test_cleared_optional_field_is_not_sent_as_text(harness):
    """Test that None form values are stored as empty fields."""
    await _mounted(harness)
    harness.controller.open_support()
    harness.controller.update_support_form(
        name="Erika", email="erika@example.com", phone=None, consent=True
    )

    assert harness.controller.state.support_form.phone == ""
    assert await harness.controller.submit_support() is True
    assert harness.tickets.payloads[0].phone is None


@pytest.mark.asyncio
async def test_none_required_field_fails_validation(harness):
    """Test that a None email counts as empty."""
    await _mounted(harness)
    await _into_lead_form(harness)
    harness.controller.update_lead_form(name="Erika", email=None, consent=True)

    assert await harness.controller.submit_lead() is False
    assert harness.controller.state.lead_form.error == UserMessagesDE.LEAD_MISSING_FIELDS
    assert harness.leads.payloads == []


@pytest.mark.asyncio
async def test_reply_without_intent_closes_open_lead_form(harness):
    """Test that a missing intent returns to idle and hides the lead form."""
    await _mounted(harness)
    await _into_lead_form(harness)
    harness.chat.replies.append(ChatReply(answer="Gern geschehen.", intent=None))

    await harness.controller.send_message("Danke, doch nicht")

    assert harness.controller.mode == ConversationMode.IDLE
    assert not harness.controller.state.lead_form_visible


@pytest.mark.asyncio
async def test_other_intent_closes_open_support_form(harness):
    """Test that intent "other" returns to idle and hides the support form."""
    await _mounted(harness)
    harness.controller.open_support()
    assert harness.controller.state.support_form_visible
    harness.chat.replies.append(ChatReply(answer="Schon gelöst?", intent="other"))

    await harness.controller.send_message("Hat sich erledigt")

    assert harness.controller.mode == ConversationMode.IDLE
    assert not harness.controller.state.support_form_visible
