"""Tests for the adaptive question flow.

Tests the resolver against a scripted fake service covering:
- Auto-fill from the profile and when it is skipped
- User submissions, validation and concurrency rules
- Report generation and store lifetimes
- Transport failures, retry and abandonment
"""

import asyncio

import pytest

from api.models.question import NumberAnswer, ResponseType, SingleChoiceAnswer, TextAnswer
from api.models.session import SubmitAnswerResponse
from assessment.errors import AnswerValidationError, InvalidStateError
from assessment.resolver import FlowResolver, FlowState
from conftest import FakeAssessmentService, make_question

NAME = make_question("q_name", "What is your name?")
AGE = make_question("q_age", "What is your age?", ResponseType.NUMBER, reusable=True)


def make_resolver(service, profile, scratchpad, reports, **kwargs) -> FlowResolver:
    return FlowResolver(service, profile, scratchpad, reports, **kwargs)


# =============================================================================
# Auto-fill
# =============================================================================


class TestAutoFill:
    async def test_reusable_question_is_answered_from_profile(
        self, profile, scratchpad, reports, color_question
    ):
        profile.set("q_color", color_question.text, "Blue")
        service = FakeAssessmentService(color_question, {"q_color": NAME})
        resolver = make_resolver(service, profile, scratchpad, reports)

        state = await resolver.begin()

        assert state == FlowState.AWAITING_USER
        assert resolver.question == NAME
        _, question, answer = service.submitted[0]
        assert question == color_question
        assert answer == SingleChoiceAnswer(
            value="o1", selected_option_id="o1", selected_option_label="Blue"
        )
        assert resolver.auto_filled_count == 1
        assert resolver.visible_count == 1

        record = scratchpad.get_all()[0]
        assert record.auto_filled
        assert record.answer_text == "Blue"
        assert [(qa.question, qa.answer) for qa in resolver.answered] == [
            (color_question.text, "Blue")
        ]

    async def test_schema_drift_submits_literal_text(
        self, profile, scratchpad, reports, color_question
    ):
        profile.set("q_color", color_question.text, "Green")
        service = FakeAssessmentService(color_question, {"q_color": NAME})
        resolver = make_resolver(service, profile, scratchpad, reports)

        await resolver.begin()

        answer = service.submitted[0][2]
        assert answer.selected_option_id == "Green"
        assert answer.selected_option_label == "Green"

    async def test_non_reusable_question_is_always_asked(self, profile, scratchpad, reports):
        profile.set("q_name", NAME.text, "Stale")
        service = FakeAssessmentService(NAME)
        resolver = make_resolver(service, profile, scratchpad, reports)

        state = await resolver.begin()

        assert state == FlowState.AWAITING_USER
        assert resolver.question == NAME
        assert service.submitted == []

    async def test_auto_fill_does_not_rewrite_profile(
        self, kv, profile, scratchpad, reports, color_question
    ):
        profile.set("q_color", color_question.text, "Blue")
        before = kv._read("HA_PROFILE_ANSWERS")
        service = FakeAssessmentService(color_question, {"q_color": NAME})

        await make_resolver(service, profile, scratchpad, reports).begin()

        assert kv._read("HA_PROFILE_ANSWERS") == before

    async def test_chain_of_auto_fills_runs_to_completion(
        self, profile, scratchpad, reports, color_question
    ):
        profile.set("q_color", color_question.text, "Red")
        profile.set("q_age", AGE.text, "34")
        service = FakeAssessmentService(color_question, {"q_color": AGE, "q_age": None})
        resolver = make_resolver(service, profile, scratchpad, reports)

        state = await resolver.begin()

        assert state == FlowState.DONE
        assert resolver.visible_count == 0
        assert len(service.report_requests) == 1
        assert [(qa.question, qa.answer) for qa in service.report_requests[0]] == [
            (color_question.text, "Red"),
            (AGE.text, "34"),
        ]
        assert scratchpad.get_all() == []

    async def test_auto_fill_depth_is_capped(self, profile, scratchpad, reports, color_question):
        profile.set("q_color", color_question.text, "Blue")
        # Misbehaving source: keeps asking the same cached question
        service = FakeAssessmentService(color_question, {"q_color": color_question})
        resolver = make_resolver(service, profile, scratchpad, reports, max_autofill_depth=3)

        state = await resolver.begin()

        assert state == FlowState.FAILED
        assert len(service.submitted) == 3
        assert "consecutive" in str(resolver.error)


# =============================================================================
# User submissions
# =============================================================================


class TestSubmit:
    async def test_end_to_end_scenario(self, profile, scratchpad, reports):
        service = FakeAssessmentService(NAME, {"q_name": AGE, "q_age": None})
        resolver = make_resolver(service, profile, scratchpad, reports)

        assert await resolver.begin() == FlowState.AWAITING_USER
        assert resolver.question.text == "What is your name?"

        assert await resolver.submit(TextAnswer(value="Alex")) == FlowState.AWAITING_USER
        assert resolver.question.text == "What is your age?"

        assert await resolver.submit(NumberAnswer(value="34")) == FlowState.DONE

        assert [(qa.question, qa.answer) for qa in service.report_requests[0]] == [
            ("What is your name?", "Alex"),
            ("What is your age?", "34"),
        ]
        assert scratchpad.get_all() == []
        assert [r.question_id for r in resolver.completed_records] == ["q_name", "q_age"]
        assert [(p.question, p.answer) for p in profile.get_all()] == [
            ("What is your age?", "34")
        ]
        assert reports.get_latest() == service.report
        assert resolver.report == service.report
        assert service.ended == ["session-1"]

    async def test_invalid_answer_keeps_state_and_skips_network(
        self, profile, scratchpad, reports
    ):
        service = FakeAssessmentService(NAME)
        resolver = make_resolver(service, profile, scratchpad, reports)
        await resolver.begin()

        with pytest.raises(AnswerValidationError):
            await resolver.submit(TextAnswer(value="  "))
        with pytest.raises(AnswerValidationError):
            await resolver.submit(NumberAnswer(value="3"))

        assert resolver.state == FlowState.AWAITING_USER
        assert service.submitted == []
        assert scratchpad.get_all() == []

    async def test_submit_outside_awaiting_user_is_rejected(self, profile, scratchpad, reports):
        resolver = make_resolver(FakeAssessmentService(NAME), profile, scratchpad, reports)

        with pytest.raises(InvalidStateError):
            await resolver.submit(TextAnswer(value="Alex"))

    async def test_second_submit_while_submitting_is_rejected(
        self, profile, scratchpad, reports
    ):
        service = FakeAssessmentService(NAME, {"q_name": AGE})
        resolver = make_resolver(service, profile, scratchpad, reports)
        await resolver.begin()
        service.submit_gate = asyncio.Event()

        first = asyncio.create_task(resolver.submit(TextAnswer(value="Alex")))
        await service.submit_started.wait()

        assert resolver.state == FlowState.SUBMITTING
        with pytest.raises(InvalidStateError):
            await resolver.submit(TextAnswer(value="Sam"))

        service.submit_gate.set()
        assert await first == FlowState.AWAITING_USER
        assert len(service.submitted) == 1

    async def test_completion_status_wins_over_question(self, profile, scratchpad, reports):
        class AmbiguousService(FakeAssessmentService):
            async def submit_answer(self, session_id, question, answer):
                self.submitted.append((session_id, question, answer))
                return SubmitAnswerResponse(
                    session_id=session_id, status="completed", question=AGE
                )

        service = AmbiguousService(NAME)
        resolver = make_resolver(service, profile, scratchpad, reports)
        await resolver.begin()

        assert await resolver.submit(TextAnswer(value="Alex")) == FlowState.DONE

    async def test_begin_discards_interrupted_scratchpad(self, profile, scratchpad, reports):
        service = FakeAssessmentService(NAME, {"q_name": AGE})
        first = make_resolver(service, profile, scratchpad, reports)
        await first.begin()
        await first.submit(TextAnswer(value="Alex"))
        assert len(scratchpad.get_all()) == 1

        # Process restarts mid-assessment
        second = make_resolver(service, profile, scratchpad, reports)
        await second.begin()

        assert scratchpad.get_all() == []
        assert second.answered == []

    async def test_begin_while_in_progress_is_rejected(self, profile, scratchpad, reports):
        resolver = make_resolver(FakeAssessmentService(NAME), profile, scratchpad, reports)
        await resolver.begin()

        with pytest.raises(InvalidStateError):
            await resolver.begin()


# =============================================================================
# Failures and retry
# =============================================================================


class TestFailures:
    async def test_start_failure_then_retry(self, profile, scratchpad, reports):
        service = FakeAssessmentService(NAME)
        service.fail("start")
        resolver = make_resolver(service, profile, scratchpad, reports)

        assert await resolver.begin() == FlowState.FAILED
        assert resolver.error.status_code == 503

        assert await resolver.retry() == FlowState.AWAITING_USER
        assert resolver.error is None

    async def test_submit_failure_keeps_answers_and_retries_same_submission(
        self, profile, scratchpad, reports
    ):
        service = FakeAssessmentService(NAME, {"q_name": AGE})
        resolver = make_resolver(service, profile, scratchpad, reports)
        await resolver.begin()
        service.fail("submit")

        assert await resolver.submit(TextAnswer(value="Alex")) == FlowState.FAILED
        assert [qa.answer for qa in resolver.answered] == ["Alex"]
        assert len(scratchpad.get_all()) == 1

        assert await resolver.retry() == FlowState.AWAITING_USER
        assert resolver.question == AGE
        assert [qa.answer for qa in resolver.answered] == ["Alex"]
        assert [s[2] for s in service.submitted] == [
            TextAnswer(value="Alex"),
            TextAnswer(value="Alex"),
        ]

    async def test_auto_fill_failure_keeps_answers(
        self, profile, scratchpad, reports, color_question
    ):
        profile.set("q_color", color_question.text, "Blue")
        service = FakeAssessmentService(color_question, {"q_color": NAME})
        service.fail("submit")
        resolver = make_resolver(service, profile, scratchpad, reports)

        assert await resolver.begin() == FlowState.FAILED
        assert [qa.answer for qa in resolver.answered] == ["Blue"]

        assert await resolver.retry() == FlowState.AWAITING_USER
        assert [qa.answer for qa in resolver.answered] == ["Blue"]

    async def test_report_failure_keeps_scratchpad_until_retry(
        self, profile, scratchpad, reports
    ):
        service = FakeAssessmentService(NAME)
        service.fail("report")
        resolver = make_resolver(service, profile, scratchpad, reports)
        await resolver.begin()

        assert await resolver.submit(TextAnswer(value="Alex")) == FlowState.FAILED
        assert len(scratchpad.get_all()) == 1
        assert not reports.has_reports()

        assert await resolver.retry() == FlowState.DONE
        assert scratchpad.get_all() == []
        assert reports.has_reports()
        assert service.report_requests[0] == service.report_requests[1]

    async def test_retry_without_failure_is_rejected(self, profile, scratchpad, reports):
        resolver = make_resolver(FakeAssessmentService(NAME), profile, scratchpad, reports)

        with pytest.raises(InvalidStateError):
            await resolver.retry()


# =============================================================================
# Abandonment
# =============================================================================


class TestAbandon:
    async def test_abandon_clears_scratchpad_without_report(self, profile, scratchpad, reports):
        service = FakeAssessmentService(NAME, {"q_name": AGE})
        resolver = make_resolver(service, profile, scratchpad, reports)
        await resolver.begin()
        await resolver.submit(TextAnswer(value="Alex"))

        assert await resolver.abandon() == FlowState.DONE

        assert scratchpad.get_all() == []
        assert service.report_requests == []
        assert not reports.has_reports()
        assert service.ended == ["session-1"]

    async def test_response_after_abandon_is_ignored(
        self, profile, scratchpad, reports, color_question
    ):
        next_reusable = make_question("q_age", "What is your age?", ResponseType.NUMBER, reusable=True)
        profile.set("q_age", next_reusable.text, "34")
        service = FakeAssessmentService(color_question, {"q_color": next_reusable})
        resolver = make_resolver(service, profile, scratchpad, reports)
        await resolver.begin()
        service.submit_gate = asyncio.Event()

        pending = asyncio.create_task(
            resolver.submit(
                SingleChoiceAnswer(
                    value="o2", selected_option_id="o2", selected_option_label="Red"
                )
            )
        )
        await service.submit_started.wait()
        await resolver.abandon()
        service.submit_gate.set()

        assert await pending == FlowState.DONE
        # The auto-fill that would have followed never ran
        assert scratchpad.get_all() == []
        assert len(service.submitted) == 1
        assert service.report_requests == []

    async def test_report_after_abandon_is_not_archived(self, profile, scratchpad, reports):
        service = FakeAssessmentService(NAME)
        resolver = make_resolver(service, profile, scratchpad, reports)
        await resolver.begin()
        service.report_gate = asyncio.Event()

        pending = asyncio.create_task(resolver.submit(TextAnswer(value="Alex")))
        await service.report_started.wait()
        await resolver.abandon()
        service.report_gate.set()

        assert await pending == FlowState.DONE
        assert not reports.has_reports()
        assert reports.get_all() == []
        assert scratchpad.get_all() == []
        assert resolver.report is None
        assert service.ended == ["session-1"]

    async def test_abandon_during_auto_fill(self, profile, scratchpad, reports, color_question):
        profile.set("q_color", color_question.text, "Red")
        service = FakeAssessmentService(color_question)
        service.submit_gate = asyncio.Event()
        resolver = make_resolver(service, profile, scratchpad, reports)

        pending = asyncio.create_task(resolver.begin())
        await service.submit_started.wait()
        assert resolver.state == FlowState.RESOLVING
        await resolver.abandon()
        service.submit_gate.set()

        assert await pending == FlowState.DONE
        assert scratchpad.get_all() == []
        assert service.report_requests == []
        assert not reports.has_reports()

    async def test_session_started_after_abandon_is_ended(self, profile, scratchpad, reports):
        service = FakeAssessmentService(NAME)
        service.start_gate = asyncio.Event()
        resolver = make_resolver(service, profile, scratchpad, reports)

        pending = asyncio.create_task(resolver.begin())
        await service.start_started.wait()
        await resolver.abandon()
        assert service.ended == []
        service.start_gate.set()

        assert await pending == FlowState.DONE
        assert service.ended == ["session-1"]
        assert resolver.session_id is None
        assert resolver.question is None

    async def test_abandon_after_failure(self, profile, scratchpad, reports):
        service = FakeAssessmentService(NAME)
        service.fail("submit")
        resolver = make_resolver(service, profile, scratchpad, reports)
        await resolver.begin()
        await resolver.submit(TextAnswer(value="Alex"))

        assert await resolver.abandon() == FlowState.DONE
        assert scratchpad.get_all() == []
        assert resolver.answered == []

    async def test_can_begin_again_after_abandon(self, profile, scratchpad, reports):
        service = FakeAssessmentService(NAME)
        resolver = make_resolver(service, profile, scratchpad, reports)
        await resolver.begin()
        await resolver.abandon()

        assert await resolver.begin() == FlowState.AWAITING_USER
        assert resolver.session_id == "session-2"
