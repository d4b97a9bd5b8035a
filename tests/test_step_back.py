"""go_back tests: history stack, answer retention and reopening.

Back-navigation pops the history stack.  By default answers are kept so
the user can review and change them; with
``back_navigation_erases_answers`` the answers of the step being left are
dropped.
"""

from formflow.config import SessionOptions
from formflow.engine import FormSession
from formflow.models.session import EndReason, NoHistory, SessionStatus, SteppedBack


def _walk(schema, answers_per_step, options=None):
    session = FormSession(schema, options=options)
    session.initialize()
    for answers in answers_per_step:
        session.submit_step_answers(answers)
    return session


class TestNoHistory:
    """Back at the first step is a no-op."""

    def test_first_step(self, linear):
        """A fresh session has nothing to go back to."""
        session = _walk(linear, [])
        outcome = session.go_back()
        assert outcome == NoHistory(current_step_id="s1")
        assert session.current_step_id == "s1"

    def test_repeated_backs_stop_at_start(self, linear):
        """Going back more often than forward ends at the start step."""
        session = _walk(linear, [{"f1": "a"}, {"f2": "b"}])
        outcomes = [session.go_back() for _ in range(4)]
        assert [type(o) for o in outcomes] == [SteppedBack, SteppedBack, NoHistory, NoHistory]
        assert session.current_step_id == "s1"
        assert session.history == []


class TestAnswerRetention:
    """Answers survive going back unless the erase flag is set."""

    def test_keep_by_default(self, linear):
        """s1 -> s2 -> s3, back twice: all answers kept."""
        session = _walk(linear, [{"f1": "a"}, {"f2": "b"}, {"f3": "c"}])
        assert session.current_step_id == "s4"

        first = session.go_back()
        assert first == SteppedBack(left_step_id="s4", current_step_id="s3")
        session.go_back()
        assert session.current_step_id == "s2"
        assert session.history == ["s1"]
        assert session.answers == {"f1": "a", "f2": "b", "f3": "c"}

    def test_erase_answers_of_left_step(self, linear):
        """With the flag, each step left loses its answers."""
        options = SessionOptions(back_navigation_erases_answers=True)
        session = _walk(linear, [{"f1": "a"}, {"f2": "b"}, {"f3": "c"}], options)
        session.go_back()  # leaves s4 (no answer yet)
        session.go_back()  # leaves s3
        assert session.current_step_id == "s2"
        assert session.answers == {"f1": "a", "f2": "b"}, (
            "Only the answers of the steps left behind should be erased"
        )

    def test_kept_answer_allows_straight_resubmit(self, linear):
        """After going back, the kept answer satisfies the step again."""
        session = _walk(linear, [{"f1": "a"}])
        session.go_back()
        outcome = session.submit_step_answers({})
        assert outcome.current_step_id == "s2"

    def test_change_answer_after_back(self, consent):
        """Going back and answering differently takes the other branch."""
        session = _walk(consent, [{"consent": True}])
        session.go_back()
        outcome = session.submit_step_answers({"consent": False})
        assert outcome.current_step_id == "no_consent"
        assert session.history == ["welcome"]


class TestReopen:
    """Going back from a finished session."""

    def test_back_from_terminate(self, consent):
        """A terminate step pops history and reopens the session."""
        session = _walk(consent, [{"consent": False}])
        assert session.is_complete

        outcome = session.go_back()
        assert outcome == SteppedBack(left_step_id="no_consent", current_step_id="welcome")
        assert not session.is_complete
        assert session.end_reason is None
        assert session.status == SessionStatus.ACTIVE

    def test_back_from_submitted_end(self, linear):
        """A session ended by submit reopens on the same step."""
        session = _walk(linear, [{"f1": "a"}, {"f2": "b"}, {"f3": "c"}, {"f4": "d"}])
        assert session.end_reason == EndReason.SUBMIT

        outcome = session.go_back()
        assert outcome == SteppedBack(left_step_id="s4", current_step_id="s4")
        assert not session.is_complete
        assert session.history == ["s1", "s2", "s3"], "History is untouched by a reopen"

        session.go_back()
        assert session.current_step_id == "s3"

    def test_reopened_session_accepts_answers(self, linear):
        """After reopening, the last step can be answered again."""
        session = _walk(linear, [{"f1": "a"}, {"f2": "b"}, {"f3": "c"}, {"f4": "d"}])
        session.go_back()
        outcome = session.submit_step_answers({"f4": "changed"})
        assert outcome.is_complete
        assert session.answers["f4"] == "changed"
