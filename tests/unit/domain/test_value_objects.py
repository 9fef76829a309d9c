"""Tests for domain value objects."""

import signal

import pytest

from proxyctl.domain.value_objects import (
    Action,
    ExitCode,
    RetryStep,
    RunState,
    StopSchedule,
    parse_signal,
)


class TestAction:
    """Tests for the Action enumeration."""

    @pytest.mark.parametrize(
        ("word", "expected"),
        [
            ("start", Action.START),
            ("stop", Action.STOP),
            ("restart", Action.RESTART),
            ("try-restart", Action.TRY_RESTART),
            ("reload", Action.RELOAD),
            ("force-reload", Action.FORCE_RELOAD),
            ("status", Action.STATUS),
            ("help", Action.HELP),
        ],
    )
    def test_parse_known_words(self, word: str, expected: Action) -> None:
        """Each verb parses to its Action."""
        assert Action.parse(word) is expected

    @pytest.mark.parametrize("word", ["START", "bounce", "", "--help", "try_restart"])
    def test_parse_rejects_unknown_words(self, word: str) -> None:
        """Verbs are matched exactly and case-sensitively."""
        with pytest.raises(ValueError, match="Unrecognized action"):
            Action.parse(word)

    def test_usage_metavar_lists_actions_in_order(self) -> None:
        """The usage metavar lists every verb in declaration order."""
        assert Action.usage_metavar() == (
            "{start|stop|restart|try-restart|reload|force-reload|status|help}"
        )


class TestRunState:
    """Tests for the RunState classification."""

    def test_values_follow_lsb_status_codes(self) -> None:
        """RunState values are the LSB status exit codes 0-4."""
        assert [int(state) for state in RunState] == [0, 1, 2, 3, 4]

    def test_only_running_is_running(self) -> None:
        """Only RUNNING counts as running."""
        assert [state for state in RunState if state.is_running] == [RunState.RUNNING]

    @pytest.mark.parametrize(
        ("state", "text"),
        [
            (RunState.RUNNING, "squid is running"),
            (RunState.NOT_RUNNING_PID_FILE_EXISTS, "squid is not running but the pid file exists"),
            (RunState.NOT_RUNNING_LOCK_FILE_EXISTS, "squid is not running but the lock file exists"),
            (RunState.NOT_RUNNING, "squid is not running"),
            (RunState.UNKNOWN, "could not access pid file for squid"),
        ],
    )
    def test_describe(self, state: RunState, text: str) -> None:
        """Each state has a one-line description naming the service."""
        assert state.describe("squid") == text


class TestExitCode:
    """Tests for exit code values."""

    def test_failure_codes(self) -> None:
        """Operation failure codes use the 150-154 range."""
        assert ExitCode.RELOADING_FAILED == 150
        assert ExitCode.RESTART_STOP_FAILED == 151
        assert ExitCode.RESTART_START_FAILED == 152
        assert ExitCode.START_FAILED == 153
        assert ExitCode.STOP_FAILED == 154

    def test_argument_and_environment_codes(self) -> None:
        """Argument, privilege and resolution codes follow LSB."""
        assert ExitCode.INVALID_ARGUMENT == 2
        assert ExitCode.SUPER_USER_ONLY == 4
        assert ExitCode.DAEMON_NOT_FOUND == 5
        assert ExitCode.NOT_CONFIGURED == 6


class TestParseSignal:
    """Tests for signal name parsing."""

    @pytest.mark.parametrize("value", ["HUP", "SIGHUP", "hup", " sighup ", "1", 1])
    def test_accepts_names_and_numbers(self, value) -> None:
        """Names with or without SIG, in any case, and numbers are accepted."""
        assert parse_signal(value) is signal.SIGHUP

    @pytest.mark.parametrize("value", ["NOPE", "SIGNOPE", "999"])
    def test_rejects_unknown_signals(self, value: str) -> None:
        """Unknown names and numbers raise ValueError."""
        with pytest.raises(ValueError, match="Unknown signal"):
            parse_signal(value)


class TestRetryStep:
    """Tests for RetryStep validation."""

    def test_timeout_optional(self) -> None:
        """A step without timeout is allowed."""
        assert RetryStep(signal.SIGHUP).timeout is None

    @pytest.mark.parametrize("timeout", [0, -1.5, float("nan"), float("inf")])
    def test_timeout_must_be_positive(self, timeout: float) -> None:
        """Zero, negative and non-finite timeouts are rejected."""
        with pytest.raises(ValueError, match="timeout must be positive"):
            RetryStep(signal.SIGTERM, timeout)


class TestStopSchedule:
    """Tests for stop schedule parsing and formatting."""

    def test_parse_default_escalation(self) -> None:
        """QUIT/30/TERM/5/KILL/5 parses into three waiting steps."""
        schedule = StopSchedule.parse("QUIT/30/TERM/5/KILL/5")

        assert schedule.steps == (
            RetryStep(signal.SIGQUIT, 30.0),
            RetryStep(signal.SIGTERM, 5.0),
            RetryStep(signal.SIGKILL, 5.0),
        )
        assert schedule.waits

    def test_bare_number_is_term_then_kill(self) -> None:
        """A bare timeout N means TERM/N/KILL/N."""
        schedule = StopSchedule.parse("10")

        assert schedule.steps == (
            RetryStep(signal.SIGTERM, 10.0),
            RetryStep(signal.SIGKILL, 10.0),
        )

    def test_lone_signal_does_not_wait(self) -> None:
        """A single signal name sends it without waiting."""
        schedule = StopSchedule.parse("HUP")

        assert schedule.steps == (RetryStep(signal.SIGHUP),)
        assert not schedule.waits

    def test_single(self) -> None:
        """single() builds a one-step non-waiting schedule."""
        assert StopSchedule.single(signal.SIGUSR1) == StopSchedule.parse("USR1")

    @pytest.mark.parametrize(
        "text", ["QUIT/30/TERM/5/KILL/5", "TERM/2.5/KILL/1", "HUP", "SIGTERM/3"]
    )
    def test_str_formats_retry_notation(self, text: str) -> None:
        """str() renders the schedule in --retry notation without SIG prefixes."""
        assert str(StopSchedule.parse(text)) == text.replace("SIG", "")

    @pytest.mark.parametrize("text", ["", "   ", "/"])
    def test_empty_schedule_rejected(self, text: str) -> None:
        """Empty schedules are rejected."""
        with pytest.raises(ValueError):
            StopSchedule.parse(text)

    def test_invalid_timeout_rejected(self) -> None:
        """Non-numeric timeouts are rejected with the offending value."""
        with pytest.raises(ValueError, match="Invalid timeout 'soon'"):
            StopSchedule.parse("TERM/soon")

    @pytest.mark.parametrize("text", ["TERM/nan", "TERM/5/KILL/inf"])
    def test_non_finite_timeout_rejected(self, text: str) -> None:
        """nan and inf are not usable waits."""
        with pytest.raises(ValueError, match="positive and finite"):
            StopSchedule.parse(text)

    def test_escalation_must_end_with_timeout(self) -> None:
        """An escalating schedule must wait after its last signal."""
        with pytest.raises(ValueError, match="must end with a timeout"):
            StopSchedule.parse("TERM/5/KILL")

    def test_only_last_step_may_omit_timeout(self) -> None:
        """Intermediate steps must have a timeout."""
        with pytest.raises(ValueError, match="only the last step"):
            StopSchedule(steps=(RetryStep(signal.SIGTERM), RetryStep(signal.SIGKILL, 5)))

    def test_unknown_signal_rejected(self) -> None:
        """Unknown signal names are rejected."""
        with pytest.raises(ValueError, match="Unknown signal"):
            StopSchedule.parse("BOOM/5")
