"""Tests for logger instances and the shared router."""

import socket

import pytest

from udu_logging import (
    ConsoleSink,
    LoggerInstance,
    LoggingSettings,
    Meta,
    Severity,
    build_identity,
    configure,
    create_instance,
    get_router,
    get_settings,
)

SEVERITY_METHODS = {
    "emergency": Severity.EMERGENCY,
    "emerg": Severity.EMERGENCY,
    "alert": Severity.ALERT,
    "critical": Severity.CRITICAL,
    "crit": Severity.CRITICAL,
    "error": Severity.ERROR,
    "warning": Severity.WARNING,
    "notice": Severity.NOTICE,
    "info": Severity.INFO,
    "debug": Severity.DEBUG,
}


class TestBuildIdentity:
    def test_source_and_scoped_meta(self):
        identity = build_identity("lib/foo.py", {"organization": "acme"})
        assert dict(identity) == {
            "organization": "acme",
            "source": "lib/foo.py",
            "codeRepository": "uduinc/core",
        }

    @pytest.mark.parametrize("source", [None, 42, b"lib/foo.py", ["lib"]])
    def test_non_string_source_is_unknown_callee(self, source):
        assert build_identity(source)["source"] == "unknown_callee"

    @pytest.mark.parametrize("scoped_meta", [None, "acme", 7, ["organization"]])
    def test_non_mapping_scoped_meta_is_ignored(self, scoped_meta):
        assert dict(build_identity("lib/foo.py", scoped_meta)) == {
            "source": "lib/foo.py",
            "codeRepository": "uduinc/core",
        }

    def test_source_argument_wins_over_scoped_source(self):
        assert build_identity("lib/foo.py", {"source": "other"})["source"] == "lib/foo.py"

    def test_scoped_code_repository_kept(self):
        identity = build_identity("x.py", {"codeRepository": "uduinc/n-apps"})
        assert identity["codeRepository"] == "uduinc/n-apps"

    def test_code_repository_from_environment(self, monkeypatch):
        monkeypatch.setenv("THIS_CODE_REPOSITORY", "uduinc/web")
        assert build_identity("x.py")["codeRepository"] == "uduinc/web"

    def test_identity_is_read_only(self):
        identity = build_identity("x.py")
        with pytest.raises(TypeError):
            identity["source"] = "y.py"

    def test_scoped_meta_not_mutated(self):
        scoped = {"organization": "acme"}
        build_identity("x.py", scoped)
        assert scoped == {"organization": "acme"}


class TestLoggerInstance:
    @pytest.mark.parametrize("method,level", SEVERITY_METHODS.items())
    def test_each_method_dispatches_its_level(self, router, memory_sink, method, level):
        log = create_instance("lib/foo.py", router=router)
        getattr(log, method)("msg")
        assert memory_sink.last.severity is level
        assert memory_sink.last.message == "msg"

    def test_aliases_are_the_same_handler(self):
        assert LoggerInstance.emerg is LoggerInstance.emergency
        assert LoggerInstance.crit is LoggerInstance.critical

    def test_log_by_name(self, router, memory_sink):
        log = create_instance("lib/foo.py", router=router)
        log.log("notice", "started")
        assert memory_sink.last.severity is Severity.NOTICE

    def test_concrete_error_scenario(self, router, memory_sink):
        create_instance("lib/foo.js", {"organization": "acme"}, router=router).error(
            "bad thing", Meta(user="bruce")
        )
        record = memory_sink.last
        assert (record.severity, record.message) == (Severity.ERROR, "bad thing")
        assert record.metadata == {
            "source": "lib/foo.js",
            "organization": "acme",
            "user": "bruce",
            "codeRepository": "uduinc/core",
            "hostname": "test-host",
        }

    def test_concrete_missing_source_scenario(self, router, memory_sink):
        create_instance(router=router).info("hello")
        record = memory_sink.last
        assert record.severity is Severity.WARNING
        assert record.message == "BAD LOG, CANNOT FIND SOURCE. \n\tLog: hello"
        assert record.metadata["source"] == "unknown_callee"

    def test_object_fragment_is_dumped(self, router, memory_sink):
        create_instance("lib/foo.py", router=router).info("state", {"queue": [1, 2]})
        assert memory_sink.last.message == "state {'queue': [1, 2]}"
        assert "[object Object]" not in memory_sink.last.message

    def test_mutating_scoped_meta_after_construction_has_no_effect(self, router, memory_sink):
        scoped = {"organization": "acme"}
        first = create_instance("a.py", scoped, router=router)
        scoped["organization"] = "evil"
        second = create_instance("b.py", scoped, router=router)

        first.info("x")
        second.info("y")
        assert memory_sink.records[0].metadata["organization"] == "acme"
        assert memory_sink.records[1].metadata["organization"] == "evil"

    def test_instances_do_not_share_identity(self, router):
        a = create_instance("a.py", router=router)
        b = create_instance("b.py", router=router)
        assert a.identity is not b.identity
        assert (a.source, b.source) == ("a.py", "b.py")

    def test_calls_do_not_mutate_identity(self, router):
        log = create_instance("a.py", {"organization": "acme"}, router=router)
        before = dict(log.identity)
        log.error("x", Meta(organization="other", user="u", junk=1))
        assert dict(log.identity) == before

    def test_never_raises(self, router):
        class BrokenInt(int):
            def __str__(self):
                raise RuntimeError("boom")

        log = create_instance("a.py", router=router)
        log.error(BrokenInt(1))
        log.log("no-such-level", "x")

    def test_repr(self, router):
        assert repr(create_instance("a.py", router=router)) == "LoggerInstance(source='a.py')"


class TestSharedRouter:
    def test_instances_share_one_router(self, memory_sink):
        configure(memory_sink, LoggingSettings())
        a = create_instance("a.py")
        b = create_instance("b.py")
        assert a.router is b.router is get_router()

    def test_get_router_is_a_singleton(self):
        assert get_router() is get_router()

    def test_default_router_writes_to_console(self, capsys):
        create_instance("a.py").info("to the console")
        assert "Info: to the console" in capsys.readouterr().out

    def test_configure_replaces_router(self, memory_sink):
        old = get_router()
        new = configure(memory_sink, LoggingSettings())
        assert new is not old
        assert get_router() is new

    def test_pod_name_becomes_hostname(self, memory_sink):
        configure(memory_sink, LoggingSettings(pod_name="pod-7"))
        create_instance("a.py").info("x")
        assert memory_sink.last.metadata["hostname"] == "pod-7"

    def test_hostname_defaults_to_machine_name(self, memory_sink):
        configure(memory_sink, LoggingSettings())
        create_instance("a.py").info("x")
        assert memory_sink.last.metadata["hostname"] == socket.gethostname()

    def test_logsene_export_is_announced(self, memory_sink):
        from udu_logging import MultiSink

        settings = LoggingSettings(export_logs=True, logsene_token="tok")
        configure(MultiSink([memory_sink]), settings)
        assert memory_sink.last.severity is Severity.NOTICE
        assert memory_sink.last.message == "[uduLogger] Now exporting logs to Logsene"
        assert memory_sink.last.metadata["source"] == "udu_logging"


class TestMisconfiguredEnvironment:
    def test_export_without_token_falls_back_to_console(self, monkeypatch, capsys):
        monkeypatch.setenv("EXPORT_LOGS", "true")

        log = create_instance("lib/foo.py")
        log.info("still logging")

        assert isinstance(log, LoggerInstance)
        assert isinstance(log.router.sink, ConsoleSink)
        out = capsys.readouterr().out
        assert "logging_export_disabled" in out
        assert "Info: still logging" in out

    def test_invalid_level_with_explicit_router(self, monkeypatch, router, memory_sink):
        monkeypatch.setenv("LOG_LEVEL", "verbose")

        log = create_instance("lib/foo.py", router=router)
        log.info("hi")

        assert log.identity["codeRepository"] == "uduinc/core"
        assert memory_sink.last.message == "hi"

    def test_invalid_settings_use_defaults(self, monkeypatch, capsys):
        monkeypatch.setenv("LOG_LEVEL", "verbose")
        monkeypatch.setenv("THIS_CODE_REPOSITORY", "uduinc/n-apps")

        log = create_instance("lib/foo.py")
        log.debug("shown at the default level")

        assert get_settings().log_level is Severity.DEBUG
        assert log.identity["codeRepository"] == "uduinc/core"
        out = capsys.readouterr().out
        assert "logging_settings_invalid" in out
        assert "Debug: shown at the default level" in out
