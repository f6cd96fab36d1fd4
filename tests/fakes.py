"""Stand-ins for the collaborators the orchestrator talks to."""
from __future__ import annotations

import io
import logging

from sideloader.browser import EmbeddedSessionHost, SessionHandle
from sideloader.logs import LogWriter
from sideloader.models import PreparationResult, ResolvedSettings, RunResult, WrapperCommands


def memory_log_writer(name: str = "test"):
    buf = io.StringIO()
    return LogWriter(name, logging.StreamHandler(buf)), buf


def mock_popen_calls(returncode: int = 0, output=("hello from game\n",)):
    calls = []
    class _P:
        pid = 4242
        def __init__(self, *a, **kw):
            calls.append((a, kw))
            self.stdout = iter(output)
            self.returncode = None
            self.terminated = False
        def wait(self):
            self.returncode = returncode
            return returncode
        def poll(self):
            return self.returncode
        def terminate(self):
            self.terminated = True
    return _P, calls


class FakeTitles:
    def __init__(self, *titles):
        self._by_id = {t.title_id: t for t in titles}

    def get_title(self, title_id):
        return self._by_id.get(title_id)

    def list_titles(self):
        return list(self._by_id.values())


class FakeSettings:
    def __init__(self, settings=None):
        self.settings = settings or ResolvedSettings()
        self.fetches = 0

    def get_settings(self, title_id):
        self.fetches += 1
        return self.settings


class FakeClassifiers:
    def __init__(self, native: bool):
        self.native = native

    def __contains__(self, runner):
        return True

    def is_native(self, runner, title_id):
        return self.native


class FakeRuntime:
    def __init__(self, result=None):
        self.result = result or PreparationResult(True, wrappers=WrapperCommands())
        self.prepared = []
        self.primed = []
        self.invoked = []

    def prepare(self, settings, log_writer, title, is_native):
        self.prepared.append((title.title_id, is_native))
        return self.result

    def prime_session(self, runner, title_id, log_writer):
        self.primed.append((runner, title_id))

    def invoke(self, command_parts, settings, **kwargs):
        self.invoked.append((list(command_parts), kwargs))
        return RunResult(list(command_parts), 0)


class RecordingRun:
    """Drop-in for call_runner that records instead of spawning."""

    def __init__(self, returncode=0, raises=None):
        self.calls = []
        self.returncode = returncode
        self.raises = raises

    def __call__(self, argv, **kwargs):
        self.calls.append((list(argv), kwargs))
        if self.raises is not None:
            raise self.raises
        return RunResult(list(argv), self.returncode)


class CountingCleanup:
    def __init__(self):
        self.sessions = []

    def __call__(self, session=None):
        self.sessions.append(session)
        if session is not None:
            session.close()

    @property
    def count(self):
        return len(self.sessions)


class FakeHandle(SessionHandle):
    """`script` runs once every hook is wired, i.e. when the page is "live"."""

    def __init__(self, answer=True, script=None):
        super().__init__()
        self.answer = answer
        self.script = script
        self.questions = []

    def on_closed(self, callback):
        super().on_closed(callback)
        script, self.script = self.script, None
        if script is not None:
            script(self)

    def confirm(self, title, message):
        self.questions.append((title, message))
        return self.answer

    def user_leaves_page(self):
        return self._fire_close_attempt()


class FakeHost(EmbeddedSessionHost):
    def __init__(self, script=None, answer=True):
        self.script = script
        self.answer = answer
        self.configs = []
        self.handles = []

    def open(self, config):
        self.configs.append(config)
        handle = FakeHandle(self.answer, self.script)
        self.handles.append(handle)
        return handle
