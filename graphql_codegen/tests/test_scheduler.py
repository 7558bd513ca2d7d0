import asyncio
import sys
from pathlib import Path

import pytest

from graphql_codegen.errors import PhaseOrderError, PluginNotFoundError, PluginRunError
from graphql_codegen.pipeline.config import CodegenConfig, OutputTarget
from graphql_codegen.pipeline.context import PluginContext
from graphql_codegen.pipeline.filesystem import Filesystem
from graphql_codegen.pipeline.phases import PHASE_SEQUENCE, Phase
from graphql_codegen.pipeline.scheduler import PhaseFailure, PhaseScheduler, PluginTask, build_tasks

TEST_DATA = Path(__file__).parent / "test_data"


def make_task(name, body, root=None):
    target = OutputTarget(output=f"{name}.txt")
    return PluginTask(name, body, PluginContext(name, target, Filesystem(root)))


def run(tasks):
    asyncio.run(PhaseScheduler(tasks).run())


def every_phase(log, fail_at=None):
    """Body that yields once per phase and optionally raises at one phase."""

    async def body(ctx):
        for _ in PHASE_SEQUENCE:
            log.append((ctx.name, ctx.phase))
            if ctx.phase is fail_at:
                raise RuntimeError(f"{ctx.name} failed on purpose")
            yield

    return body


def requesting(*requests):
    """Body yielding the given requests in order."""

    async def body(ctx):
        for request in requests:
            yield request

    return body


class TestPhaseMonotonicity:
    def test_every_phase_is_invoked_once_in_order(self):
        log = []
        task = make_task("a", every_phase(log))
        run([task])

        assert task.invoked_phases == list(PHASE_SEQUENCE)
        assert task.resume_on is Phase.DONE

    @pytest.mark.parametrize(
        "requests,expected",
        [
            ((None, None), [Phase.SETUP, Phase.VALIDATE_CONFIG, Phase.LOAD_INPUT]),
            ((Phase.GENERATE,), [Phase.SETUP, Phase.GENERATE]),
            ((Phase.LOAD_INPUT, Phase.EMIT), [Phase.SETUP, Phase.LOAD_INPUT, Phase.EMIT]),
            ((None, Phase.CLEANUP, None), [Phase.SETUP, Phase.VALIDATE_CONFIG, Phase.CLEANUP]),
            ((Phase.CLEANUP, None), [Phase.SETUP, Phase.CLEANUP]),
        ],
    )
    def test_invoked_phases_are_strictly_increasing(self, requests, expected):
        task = make_task("a", requesting(*requests))
        run([task])

        assert task.invoked_phases == expected
        assert all(a < b for a, b in zip(task.invoked_phases, task.invoked_phases[1:]))
        assert task.resume_on is Phase.DONE

    def test_task_finishing_without_yield_is_done_after_setup(self):
        async def body(ctx):
            return
            yield

        task = make_task("a", body)
        run([task])

        assert task.invoked_phases == [Phase.SETUP]
        assert task.resume_on is Phase.DONE

    def test_task_suspended_after_cleanup_is_closed(self):
        closed = []

        async def body(ctx):
            try:
                yield Phase.CLEANUP
                yield Phase.DONE
            finally:
                closed.append(ctx.phase)

        task = make_task("a", body)
        run([task])

        assert task.invoked_phases == [Phase.SETUP, Phase.CLEANUP]
        assert task.resume_on is Phase.DONE
        assert closed == [Phase.CLEANUP]


class TestIsolation:
    def test_failure_in_generate_does_not_affect_siblings(self):
        log = []
        a = make_task("a", every_phase(log))
        b = make_task("b", every_phase(log, fail_at=Phase.GENERATE))
        c = make_task("c", every_phase(log))

        with pytest.raises(PluginRunError) as exc_info:
            run([a, b, c])

        failures = exc_info.value.failures
        assert len(failures) == 1
        assert failures[0].task_name == "b"
        assert failures[0].phase is Phase.GENERATE
        assert isinstance(failures[0].error, RuntimeError)

        assert a.resume_on is Phase.DONE
        assert c.resume_on is Phase.DONE
        assert b.resume_on is Phase.FAILED
        assert a.invoked_phases == list(PHASE_SEQUENCE)
        assert c.invoked_phases == list(PHASE_SEQUENCE)
        assert b.invoked_phases == [Phase.SETUP, Phase.VALIDATE_CONFIG, Phase.LOAD_INPUT, Phase.GENERATE]
        assert ("b", Phase.EMIT) not in log

    def test_every_failure_is_reported(self):
        a = make_task("a", every_phase([], fail_at=Phase.SETUP))
        b = make_task("b", every_phase([], fail_at=Phase.EMIT))

        with pytest.raises(PluginRunError) as exc_info:
            run([a, b])

        assert [(f.task_name, f.phase) for f in exc_info.value.failures] == [
            ("a", Phase.SETUP),
            ("b", Phase.EMIT),
        ]

    def test_backward_request_fails_the_task(self):
        task = make_task("a", requesting(None, None, Phase.VALIDATE_CONFIG))

        with pytest.raises(PluginRunError) as exc_info:
            run([task])

        (failure,) = exc_info.value.failures
        assert failure.phase is Phase.LOAD_INPUT
        assert isinstance(failure.error, PhaseOrderError)
        assert task.resume_on is Phase.FAILED

    def test_invalid_request_value_fails_the_task(self):
        task = make_task("a", requesting("generate"))

        with pytest.raises(PluginRunError) as exc_info:
            run([task])

        assert isinstance(exc_info.value.failures[0].error, PhaseOrderError)

    def test_body_that_is_not_an_async_generator_fails(self):
        def body(ctx):
            return None

        task = make_task("a", body)
        with pytest.raises(PluginRunError) as exc_info:
            run([task])

        (failure,) = exc_info.value.failures
        assert failure.phase is Phase.SETUP
        assert isinstance(failure.error, TypeError)

    def test_failure_str(self):
        failure = PhaseFailure("out.py::plugin", Phase.VALIDATE_CONFIG, ValueError("bad"))
        assert str(failure) == "out.py::plugin failed during validate-config: bad"


class TestBarrier:
    def test_slow_load_input_holds_back_generate(self):
        events = []

        def timed(delay):
            async def body(ctx):
                yield Phase.LOAD_INPUT
                events.append(("load-start", ctx.name))
                await asyncio.sleep(delay)
                events.append(("load-end", ctx.name))
                yield
                events.append(("generate", ctx.name))

            return body

        run([make_task("slow", timed(0.05)), make_task("fast", timed(0.01))])

        kinds = [kind for kind, _ in events]
        assert kinds == ["load-start", "load-start", "load-end", "load-end", "generate", "generate"]
        assert events[2] == ("load-end", "fast")
        assert events[3] == ("load-end", "slow")

    def test_tasks_at_different_phases_are_not_stepped_together(self):
        events = []

        def body_for(skip_to):
            async def body(ctx):
                yield skip_to
                events.append((ctx.name, ctx.phase))

            return body

        run([make_task("late", body_for(Phase.EMIT)), make_task("early", body_for(Phase.GENERATE))])

        assert events == [("early", Phase.GENERATE), ("late", Phase.EMIT)]


class TestScheduler:
    def test_duplicate_task_names_are_rejected(self):
        with pytest.raises(ValueError, match="Duplicate task name"):
            PhaseScheduler([make_task("a", requesting()), make_task("a", requesting())])

    def test_run_without_tasks(self):
        run([])


class TestSharedOutputs:
    @pytest.fixture
    def filesystem(self, tmp_path):
        return Filesystem(tmp_path)

    def shared_task(self, name, body, filesystem):
        target = OutputTarget(output="out.txt")
        return PluginTask(name, body, PluginContext(name, target, filesystem))

    def writing(self, text, fail=False):
        """Body that writes at EMIT and returns without yielding again."""

        async def body(ctx):
            yield Phase.EMIT
            ctx.write_output(text)
            if fail:
                raise RuntimeError("emit exploded")

        return body

    def test_tasks_finishing_at_emit_all_reach_the_file(self, tmp_path, filesystem):
        tasks = [
            self.shared_task("a", self.writing("A\n"), filesystem),
            self.shared_task("b", self.writing("B\n"), filesystem),
            self.shared_task("c", self.writing("C\n"), filesystem),
        ]
        run(tasks)

        assert (tmp_path / "out.txt").read_text() == "A\nB\nC\n"
        assert all(task.resume_on is Phase.DONE for task in tasks)

    def test_finished_task_output_survives_sibling_failure(self, tmp_path, filesystem):
        def failing_before_write():
            async def body(ctx):
                yield Phase.EMIT
                raise RuntimeError("emit exploded")

            return body

        tasks = [
            self.shared_task("a", self.writing("A\n"), filesystem),
            self.shared_task("b", failing_before_write(), filesystem),
        ]
        with pytest.raises(PluginRunError):
            run(tasks)

        assert (tmp_path / "out.txt").read_text() == "A\n"

    def test_output_of_failed_tasks_only_is_not_written(self, tmp_path, filesystem):
        with pytest.raises(PluginRunError):
            run([self.shared_task("a", self.writing("A\n", fail=True), filesystem)])

        assert not (tmp_path / "out.txt").exists()


class TestBuildTasks:
    @pytest.fixture(autouse=True)
    def sample_plugins(self, monkeypatch):
        monkeypatch.syspath_prepend(str(TEST_DATA))
        yield
        sys.modules.pop("modules.sample_plugins", None)

    def test_one_task_per_output_and_plugin(self, tmp_path):
        config = CodegenConfig.from_dict(
            {
                "generates": {
                    "a.txt": {"plugins": {"modules.sample_plugins#banner": {}}},
                    "b.txt": {"plugins": ["modules.sample_plugins#banner", "modules.sample_plugins"]},
                }
            }
        )
        tasks = build_tasks(config, Filesystem(tmp_path))

        assert [task.name for task in tasks] == [
            "a.txt::modules.sample_plugins#banner",
            "b.txt::modules.sample_plugins#banner",
            "b.txt::modules.sample_plugins",
        ]

    def test_unresolvable_plugin_fails_at_setup_only(self, tmp_path):
        config = CodegenConfig.from_dict(
            {
                "config": {"banner": "hi"},
                "generates": {
                    "ok.txt": {"plugins": {"modules.sample_plugins#banner": {}}},
                    "missing.txt": {"plugins": {"modules.does_not_exist#plugin": {}}},
                    "bad.txt": {"plugins": {"modules.sample_plugins#not_a_plugin": {}}},
                },
            }
        )
        tasks = build_tasks(config, Filesystem(tmp_path))

        with pytest.raises(PluginRunError) as exc_info:
            run(tasks)

        failures = {failure.task_name: failure for failure in exc_info.value.failures}
        assert set(failures) == {
            "missing.txt::modules.does_not_exist#plugin",
            "bad.txt::modules.sample_plugins#not_a_plugin",
        }
        assert all(failure.phase is Phase.SETUP for failure in failures.values())
        assert all(isinstance(failure.error, PluginNotFoundError) for failure in failures.values())
        assert (tmp_path / "ok.txt").read_text() == "hi\n"
        assert not (tmp_path / "missing.txt").exists()


if __name__ == "__main__":
    pytest.main([__file__])
