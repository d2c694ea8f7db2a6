"""
Shared pytest fixtures for happy-nemesis tests.

Faults are exercised against recording collaborators: ``RecordingRemote``
captures every command a fault would run on a node, and ``RecordingNet``
captures drop/heal directives, so tests can assert on effects without a
real cluster.
"""

import logging
import threading
from pathlib import Path

import pytest

from happynemesis.core.context import TestContext
from happynemesis.core.control import RemoteCommandError, render_command


class RecordingRemote:
    """Remote that records commands instead of running them.

    Attributes:
        commands: ``(node, command_line)`` pairs in arrival order.
        fail_on: Nodes whose commands raise ``RemoteCommandError``.
    """

    def __init__(self, fail_on=()):
        self.commands = []
        self.fail_on = set(fail_on)
        self._lock = threading.Lock()

    def exec(self, node, *args, sudo=False):
        command = render_command(*args, sudo=sudo)
        with self._lock:
            self.commands.append((node, command))
        if node in self.fail_on:
            raise RemoteCommandError(node, command, 1, stderr="boom")
        return ""

    def commands_on(self, node):
        return [command for n, command in self.commands if n == node]


class RecordingNet:
    """Net that records drop rules and heals.

    Attributes:
        drops: Set of ``(src, dest)`` pairs currently dropped.
        heals: Number of times ``heal`` was called.
    """

    def __init__(self):
        self.drops = set()
        self.heals = 0
        self._lock = threading.Lock()

    def drop(self, ctx, src, dest):
        with self._lock:
            self.drops.add((src, dest))

    def heal(self, ctx):
        with self._lock:
            self.drops.clear()
            self.heals += 1

    def grudge(self):
        """Reconstruct the applied grudge from the recorded drops."""
        result = {}
        for src, dest in self.drops:
            result.setdefault(dest, set()).add(src)
        return result


@pytest.fixture
def nodes():
    return ["n1", "n2", "n3", "n4", "n5"]


@pytest.fixture
def remote():
    return RecordingRemote()


@pytest.fixture
def net():
    return RecordingNet()


@pytest.fixture
def ctx(nodes, net, remote):
    return TestContext(nodes, net=net, remote=remote, name="fixture")


@pytest.fixture
def failing_ctx(nodes, net):
    """Factory for a context whose remote fails on the given nodes."""

    def make(*fail_on):
        return TestContext(nodes, net=net, remote=RecordingRemote(fail_on), name="failing")

    return make


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """
    Returns the root test_output directory. Created once per test session.
    Files here persist after tests complete for easy access.
    """
    output_dir = Path(__file__).parent.parent / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """
    Returns a directory for the current test to write output files.
    Directory structure: test_output/<module_name>/<test_name>/
    """
    module_name = request.module.__name__.split(".")[-1]
    test_dir = test_output_root / module_name / request.node.name
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


@pytest.fixture(autouse=True)
def reset_happynemesis_logging():
    """Reset the package logger to its silent default around each test."""
    logger = logging.getLogger("happynemesis")

    def reset():
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    reset()
    yield
    reset()
