"""Remote command execution and per-node fan-out.

Faults never talk to nodes directly. They call a ``Remote`` with the node
passed explicitly, and use ``on_many`` to run one task per node in parallel.

Commands are given as separate arguments and shell-quoted before being sent.
Wrap an argument in ``Lit`` to pass it through unquoted, which is how output
redirection is expressed::

    remote.exec(node, "printf", "%s", "+5s", Lit(">"), "/root/.faketimerc", sudo=True)
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Protocol, TypeVar, runtime_checkable

import paramiko

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Lit:
    """A command argument that is sent without shell quoting."""

    text: str


def escape(arg: object) -> str:
    """Shell-quote a single command argument (``Lit`` passes through)."""
    if isinstance(arg, Lit):
        return arg.text
    return shlex.quote(str(arg))


def render_command(*args: object, sudo: bool = False) -> str:
    """Build the shell command line for ``args``.

    With ``sudo`` the whole line runs under ``sudo -n sh -c`` so that
    redirections also happen with elevated privileges.
    """
    command = " ".join(escape(a) for a in args)
    if sudo:
        return f"sudo -n sh -c {shlex.quote(command)}"
    return command


class RemoteCommandError(RuntimeError):
    """A command exited non-zero on a node.

    Attributes:
        node: Node the command ran on.
        command: Rendered command line.
        exit_status: Process exit status.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    def __init__(
        self,
        node: str,
        command: str,
        exit_status: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(
            f"Command {command!r} on {node} exited {exit_status}: {stderr.strip() or stdout.strip()}"
        )
        self.node = node
        self.command = command
        self.exit_status = exit_status
        self.stdout = stdout
        self.stderr = stderr


@runtime_checkable
class Remote(Protocol):
    """Protocol for running commands on cluster nodes."""

    def exec(self, node: str, *args: object, sudo: bool = False) -> str:
        """Run a command on ``node`` and return its stripped stdout.

        Raises:
            RemoteCommandError: If the command exits non-zero.
        """
        ...


def _run(node: str, argv: list[str], command: str, timeout: float | None) -> str:
    logger.debug("[%s] %s", node, command, extra={"node": node})
    proc = subprocess.run(argv, capture_output=True, text=True, timeout=timeout)
    if proc.returncode != 0:
        raise RemoteCommandError(node, command, proc.returncode, proc.stdout, proc.stderr)
    return proc.stdout.strip()


@dataclass(frozen=True)
class SshRemote:
    """Runs commands over SSH with paramiko.

    One client is opened per node on first use and reused by later commands
    until ``close`` is called. paramiko transports accept channels from many
    threads, so ``on_many`` can drive several commands at once.

    Attributes:
        user: Login user. Defaults to root, which makes ``sudo`` a formality.
        port: SSH port.
        private_key: Optional identity file. Without one, paramiko falls back
            to the agent and the default keys in ``~/.ssh``.
        strict_host_key_checking: Whether to verify host keys against the
            system known_hosts. Test clusters are usually rebuilt often, so
            this defaults to False and unknown keys are accepted.
        timeout: Connect and per-command timeout in seconds, or None to wait
            forever.
    """

    user: str = "root"
    port: int = 22
    private_key: str | None = None
    strict_host_key_checking: bool = False
    timeout: float | None = None
    _clients: dict[str, paramiko.SSHClient] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    @classmethod
    def from_env(cls) -> SshRemote:
        """Build from HN_SSH_USER, HN_SSH_PORT, HN_SSH_PRIVATE_KEY,
        HN_SSH_STRICT_HOST_KEY_CHECKING and HN_SSH_TIMEOUT, falling back to
        the defaults."""
        timeout = os.environ.get("HN_SSH_TIMEOUT")
        return cls(
            user=os.environ.get("HN_SSH_USER", "root"),
            port=int(os.environ.get("HN_SSH_PORT", "22")),
            private_key=os.environ.get("HN_SSH_PRIVATE_KEY") or None,
            strict_host_key_checking=os.environ.get("HN_SSH_STRICT_HOST_KEY_CHECKING", "") == "1",
            timeout=float(timeout) if timeout else None,
        )

    def connect(self, node: str) -> paramiko.SSHClient:
        """Open a new client to ``node``."""
        client = paramiko.SSHClient()
        if self.strict_host_key_checking:
            client.load_system_host_keys()
            client.set_missing_host_key_policy(paramiko.RejectPolicy())
        else:
            client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        logger.debug("[%s] Connecting as %s on port %d", node, self.user, self.port, extra={"node": node})
        client.connect(
            node,
            port=self.port,
            username=self.user,
            key_filename=self.private_key,
            timeout=self.timeout,
        )
        return client

    def client(self, node: str) -> paramiko.SSHClient:
        """The cached client for ``node``, reconnecting if its transport died."""
        with self._lock:
            client = self._clients.get(node)
            transport = client.get_transport() if client is not None else None
            if transport is None or not transport.is_active():
                if client is not None:
                    client.close()
                client = self._clients[node] = self.connect(node)
            return client

    def exec(self, node: str, *args: object, sudo: bool = False) -> str:
        command = render_command(*args, sudo=sudo)
        logger.debug("[%s] %s", node, command, extra={"node": node})
        _, stdout, stderr = self.client(node).exec_command(command, timeout=self.timeout)
        out = stdout.read().decode()
        err = stderr.read().decode()
        status = stdout.channel.recv_exit_status()
        if status != 0:
            raise RemoteCommandError(node, command, status, out, err)
        return out.strip()

    def close(self) -> None:
        """Close every cached client."""
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            client.close()


@dataclass(frozen=True)
class LocalRemote:
    """Runs every node's commands on the local machine via ``sh -c``.

    Useful when all "nodes" are processes on one host, or for dry runs with
    a harmless shell.
    """

    shell: str = "sh"
    timeout: float | None = None

    def exec(self, node: str, *args: object, sudo: bool = False) -> str:
        command = render_command(*args, sudo=sudo)
        return _run(node, [self.shell, "-c", command], command, self.timeout)


def on_many(
    nodes: Iterable[str],
    action: Callable[[str], T],
    max_workers: int | None = None,
) -> dict[str, T]:
    """Run ``action(node)`` for every node in parallel and join them all.

    Every task runs to completion even if a sibling fails. If any task
    raised, the first failure in node order is re-raised after the others
    have been logged.

    Args:
        nodes: Nodes to run on. Duplicates are run once.
        action: Called with the node it should act on.
        max_workers: Thread cap. Defaults to one thread per node.

    Returns:
        Mapping of node to the value ``action`` returned for it.
    """
    nodes = list(dict.fromkeys(nodes))
    if not nodes:
        return {}

    with ThreadPoolExecutor(
        max_workers=max_workers or len(nodes), thread_name_prefix="nemesis"
    ) as pool:
        futures = [(node, pool.submit(action, node)) for node in nodes]

    results: dict[str, T] = {}
    first_error: BaseException | None = None
    for node, future in futures:
        error = future.exception()
        if error is None:
            results[node] = future.result()
        elif first_error is None:
            first_error = error
        else:
            logger.error(
                "[%s] Additional failure while fanning out: %s",
                node,
                error,
                extra={"node": node},
            )

    if first_error is not None:
        raise first_error
    return results
