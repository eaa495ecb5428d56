"""Shared collector plumbing: session access and command-path fallback."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence, TypeVar

from loguru import logger

from ros_exporter.exceptions import CollectionError, CommandError, FeatureUnsupportedError, FormatError
from ros_exporter.parsers import resolve
from ros_exporter.session import CommandSession, Reply

T = TypeVar("T")

# (command, arguments) pairs, newest RouterOS generation first
CommandChain = Sequence[tuple[str, dict[str, Any]]]


class BaseCollector:
    """A subsystem collector issuing commands through one :class:`CommandSession`."""

    def __init__(self, session: CommandSession):
        self._session = session
        self._log = logger.bind(target=session.target.address)
        # non-fatal failures that left the returned records incomplete
        self.degradations: list[Exception] = []

    @property
    def address(self) -> str:
        return self._session.target.address

    def _degrade(self, error: Exception, message: str) -> None:
        self._log.warning(message)
        if not isinstance(error, FeatureUnsupportedError):
            self.degradations.append(error)

    def _run(self, command: str, what: str, **args: Any) -> Reply:
        """Run a mandatory command; any failure becomes a CollectionError."""
        try:
            return self._session.execute(command, **args)
        except CommandError as e:
            raise CollectionError(f"failed to get {what}: {e}") from e

    def _run_first_supported(self, chain: CommandChain, what: str) -> tuple[str, Reply] | None:
        """Try each command of ``chain`` until one is supported.

        Returns:
            ``(command, reply)`` of the first supported command, or None if
            every command was rejected as unknown/disabled (feature absent).

        Raises:
            CollectionError: On the first failure that is not "unsupported";
                the message names the attempted command.
        """
        for command, args in chain:
            try:
                return command, self._session.execute(command, **args)
            except FeatureUnsupportedError as e:
                self._log.debug(f"{command} not supported: {e}")
            except CommandError as e:
                raise CollectionError(f"failed to get {what} using command {command}: {e}") from e
        self._log.info(f"{what} not supported on {self.address}, skipping")
        return None

    def _parse(
        self,
        parser: Callable[[str], T],
        record: Mapping[str, str],
        keys: str | Sequence[str],
        default: T,
    ) -> T:
        """Parse the first non-empty field of ``keys``; absent or bad values give ``default``."""
        candidates = (keys,) if isinstance(keys, str) else keys
        value = resolve(record, candidates)
        if not value:
            return default
        try:
            return parser(value)
        except FormatError as e:
            self._log.warning(f"Could not parse {candidates[0]} '{value}' on {self.address}: {e}")
            return default
