"""RouterOS API command session (TCP 8728) with a per-command deadline."""

from __future__ import annotations

import concurrent.futures
from enum import Enum
from types import TracebackType
from typing import Any, Callable, Mapping, Self, Sequence

import librouteros
from librouteros.exceptions import LibRouterosError, TrapError
from loguru import logger

from ros_exporter.exceptions import CommandError, CommandTimeoutError, ConnectError, FeatureUnsupportedError
from ros_exporter.models import DEFAULT_API_PORT, Target

# Trap messages RouterOS uses for a missing command or a disabled package
UNSUPPORTED_MARKERS = ("no such command", "unknown command", "disabled")

Reply = list[dict[str, str]]


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    CLOSED = "closed"


def split_host_port(address: str) -> tuple[str, int | None]:
    """Split ``host:port`` / ``[v6]:port``; bare hosts and IPv6 literals have no port."""
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        if rest.startswith(":") and rest[1:].isdigit():
            return host, int(rest[1:])
        return host, None
    if address.count(":") == 1:
        host, port = address.split(":")
        if port.isdigit():
            return host, int(port)
    return address, None


def is_unsupported_message(message: str) -> bool:
    message = message.lower()
    return any(marker in message for marker in UNSUPPORTED_MARKERS)


def _normalize(row: Mapping[str, Any]) -> dict[str, str]:
    """librouteros decodes yes/no/int words; collectors work on the raw strings."""
    normalized: dict[str, str] = {}
    for key, value in row.items():
        if isinstance(value, bool):
            normalized[key] = "true" if value else "false"
        elif value is None:
            normalized[key] = ""
        else:
            normalized[key] = str(value)
    return normalized


class CommandSession:
    """One authenticated API connection to one device, valid for one scrape.

    The connection is opened lazily by :meth:`execute`. Every command runs on a
    worker thread and is raced against ``target.timeout``; on a device error or
    a timeout the connection is torn down so the next command reconnects on a
    clean socket instead of reusing a half-open one.

    Usage::

        with CommandSession(Target(address="192.168.88.1", password="pw")) as session:
            rows = session.execute("/system/resource/print")
    """

    def __init__(self, target: Target, connect_func: Callable[..., Any] = librouteros.connect):
        self.target = target
        self._connect_func = connect_func
        self._api: Any = None
        self._executor: concurrent.futures.ThreadPoolExecutor | None = None
        self._state = SessionState.DISCONNECTED
        self._log = logger.bind(target=target.address)

    @property
    def state(self) -> SessionState:
        return self._state

    def is_connected(self) -> bool:
        return self._api is not None

    def endpoint(self) -> tuple[str, int]:
        host, embedded_port = split_host_port(self.target.address)
        return host, self.target.port or embedded_port or DEFAULT_API_PORT

    def connect(self) -> concurrent.futures.ThreadPoolExecutor:
        """Dial and log in. No-op when already connected.

        Returns the executor commands of this connection run on.

        Raises:
            ConnectError: On socket or authentication failure.
        """
        if self._api is not None and self._executor is not None:
            return self._executor

        host, port = self.endpoint()
        self._log.info(f"Connecting to RouterOS API at {host}:{port} with timeout {self.target.timeout}s")
        try:
            self._api = self._connect_func(
                host=host,
                username=self.target.username,
                password=self.target.password,
                port=port,
                timeout=self.target.timeout,
            )
        except (OSError, LibRouterosError, UnicodeError) as e:
            self._log.error(f"Error connecting to {host}:{port}: {e}")
            raise ConnectError(f"connection to {host}:{port} failed: {e}") from e

        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="ros-command")
        self._state = SessionState.CONNECTED
        return self._executor

    def execute(self, command: str, proplist: Sequence[str] | None = None, **args: Any) -> Reply:
        """Run ``command`` and return its reply rows with string values.

        Args:
            command: Menu path plus verb, e.g. ``/interface/print``.
            proplist: Restrict the returned properties (``.proplist``).
            **args: Command arguments, sent as ``=key=value`` words.

        Raises:
            ConnectError: If a lazy (re)connect fails.
            FeatureUnsupportedError: The device does not know the command or
                its package is disabled.
            CommandError: Any other device-side failure.
            CommandTimeoutError: No reply within ``target.timeout`` seconds.
        """
        executor = self.connect()

        if proplist:
            args[".proplist"] = ",".join(proplist)

        api = self._api
        future = executor.submit(lambda: tuple(api(command, **args)))
        try:
            rows = future.result(timeout=self.target.timeout)
        except concurrent.futures.TimeoutError:
            self._log.warning(f"Timeout running {command} after {self.target.timeout}s")
            self._teardown()
            raise CommandTimeoutError(f"command timeout after {self.target.timeout}s", command=command) from None
        except TrapError as e:
            self._log.debug(f"Device rejected {command}: {e}")
            self._teardown()
            if is_unsupported_message(str(e)):
                raise FeatureUnsupportedError(f"{command}: {e}", command=command) from e
            raise CommandError(f"{command}: {e}", command=command) from e
        except (OSError, LibRouterosError) as e:
            self._log.error(f"Error running {command}: {e}")
            self._teardown()
            raise CommandError(f"{command}: {e}", command=command) from e
        except UnicodeError as e:
            # the API encodes every word as ASCII
            self._log.error(f"Cannot encode {command} for the API: {e}")
            self._teardown()
            raise CommandError(f"{command}: argument not encodable: {e}", command=command) from e

        return [_normalize(row) for row in rows]

    def close(self) -> None:
        """Release the connection; safe to call repeatedly."""
        if self._api is not None:
            self._log.debug("Closing connection")
        self._release()
        if self._state is SessionState.CONNECTED:
            self._state = SessionState.DISCONNECTED

    def _teardown(self) -> None:
        self._release()
        self._state = SessionState.CLOSED

    def _release(self) -> None:
        api, self._api = self._api, None
        executor, self._executor = self._executor, None
        if api is not None:
            try:
                api.close()
            except (OSError, LibRouterosError) as e:
                self._log.debug(f"Ignoring error while closing connection: {e}")
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None
    ) -> None:
        self.close()
