"""
Remote pilot adapter for the Pioneer agent.

A human operator can steer the agent from a small input device connected over
a serial port. The device either drives the agent tile by tile (manual mode)
or picks the high-level objective whenever the agent is Deciding (assisted
mode). This module speaks the byte protocol; agent/controller.py maps manual
codes to world actions.

Protocol:
    Handshake    agent writes 0x00, device answers one mode byte
                 (0 = manual, anything else = assisted)
    Score        agent writes a little-endian float32 >= 0 (on every day change)
    Objective    agent writes float32 -1.0, device answers one byte (1-9,
                 see Objective.from_code; anything else = no override)
    Manual       device sends one signed byte per command; the agent writes
                 float32 -2.0 to acknowledge and drops any buffered input

Failure Policy:
    Every read is bounded by the transport timeout. An empty read (timeout)
    or an I/O error raises ``PilotDisconnected``; the bot then drops the
    pilot, carries on autonomously and tries to reconnect later.

Transport:
    Any object with ``read(n)``, ``write(data)``, ``reset_input_buffer()``
    and ``close()``. ``serial.Serial`` from pyserial satisfies it; tests use
    an in-memory fake.

Dependencies:
    - struct: float32 encoding
    - pyserial (optional): Port discovery and the serial transport
"""

from __future__ import annotations

import struct
from typing import Any, Protocol

from pioneer.agent.objective import Objective
from pioneer.config import PioneerConfig

# Wire constants
HANDSHAKE = b"\x00"
SCORE_FORMAT = "<f"
READY_FOR_OBJECTIVE = -1.0
ACKNOWLEDGE = -2.0


class PilotDisconnected(Exception):
    """The pilot timed out, failed an I/O operation or is not plugged in."""


class Transport(Protocol):
    """Byte channel to the pilot device."""

    def read(self, size: int = 1) -> bytes: ...

    def write(self, data: bytes) -> Any: ...

    def reset_input_buffer(self) -> None: ...

    def close(self) -> None: ...


# =============================================================================
# PILOT
# =============================================================================


class Pilot:
    """
    Connected remote pilot.

    Use ``Pilot.handshake`` on an open transport, or ``Pilot.connect`` to
    discover and open a serial port.

    Attributes:
        transport: Open byte channel.
        manual: True in manual mode, False in assisted mode.
        name: Port name for messages.
    """

    __slots__ = ("transport", "manual", "name")

    def __init__(self, transport: Transport, manual: bool, name: str = "pilot") -> None:
        self.transport = transport
        self.manual = manual
        self.name = name

    # =========================================================================
    # CONNECTION
    # =========================================================================

    @classmethod
    def handshake(cls, transport: Transport, attempts: int = 3, name: str = "pilot") -> Pilot:
        """
        Ask the device for its mode.

        Args:
            transport: Open byte channel.
            attempts: Timed-out reads tolerated before giving up.
            name: Port name for messages.

        Returns:
            Pilot in the mode the device chose.

        Raises:
            PilotDisconnected: If the device never answers.
        """
        try:
            transport.write(HANDSHAKE)
            for _ in range(max(attempts, 1)):
                data = transport.read(1)
                if data:
                    manual = data[0] == 0
                    print(f"Pilot: chosen {'manual' if manual else 'assisted'} mode")
                    return cls(transport, manual, name)
        except OSError as e:
            raise PilotDisconnected(f"handshake on {name} failed: {e}") from e
        raise PilotDisconnected(f"no answer from {name}")

    @classmethod
    def connect(cls, config: PioneerConfig) -> Pilot | None:
        """
        Open the configured (or first USB) serial port and shake hands.

        Returns:
            Connected pilot, or None when pyserial is missing or no USB
            serial device is plugged in.

        Raises:
            PilotDisconnected: If a port was found but the handshake failed.
        """
        # pyserial is an optional dependency
        try:
            import serial
        except ImportError:
            print("Warning: pyserial not installed. Install with: pip install pioneer[serial]")
            return None

        port = config.pilot_port or find_usb_port()
        if port is None:
            return None

        print(f"Pilot: connecting to port {port}...")
        try:
            transport = serial.Serial(port, config.pilot_baudrate, timeout=config.pilot_timeout)
        except OSError as e:
            raise PilotDisconnected(f"cannot open {port}: {e}") from e

        try:
            return cls.handshake(transport, config.pilot_handshake_attempts, port)
        except PilotDisconnected:
            transport.close()
            raise

    def close(self) -> None:
        try:
            self.transport.close()
        except OSError as e:
            print(f"Pilot: error closing {self.name}: {e}")

    @property
    def is_manual(self) -> bool:
        return self.manual

    # =========================================================================
    # PROTOCOL
    # =========================================================================

    def put_score(self, score: float) -> None:
        """Report the running score (never negative on the wire)."""
        self._write_float(max(float(score), 0.0))

    def get_objective(self, charge_level: int = 750) -> Objective:
        """
        Ask the operator for the next objective.

        Returns:
            The chosen objective, IDLE when the operator does not intervene.

        Raises:
            PilotDisconnected: On timeout or I/O error.
        """
        self._write_float(READY_FOR_OBJECTIVE)
        code = self._read_byte()
        return Objective.from_code(code, charge_level)

    def get_action(self) -> int:
        """
        Read one manual command code.

        Raises:
            PilotDisconnected: On timeout or I/O error.
        """
        code = self._read_byte()
        self._write_float(ACKNOWLEDGE)
        try:
            self.transport.reset_input_buffer()
        except OSError as e:
            raise PilotDisconnected(str(e)) from e
        # Commands are signed: 0xFF is the device's disconnect code (-1)
        return struct.unpack("b", bytes([code]))[0]

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _read_byte(self) -> int:
        try:
            data = self.transport.read(1)
        except OSError as e:
            raise PilotDisconnected(f"{self.name}: {e}") from e
        if not data:
            raise PilotDisconnected(f"{self.name}: connection timed out")
        return data[0]

    def _write_float(self, value: float) -> None:
        try:
            self.transport.write(struct.pack(SCORE_FORMAT, value))
        except OSError as e:
            raise PilotDisconnected(f"{self.name}: {e}") from e


def find_usb_port() -> str | None:
    """Device name of the first USB serial port, or None (requires pyserial)."""
    from serial.tools import list_ports

    for port in list_ports.comports():
        if port.vid is not None:
            return port.device
    return None


# =============================================================================
# PROBE (raw channel test)
# =============================================================================


def probe_read(transport: Transport, count: int | None = None) -> int:
    """
    Print every byte received until a timeout, an error or ``count`` bytes.

    Returns:
        Number of bytes received.
    """
    received = 0
    while count is None or received < count:
        try:
            data = transport.read(1)
        except OSError as e:
            print(f"Disconnected: {e}")
            break
        if not data:
            print("Connection timed out.")
            break
        print(f"Received: {data[0]}")
        received += 1
    return received


def probe_write(transport: Transport, values: list[float]) -> int:
    """
    Send each value as a little-endian float32 score.

    Returns:
        Number of values written before the first error.
    """
    written = 0
    for value in values:
        try:
            transport.write(struct.pack(SCORE_FORMAT, value))
        except OSError as e:
            print(f"Write error: {e}")
            break
        print(f"Sent: {value:.3f}")
        written += 1
    return written
