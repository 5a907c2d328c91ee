"""Expensive enrichment: ask an interpreter about itself.

Runs the interpreter in a subprocess (isolated mode, no site) and reads
its exact version, pointer size and ``sys.prefix`` from a JSON line. This
is the only place RuntimeScout executes discovered binaries, and it is
only used on request (resolution with probing enabled).
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass

from runtimescout.exceptions import ProbeError
from runtimescout.info.models import Architecture, PythonVersion

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT: float = 15.0

_PROBE_SCRIPT = (
    "import json, struct, sys; "
    "v = sys.version_info; "
    "print(json.dumps({"
    "'version_info': [v.major, v.minor, v.micro, v.releaselevel, v.serial], "
    "'bits': struct.calcsize('P') * 8, "
    "'sys_prefix': sys.prefix}))"
)


@dataclass(frozen=True)
class InterpreterInfo:
    """What an interpreter reported about itself."""

    version: PythonVersion
    arch: Architecture
    sys_prefix: str


def parse_probe_output(output: str) -> InterpreterInfo:
    """Parse the JSON line printed by the probe script.

    Raises:
        ProbeError: If the output is not the expected JSON document.
    """
    try:
        data = json.loads(output.strip().splitlines()[-1])
        major, minor, micro, release, serial = data["version_info"]
        bits = int(data["bits"])
        sys_prefix = str(data["sys_prefix"])
    except (IndexError, KeyError, TypeError, ValueError) as exc:
        raise ProbeError(f"Unexpected interpreter probe output: {output!r}") from exc

    arch = {32: Architecture.X86, 64: Architecture.X64}.get(bits, Architecture.UNKNOWN)
    return InterpreterInfo(
        version=PythonVersion(
            major=int(major), minor=int(minor), micro=int(micro),
            release=str(release), serial=int(serial),
        ),
        arch=arch,
        sys_prefix=sys_prefix,
    )


class InterpreterProbe:
    """Runs interpreters to obtain exact version and architecture.

    Attributes:
        timeout: Seconds to wait for one interpreter before killing it.
    """

    def __init__(self, timeout: float = DEFAULT_PROBE_TIMEOUT) -> None:
        self.timeout = timeout

    async def probe(self, executable: str) -> InterpreterInfo:
        """Run ``executable`` and parse what it reports.

        The child process is killed if the probe times out or the calling
        task is cancelled.

        Raises:
            ProbeError: If the interpreter cannot be started, times out,
                exits non-zero or prints something unexpected.
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                executable, "-I", "-S", "-c", _PROBE_SCRIPT,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ProbeError(f"Cannot start {executable}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise ProbeError(f"{executable} did not answer within {self.timeout}s") from exc
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()

        if proc.returncode != 0:
            logger.debug("Probe of %s failed: %s", executable, stderr.decode(errors="replace"))
            raise ProbeError(f"{executable} exited with status {proc.returncode}")
        return parse_probe_output(stdout.decode(errors="replace"))
