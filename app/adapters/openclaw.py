"""OpenClaw gateway runtime — one detached ``openclaw gateway`` per member.

Each member gets its own state directory (config, auth profiles, skills,
log, pid file), so gateways never share files.  The process is spawned in
its own session and tracked through ``gateway.pid``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import signal
from pathlib import Path

from app.adapters.base import GatewayRuntime
from app.services.errors import GatewayError

logger = logging.getLogger(__name__)

PID_FILE = "gateway.pid"
LOG_FILE = "gateway.log"


async def check_port(host: str, port: int, timeout: float = 2.0) -> bool:
    """Return True if a TCP connection to host:port succeeds."""
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout,
        )
        writer.close()
        await writer.wait_closed()
        return True
    except (ConnectionRefusedError, OSError, TimeoutError):
        return False


def _read_log_tail(log_path: Path, limit: int = 4000) -> str:
    if not log_path.exists():
        return ""
    return log_path.read_text(errors="replace")[-limit:]


class OpenClawRuntime(GatewayRuntime):
    def __init__(
        self,
        *,
        host: str = "127.0.0.1",
        binary: str = "openclaw",
        startup_attempts: int = 10,
        poll_interval: float = 2.0,
    ):
        # Gateway binds to 0.0.0.0 but we check via localhost
        self.host = "127.0.0.1" if host == "0.0.0.0" else host
        self.binary = binary
        self.startup_attempts = startup_attempts
        self.poll_interval = poll_interval

    async def start(self, gateway_dir: Path, *, port: int, token: str, env: dict[str, str]) -> None:
        if not shutil.which(self.binary):
            raise GatewayError(f"{self.binary} is not installed")

        await self.stop(gateway_dir)

        cmd = [self.binary, "gateway", "--port", str(port), "--force"]
        proc_env = os.environ.copy()
        proc_env.update(env)
        proc_env.update({
            "OPENCLAW_STATE_DIR": str(gateway_dir),
            "OPENCLAW_CONFIG_PATH": str(gateway_dir / "openclaw.json"),
            "OPENCLAW_GATEWAY_TOKEN": token,
        })

        log_path = gateway_dir / LOG_FILE
        logger.info("Starting gateway in %s: %s", gateway_dir, " ".join(cmd))
        with open(log_path, "w") as log_file:
            try:
                proc = await asyncio.create_subprocess_exec(
                    *cmd,
                    stdout=log_file,
                    stderr=log_file,
                    env=proc_env,
                    cwd=gateway_dir,
                    start_new_session=True,  # detach from parent
                )
            except OSError as exc:
                raise GatewayError(f"Could not launch {self.binary}: {exc}") from exc

        (gateway_dir / PID_FILE).write_text(str(proc.pid))

        # Poll for TCP readiness
        for attempt in range(self.startup_attempts):
            await asyncio.sleep(self.poll_interval)
            if proc.returncode is not None:
                (gateway_dir / PID_FILE).unlink(missing_ok=True)
                tail = _read_log_tail(log_path)
                logger.error("Gateway in %s died (code=%s):\n%s", gateway_dir, proc.returncode, tail)
                raise GatewayError(f"Gateway process exited (code={proc.returncode})")
            if await check_port(self.host, port):
                logger.info("Gateway up (pid=%d, port=%d)", proc.pid, port)
                return
            logger.debug("Gateway not yet listening on port %d (attempt %d/%d)",
                         port, attempt + 1, self.startup_attempts)

        await self.stop(gateway_dir)
        raise GatewayError(f"Gateway spawned (pid={proc.pid}) but port {port} never became reachable")

    async def stop(self, gateway_dir: Path) -> None:
        pid_path = gateway_dir / PID_FILE
        if not pid_path.exists():
            return
        try:
            pid = int(pid_path.read_text().strip())
        except ValueError:
            logger.warning("Ignoring corrupt pid file %s", pid_path)
            pid_path.unlink(missing_ok=True)
            return

        try:
            os.killpg(pid, signal.SIGTERM)
            logger.info("Stopped gateway process group %d", pid)
        except ProcessLookupError:
            logger.debug("Gateway process %d already gone", pid)
        except PermissionError as exc:
            raise GatewayError(f"Not allowed to stop gateway pid {pid}: {exc}") from exc
        pid_path.unlink(missing_ok=True)

    async def is_running(self, port: int) -> bool:
        return await check_port(self.host, port)
