"""Adapter for the web server's self-test and reload commands"""

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List

from ..models import ServiceConfig

logger = logging.getLogger(__name__)


@dataclass
class ServiceCheck:
    """Outcome of a service command"""
    ok: bool
    output: str = ""
    command: str = ""


class ServiceController:
    """Run the configured service commands

    Commands are templates split with shlex; ``{config}`` in the candidate
    test command is replaced by the candidate file path. Other braces are
    passed through literally.
    """

    def __init__(self, config: ServiceConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    def test_candidate(self, config_path: Path) -> ServiceCheck:
        """Syntax-test a candidate config file without touching live state"""
        return self._run(self.config.test_candidate, config=str(config_path))

    def test_live(self) -> ServiceCheck:
        """Syntax-test the currently committed configuration"""
        return self._run(self.config.test_live)

    def reload(self) -> ServiceCheck:
        """Reload the running service from its committed configuration"""
        return self._run(self.config.reload)

    def _build_command(self, template: str, **values: str) -> List[str]:
        command = []
        for part in shlex.split(template):
            for key, value in values.items():
                part = part.replace("{" + key + "}", value)
            command.append(part)
        return command

    def _run(self, template: str, **values: str) -> ServiceCheck:
        command = self._build_command(template, **values)
        display = " ".join(shlex.quote(part) for part in command)
        logger.debug(f"Running service command: {display}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.config.timeout
            )
        except FileNotFoundError as e:
            return ServiceCheck(ok=False, output=f"Command not found: {e.filename}", command=display)
        except subprocess.TimeoutExpired:
            return ServiceCheck(
                ok=False,
                output=f"Command timed out after {self.config.timeout}s",
                command=display
            )

        # nginx -t reports on stderr even when successful
        output = "\n".join(
            stream.strip() for stream in (result.stdout, result.stderr) if stream and stream.strip()
        )
        return ServiceCheck(ok=result.returncode == 0, output=output, command=display)

