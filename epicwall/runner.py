"""
Command Runner

Every desktop settings tool (gsettings, xfconf-query, qdbus, feh) is driven through
this one small interface instead of calling subprocess directly. The wallpaper handler
only ever asks two questions: is a tool installed, and what happened when it ran.
Tests hand the handler a fake runner that answers both without touching the system.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# exit status a shell reports for a command it can't find
COMMAND_NOT_FOUND = 127


@dataclass
class CommandResult:
    """Outcome of a single external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Run external tools synchronously and report their exit status and output."""

    def exists(self, name: str) -> bool:
        return shutil.which(name) is not None

    def run(self, name: str, args: list[str]) -> CommandResult:
        """
        Run name with args and capture its output. A non-zero exit status is not an
        error here, it is reported in the result for the caller to decide on. There is
        no timeout; the tools we call return promptly on their own.
        """

        cmd = [name, *args]
        logger.debug("running %s", " ".join(cmd))

        try:
            process = subprocess.run(
                cmd,
                text=True,
                check=False,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )

        except FileNotFoundError as error:
            return CommandResult(returncode=COMMAND_NOT_FOUND, stderr=str(error))

        if process.returncode != 0:
            logger.debug(
                "%s exited with %s: %s", name, process.returncode, process.stderr.strip()
            )

        return CommandResult(
            returncode=process.returncode,
            stdout=process.stdout,
            stderr=process.stderr,
        )
