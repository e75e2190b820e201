import os
import re
import json
import subprocess

from MatrixAccessAudit.errors import MailError


def run_az_cli_command(command):
    try:
        result = subprocess.run(
            command,
            shell=True,
            check=True,
            capture_output=True,
            text=True
        )
    except subprocess.CalledProcessError as e:
        raise MailError(f"Command failed: {command}: {e.stderr.strip()}") from e
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise MailError(f"Failed to parse JSON output from command: {command}") from e


def get_msgraph_token():
    cmd = "az account get-access-token --resource-type ms-graph -o json"
    data = run_az_cli_command(cmd)
    return data["accessToken"]


def sanitize_filename(s: str) -> str:
    """Strip characters Windows and Linux refuse in file names."""
    return re.sub(r'[<>:"/\\|?*\x00-\x1f]', "_", s).strip()


class RunLog:
    """
    Prints tagged messages ("[INFO] ...") and mirrors them into the run log file.
    When path is None only the console is used.
    """

    def __init__(self, path=None):
        self.path = path
        if path:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write("Matrix access audit run log:\n")

    def _write(self, level, msg):
        line = f"[{level}] {msg.rstrip()}"
        print(line)
        if self.path:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def info(self, msg):
        self._write("INFO", msg)

    def warning(self, msg):
        self._write("WARN", msg)

    def error(self, msg):
        self._write("ERROR", msg)
