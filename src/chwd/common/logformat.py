from __future__ import annotations

import logging


class GitHubActionsFormatter(logging.Formatter):
    """Formats warnings etc. for GitHub Actions: https://docs.github.com/en/actions/using-workflows/workflow-commands-for-github-actions#setting-a-notice-message"""

    def __init__(self):
        super().__init__(fmt="%(name)s:%(message)s")

    def format(self, record: logging.LogRecord):
        s = super().format(record)
        prefix = {
            logging.INFO: "::notice::",
            logging.WARNING: "::warning::",
            logging.ERROR: "::error::",
            logging.CRITICAL: "::error::",
        }.get(record.levelno, record.levelname + ":")
        # Workflow commands end at the first newline
        return prefix + s.replace("\n", "%0A")
