"""Pipeline Configuration

Module-level settings for the content pipeline. Values that operators may
want to tune are read from environment variables once, at import time.

Environment variables:
  CONTENT_EXCERPT_LENGTH: Default excerpt length in characters (default: 200)
  CONTENT_AUTOLINK: Set to '0' to disable autolinking of bare URLs/emails
  CONTENT_SAFE_FOR_TEMPLATES: Set to '0' to keep template expressions
      ({{...}}, ${...}, <%...%>) in sanitized output
  CONTENT_PIPELINE_LOG_DIR: Directory for the CLI log file (default: logs)
"""

import os
from pathlib import Path

# Hard upper bound on submitted Markdown, in characters
MAX_CONTENT_LENGTH = 100_000

DEFAULT_EXCERPT_LENGTH = int(os.getenv("CONTENT_EXCERPT_LENGTH", "200"))

AUTOLINK_ENABLED = os.getenv("CONTENT_AUTOLINK", "1") == "1"
SAFE_FOR_TEMPLATES = os.getenv("CONTENT_SAFE_FOR_TEMPLATES", "1") == "1"

LOG_DIR = Path(os.getenv("CONTENT_PIPELINE_LOG_DIR", "logs"))

# Appended to excerpts that were cut short
TRUNCATION_MARKER = "..."
