"""
Configuration — loads settings from environment / .env file.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
PROJECT_ROOT = Path(__file__).parent
ANALYSIS_RUNS_DIR = Path(os.getenv("ANALYSIS_RUNS_DIR", str(PROJECT_ROOT / "analysis_runs")))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1")
OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "120"))  # seconds
OPENAI_MAX_RETRIES = int(os.getenv("OPENAI_MAX_RETRIES", "2"))

# Temporal
TEMPORAL_HOST = os.getenv("TEMPORAL_HOST", "localhost:7233")
TEMPORAL_TASK_QUEUE = os.getenv("TEMPORAL_TASK_QUEUE", "backlog-analysis-queue")
TEMPORAL_NAMESPACE = os.getenv("TEMPORAL_NAMESPACE", "default")

# Clustering
SIMILARITY_THRESHOLD = float(os.getenv("SIMILARITY_THRESHOLD", "0.7"))
MIN_CLUSTER_SIZE = int(os.getenv("MIN_CLUSTER_SIZE", "1"))
MAX_CLUSTER_SIZE = int(os.getenv("MAX_CLUSTER_SIZE", "20"))

# Clusters at or below this many resolved members produce flat beads
EPIC_THRESHOLD = 5

# Beads
BEAD_ID_PREFIX = os.getenv("BEAD_ID_PREFIX", "str-")

# Priority overrides, e.g. "auth/**=1,docs/*.md=4"
PRIORITY_OVERRIDES = os.getenv("PRIORITY_OVERRIDES", "")

# Max characters of a signal description included in a prompt
PROMPT_DESCRIPTION_CHARS = 200
