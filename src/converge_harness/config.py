# config.py
# Environment-driven settings. A .env file in the working directory is
# honoured; explicit arguments to the harness always win over these.

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

ENV_COOKBOOK_PATH = "CONVERGE_HARNESS_COOKBOOK_PATH"
ENV_VERBOSE = "CONVERGE_HARNESS_VERBOSE"
ENV_NODE_NAME = "CONVERGE_HARNESS_NODE_NAME"

DEFAULT_NODE_NAME = "converge-harness.local"

_TRUTHY = {"1", "true", "yes", "on"}


class HarnessConfig(BaseModel):
    """Settings shared by the harness, the CLI and the pytest plugin."""

    cookbook_path: list[Path] = Field(default_factory=list, description="Searched in order.")
    verbose: bool = Field(default=False, description="Print a trace line per intercepted action.")
    node_name: str = Field(default=DEFAULT_NODE_NAME, min_length=1)

    @classmethod
    def from_env(cls) -> "HarnessConfig":
        raw_paths = os.getenv(ENV_COOKBOOK_PATH, "")
        return cls(
            cookbook_path=[Path(p) for p in raw_paths.split(os.pathsep) if p.strip()],
            verbose=os.getenv(ENV_VERBOSE, "").strip().lower() in _TRUTHY,
            node_name=os.getenv(ENV_NODE_NAME) or DEFAULT_NODE_NAME,
        )
