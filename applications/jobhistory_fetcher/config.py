"""
Configuration Management
========================

This module defines the configuration object for the job history
fetcher.  Configuration can be loaded from environment variables or
from a YAML/JSON file.  Storing credentials in environment variables is
recommended for security.

The configuration fields include:

* ``history_address`` – ``host:port`` of the MapReduce job history
  server web application (``mapreduce.jobhistory.webapp.address``).
* ``params`` – free‑form string parameters passed verbatim to the
  fetcher.  ``sampling_enabled`` (``"true"``/``"false"``) controls
  whether task level data is sampled for very large jobs.
* ``timeout`` – per request timeout in seconds.
* ``auth_user``, ``auth_password`` – HTTP basic credentials, if the
  history server sits behind a proxy that requires them.
* ``pseudo_auth_user`` – user name sent as ``user.name`` for Hadoop's
  simple (pseudo) authentication.

```
MAPREDUCE_JOBHISTORY_ADDRESS=jhs.example.com:19888
FETCHER_SAMPLING_ENABLED=true
FETCHER_TIMEOUT=30
FETCHER_PSEUDO_AUTH_USER=elephant
```

The fetcher treats its configuration as read‑only input.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

SAMPLING_ENABLED = "sampling_enabled"
DEFAULT_TIMEOUT = 30.0


@dataclass
class FetcherConfig:
    """Dataclass encapsulating all runtime configuration for the fetcher."""

    history_address: str = ""
    params: Dict[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    auth_user: Optional[str] = None
    auth_password: Optional[str] = None
    pseudo_auth_user: Optional[str] = None

    @classmethod
    def from_env(cls) -> "FetcherConfig":
        """Create a FetcherConfig instance from environment variables.

        If a variable is not defined, the default value remains.
        """
        params: Dict[str, str] = {}
        sampling = os.getenv("FETCHER_SAMPLING_ENABLED")
        if sampling is not None:
            params[SAMPLING_ENABLED] = sampling
        return cls(
            history_address=os.getenv("MAPREDUCE_JOBHISTORY_ADDRESS", ""),
            params=params,
            timeout=float(os.getenv("FETCHER_TIMEOUT", str(DEFAULT_TIMEOUT))),
            auth_user=os.getenv("FETCHER_AUTH_USER"),
            auth_password=os.getenv("FETCHER_AUTH_PASSWORD"),
            pseudo_auth_user=os.getenv("FETCHER_PSEUDO_AUTH_USER"),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "FetcherConfig":
        """Load configuration from a JSON or YAML file.

        :param path: Path to a JSON or YAML configuration file.  Unknown
            keys are ignored.  Values from the file override those read
            from the environment; ``params`` entries are merged.
        :returns: FetcherConfig instance.
        :raises FileNotFoundError: If the file does not exist.
        :raises ValueError: If the file extension is not ``.json`` or
            ``.yaml``/``.yml`` or the document is not a mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        data: Any
        if path.suffix.lower() == ".json":
            data = json.loads(path.read_text())
        elif path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(path.read_text())
        else:
            raise ValueError(
                "Unsupported configuration file format: expected .json or .yaml/.yml"
            )
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        cfg = cls.from_env()
        for key, value in data.items():
            key_lower = key.lower()
            if key_lower == "params":
                if not isinstance(value, dict):
                    raise ValueError("'params' must be a mapping of strings")
                # Booleans from YAML become the strings the fetcher expects
                cfg.params.update({str(k): _param_str(v) for k, v in value.items()})
                continue
            if key_lower == SAMPLING_ENABLED:
                cfg.params[SAMPLING_ENABLED] = _param_str(value)
                continue
            if key_lower == "timeout":
                cfg.timeout = float(value)
                continue
            if hasattr(cfg, key_lower) and not key_lower.startswith("_"):
                setattr(cfg, key_lower, value)
        return cfg

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the configuration to a dictionary (password masked)."""
        return {
            "history_address": self.history_address,
            "params": dict(self.params),
            "timeout": self.timeout,
            "auth_user": self.auth_user,
            "auth_password": "***" if self.auth_password else None,
            "pseudo_auth_user": self.pseudo_auth_user,
        }


def _param_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
