"""Configuration model for golden comparisons."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from goldcheck.models.comparison import PixelComparison

CONFIG_ENV_VAR = "GOLDCHECK_CONFIG"
DEFAULT_CONFIG_PATH = "goldcheck.json"


class GoldCheckConfig(BaseModel):
    # Locations
    goldens_dir: str = "./goldens"
    results_dir: str = "./test-results"
    skia_gold_dir: str = "./.goldcheck/skia-gold"

    # Comparison
    max_diff_rate_failure: float = Field(default=0.0, ge=0.0, le=1.0)
    pixel_comparison: PixelComparison = PixelComparison.PRECISE
    fuzzy_threshold: float = Field(default=0.1, ge=0.0, le=1.0)

    # Skia Gold
    gold_instance: str = "engine"
    gold_dimensions: dict[str, str] = Field(default_factory=dict)
    goldctl: Optional[str] = None

    @field_validator("goldctl", mode="before")
    @classmethod
    def resolve_env_goldctl(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and v.startswith("env:"):
            env_var = v[4:]
            resolved = os.environ.get(env_var)
            if resolved is None:
                raise ValueError(f"Environment variable '{env_var}' not set")
            return resolved
        return v

    @property
    def goldens_path(self) -> Path:
        return Path(self.goldens_dir)

    @property
    def results_path(self) -> Path:
        return Path(self.results_dir)

    @property
    def skia_gold_path(self) -> Path:
        return Path(self.skia_gold_dir)

    @classmethod
    def load(cls, path: str | Path) -> "GoldCheckConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    @classmethod
    def from_env(cls) -> "GoldCheckConfig":
        """Load the file named by GOLDCHECK_CONFIG, or ./goldcheck.json, or defaults."""
        explicit = os.environ.get(CONFIG_ENV_VAR)
        if explicit:
            return cls.load(explicit)
        if Path(DEFAULT_CONFIG_PATH).exists():
            return cls.load(DEFAULT_CONFIG_PATH)
        return cls()

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)
