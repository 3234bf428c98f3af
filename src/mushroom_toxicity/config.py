from dataclasses import dataclass
from typing import Any, Dict
import yaml


@dataclass
class Config:
    """Configuration object loaded from YAML."""
    data: Dict[str, Any]
    cleaning: Dict[str, Any]
    preprocessing: Dict[str, Any]
    models: Dict[str, Any]
    validation: Dict[str, Any]
    output: Dict[str, Any]
    seed: int = 43920

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        with open(path, "r") as f:
            cfg = yaml.safe_load(f)
        return cls(**cfg)
