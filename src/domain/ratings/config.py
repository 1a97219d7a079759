"""Load rating system parameters from a TOML file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any
import tomllib

from domain.ratings.calculator import RatingParameters

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[3] / "configs" / "rating" / "default.toml"


@dataclass(frozen=True)
class RatingSystemConfig:
    """Named rating parameter set."""

    name: str
    description: str | None
    file_path: Path
    parameters: RatingParameters

    def as_config_json(self) -> dict[str, Any]:
        return {
            "initial_rating": self.parameters.initial_rating,
            "k_factor": self.parameters.k_factor,
            "scale_factor": self.parameters.scale_factor,
            "points_weight": self.parameters.points_weight,
            "points_factor_cap": self.parameters.points_factor_cap,
            "bo1_multiplier": self.parameters.bo1_multiplier,
            "bo3_multiplier": self.parameters.bo3_multiplier,
            "bo5_multiplier": self.parameters.bo5_multiplier,
            "bo7_multiplier": self.parameters.bo7_multiplier,
        }


def load_rating_system_config(file_path: Path = DEFAULT_CONFIG_PATH) -> RatingSystemConfig:
    """Load and validate one rating system TOML file."""
    if not file_path.exists():
        raise FileNotFoundError(f"Rating config not found: {file_path}")
    if not file_path.is_file():
        raise ValueError(f"Rating config path is not a file: {file_path}")

    with file_path.open("rb") as file:
        raw = tomllib.load(file)
    return _parse_rating_system_config(raw, file_path)


def _parse_rating_system_config(raw: dict[str, Any], file_path: Path) -> RatingSystemConfig:
    system_raw = raw.get("system", {})
    rating_raw = raw.get("rating", {})
    defaults = RatingParameters()

    name = str(system_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [system].name is required")

    description_value = system_raw.get("description")
    description = None if description_value is None else str(description_value)

    parameters = RatingParameters(
        initial_rating=int(rating_raw.get("initial_rating", defaults.initial_rating)),
        k_factor=float(rating_raw.get("k_factor", defaults.k_factor)),
        scale_factor=float(rating_raw.get("scale_factor", defaults.scale_factor)),
        points_weight=float(rating_raw.get("points_weight", defaults.points_weight)),
        points_factor_cap=float(rating_raw.get("points_factor_cap", defaults.points_factor_cap)),
        bo1_multiplier=float(rating_raw.get("bo1_multiplier", defaults.bo1_multiplier)),
        bo3_multiplier=float(rating_raw.get("bo3_multiplier", defaults.bo3_multiplier)),
        bo5_multiplier=float(rating_raw.get("bo5_multiplier", defaults.bo5_multiplier)),
        bo7_multiplier=float(rating_raw.get("bo7_multiplier", defaults.bo7_multiplier)),
    )
    _validate_parameters(file_path=file_path, parameters=parameters)

    return RatingSystemConfig(
        name=name,
        description=description,
        file_path=file_path,
        parameters=parameters,
    )


def _validate_parameters(*, file_path: Path, parameters: RatingParameters) -> None:
    if parameters.initial_rating <= 0:
        raise ValueError(f"{file_path}: [rating].initial_rating must be > 0")
    if parameters.k_factor <= 0.0:
        raise ValueError(f"{file_path}: [rating].k_factor must be > 0")
    if parameters.scale_factor <= 0.0:
        raise ValueError(f"{file_path}: [rating].scale_factor must be > 0")
    if parameters.points_weight < 0.0:
        raise ValueError(f"{file_path}: [rating].points_weight must be >= 0")
    if parameters.points_factor_cap < 0.0 or parameters.points_factor_cap >= 1.0:
        raise ValueError(f"{file_path}: [rating].points_factor_cap must be in [0, 1)")

    multipliers = (
        ("bo1_multiplier", parameters.bo1_multiplier),
        ("bo3_multiplier", parameters.bo3_multiplier),
        ("bo5_multiplier", parameters.bo5_multiplier),
        ("bo7_multiplier", parameters.bo7_multiplier),
    )
    for key, value in multipliers:
        if value <= 0.0:
            raise ValueError(f"{file_path}: [rating].{key} must be > 0")
    for (shorter_key, shorter), (longer_key, longer) in zip(multipliers, multipliers[1:]):
        if shorter > longer:
            raise ValueError(f"{file_path}: [rating].{shorter_key} must not exceed {longer_key}")


__all__ = ["DEFAULT_CONFIG_PATH", "RatingSystemConfig", "load_rating_system_config"]
