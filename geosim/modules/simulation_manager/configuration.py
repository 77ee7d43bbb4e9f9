"""
Simulation Configuration - Engine parameter management and validation

This module provides:
- Typed engine parameters with defaults
- Range and allowed-value validation
- Atomic updates (a rejected update changes nothing)
- JSON export and import
"""

import json
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from geosim.errors import ConfigurationError
from geosim.utils.logger import get_logger


class ParameterType(Enum):
    """Parameter data types"""
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    BOOLEAN = "boolean"


@dataclass
class ConfigurationParameter:
    """Individual configuration parameter"""
    name: str
    value: Any
    parameter_type: ParameterType
    description: str = ""
    unit: str = ""
    min_value: Optional[Union[int, float]] = None
    max_value: Optional[Union[int, float]] = None
    allowed_values: Optional[List[Any]] = None

    def validate(self) -> Dict[str, Any]:
        """Validate parameter value, coercing compatible types in place"""

        validation_result = {
            "valid": True,
            "errors": [],
            "warnings": []
        }

        # Type validation
        if self.parameter_type == ParameterType.INTEGER:
            if isinstance(self.value, bool):
                validation_result["valid"] = False
                validation_result["errors"].append(f"{self.name}: Must be an integer")
            elif not isinstance(self.value, int):
                try:
                    as_float = float(self.value)
                    if not as_float.is_integer():
                        raise ValueError(self.value)
                    self.value = int(as_float)
                except (ValueError, TypeError):
                    validation_result["valid"] = False
                    validation_result["errors"].append(f"{self.name}: Must be an integer")

        elif self.parameter_type == ParameterType.FLOAT:
            if isinstance(self.value, bool):
                validation_result["valid"] = False
                validation_result["errors"].append(f"{self.name}: Must be a number")
            else:
                try:
                    self.value = float(self.value)
                except (ValueError, TypeError):
                    validation_result["valid"] = False
                    validation_result["errors"].append(f"{self.name}: Must be a number")

        elif self.parameter_type == ParameterType.BOOLEAN and not isinstance(self.value, bool):
            if isinstance(self.value, str):
                self.value = self.value.lower() in ["true", "1", "yes", "on"]
            else:
                validation_result["valid"] = False
                validation_result["errors"].append(f"{self.name}: Must be a boolean")

        elif self.parameter_type == ParameterType.STRING:
            if not isinstance(self.value, str):
                validation_result["valid"] = False
                validation_result["errors"].append(f"{self.name}: Must be a string")
            else:
                self.value = self.value.strip().lower()

        if not validation_result["valid"]:
            return validation_result

        # Range validation
        if self.parameter_type in [ParameterType.INTEGER, ParameterType.FLOAT]:
            if self.min_value is not None and self.value < self.min_value:
                validation_result["valid"] = False
                validation_result["errors"].append(f"{self.name}: Value {self.value} below minimum {self.min_value}")

            if self.max_value is not None and self.value > self.max_value:
                validation_result["valid"] = False
                validation_result["errors"].append(f"{self.name}: Value {self.value} above maximum {self.max_value}")

        # Allowed values validation
        if self.allowed_values and self.value not in self.allowed_values:
            validation_result["valid"] = False
            validation_result["errors"].append(f"{self.name}: Value {self.value} not in allowed values {self.allowed_values}")

        return validation_result


def _default_parameters() -> Dict[str, ConfigurationParameter]:
    return {
        "max_zones": ConfigurationParameter(
            "max_zones", 10, ParameterType.INTEGER,
            "Maximum number of circular zones", "zones", 1, 1000
        ),
        "circle_steps": ConfigurationParameter(
            "circle_steps", 64, ParameterType.INTEGER,
            "Vertices used to approximate a zone circle", "vertices", 8, 1024
        ),
        "tick_interval_ms": ConfigurationParameter(
            "tick_interval_ms", 1200.0, ParameterType.FLOAT,
            "Delay between playback ticks", "ms", 0.0, 600000.0
        ),
        "default_steps_per_leg": ConfigurationParameter(
            "default_steps_per_leg", 10, ParameterType.INTEGER,
            "Fallback points per leg when the requested count is unusable", "points", 2, 100000
        ),
        "leg_join_policy": ConfigurationParameter(
            "leg_join_policy", "duplicate", ParameterType.STRING,
            "How shared waypoints between legs are emitted", "",
            allowed_values=["duplicate", "deduplicate"]
        ),
        "earth_radius_m": ConfigurationParameter(
            "earth_radius_m", 6371008.8, ParameterType.FLOAT,
            "Spherical earth radius for zone circles", "meters", 6300000.0, 6400000.0
        ),
        "activity_log_size": ConfigurationParameter(
            "activity_log_size", 500, ParameterType.INTEGER,
            "Lines kept by the activity log", "lines", 1, 1000000
        )
    }


class SimulationConfiguration:
    """Engine configuration management"""

    def __init__(self, overrides: Optional[Dict[str, Any]] = None, strict_mode: bool = True):
        self.logger = get_logger(__name__)
        self.parameters: Dict[str, ConfigurationParameter] = _default_parameters()
        self.strict_mode = strict_mode  # If True, unknown parameters cause errors
        self.modified_at = datetime.now()

        if overrides:
            self.update(overrides)

    def get(self, name: str) -> Any:
        """Get a parameter value"""

        if name not in self.parameters:
            raise ConfigurationError(f"Unknown parameter: {name}")
        return self.parameters[name].value

    def update(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and apply parameter updates; nothing changes if any fails"""

        validated: Dict[str, ConfigurationParameter] = {}
        errors: List[str] = []
        unknown: List[str] = []

        for name, value in updates.items():
            if name not in self.parameters:
                unknown.append(name)
                continue

            candidate = replace(self.parameters[name], value=value)
            result = candidate.validate()
            if result["valid"]:
                validated[name] = candidate
            else:
                errors.extend(result["errors"])

        if unknown:
            if self.strict_mode:
                errors.append(f"Unknown parameters in strict mode: {unknown}")
            else:
                self.logger.warning(f"Ignoring unknown configuration parameters: {unknown}")

        if errors:
            raise ConfigurationError(f"Configuration validation failed: {errors}")

        self.parameters.update(validated)
        self.modified_at = datetime.now()

        if validated:
            self.logger.info(f"Updated configuration parameters: {sorted(validated)}")

        return self.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        return {name: param.value for name, param in self.parameters.items()}

    def describe(self) -> List[Dict[str, Any]]:
        """Parameter metadata for display"""

        return [
            {
                "name": param.name,
                "value": param.value,
                "type": param.parameter_type.value,
                "description": param.description,
                "unit": param.unit,
                "min_value": param.min_value,
                "max_value": param.max_value,
                "allowed_values": param.allowed_values
            }
            for param in self.parameters.values()
        ]

    def export_configuration(self, file_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """Export configuration, optionally writing it to a JSON file"""

        export_data = {
            "parameters": self.to_dict(),
            "exported_at": datetime.now().isoformat()
        }

        if file_path:
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(export_data, f, indent=2)
            self.logger.info(f"Exported configuration to {file_path}")

        return export_data

    @classmethod
    def import_configuration(cls, file_path: Union[str, Path],
                             strict_mode: bool = True) -> "SimulationConfiguration":
        """Load a configuration from a JSON file written by export_configuration"""

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid configuration file {file_path}: {e}") from e

        parameters = data.get("parameters", data) if isinstance(data, dict) else None
        if not isinstance(parameters, dict):
            raise ConfigurationError(f"Configuration file {file_path} must hold a JSON object")

        return cls(parameters, strict_mode=strict_mode)

    # Typed accessors

    @property
    def max_zones(self) -> int:
        return self.parameters["max_zones"].value

    @property
    def circle_steps(self) -> int:
        return self.parameters["circle_steps"].value

    @property
    def tick_interval_seconds(self) -> float:
        return self.parameters["tick_interval_ms"].value / 1000.0

    @property
    def default_steps_per_leg(self) -> int:
        return self.parameters["default_steps_per_leg"].value

    @property
    def leg_join_policy(self) -> str:
        return self.parameters["leg_join_policy"].value

    @property
    def earth_radius_m(self) -> float:
        return self.parameters["earth_radius_m"].value

    @property
    def activity_log_size(self) -> int:
        return self.parameters["activity_log_size"].value
