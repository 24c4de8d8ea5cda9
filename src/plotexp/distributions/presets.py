"""
Plot preset persistence for plotexp (platformdirs + JSON).

Persisted items (schema v1):
- presets: name -> DistributionPlotState dict representation

Behavior:
- If the preset file is missing or unreadable -> an empty store is used
- If schema_version mismatches:
  - default: reset to an empty store
  - optional: keep loaded presets but update the version
- Unknown keys in loaded JSON are ignored with warnings
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from platformdirs import user_config_dir

from plotexp.distributions.plot_state import DistributionPlotState
from plotexp.utils.logging import get_logger

logger = get_logger(__name__)

# Increment when you make a breaking change to the on-disk JSON schema.
SCHEMA_VERSION: int = 1


@dataclass
class PlotPresetData:
    """
    JSON-serializable preset payload.

    Schema v1:
    - presets: Dict[str, Dict[str, Any]] - preset name -> DistributionPlotState dict
    """
    schema_version: int = SCHEMA_VERSION
    presets: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def to_json_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "schema_version": self.schema_version,
            "presets": self.presets,
        }

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> "PlotPresetData":
        """
        Tolerant loader:
        - ignores unknown keys
        - drops presets that are not dicts
        """
        schema_version = int(d.get("schema_version", -1))

        presets: Dict[str, Dict[str, Any]] = {}
        raw = d.get("presets", {})
        if isinstance(raw, dict):
            for name, value in raw.items():
                if isinstance(value, dict):
                    presets[str(name)] = value
                else:
                    logger.warning(f"Preset {name!r} is not a dict, ignoring")
        else:
            logger.warning("presets is not a dict, using empty presets")

        known_keys = {"schema_version", "presets"}
        for key in d.keys():
            if key not in known_keys:
                logger.warning(f"Unknown key '{key}' in plot preset file, ignoring")

        return cls(schema_version=schema_version, presets=presets)


class PlotPresetStore:
    """
    Manager for loading/saving named DistributionPlotState presets to disk.
    """

    def __init__(self, *, path: Path, data: Optional[PlotPresetData] = None):
        self.path = path
        self.data = data if data is not None else PlotPresetData()

    @staticmethod
    def default_path(
        app_name: str = "plotexp",
        filename: str = "plot_presets.json",
        app_author: str | None = None,
    ) -> Path:
        """
        Determine OS-appropriate per-user preset path.

        macOS:   ~/Library/Application Support/plotexp/plot_presets.json
        Linux:   ~/.config/plotexp/plot_presets.json
        Windows: %APPDATA%\\plotexp\\plot_presets.json
        """
        return Path(user_config_dir(app_name, app_author)) / filename

    @classmethod
    def load(
        cls,
        *,
        path: Optional[Path] = None,
        app_name: str = "plotexp",
        filename: str = "plot_presets.json",
        app_author: str | None = None,
        schema_version: int = SCHEMA_VERSION,
        reset_on_version_mismatch: bool = True,
    ) -> "PlotPresetStore":
        """
        Load presets from disk.

        If the file doesn't exist or is unreadable -> empty store.
        If schema mismatch:
          - reset_on_version_mismatch=True -> empty store
          - else -> keep loaded presets but overwrite schema_version
        """
        path = path or cls.default_path(app_name=app_name, filename=filename, app_author=app_author)
        default_data = PlotPresetData(schema_version=schema_version)

        try:
            parsed = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.debug(f"Plot preset file not found at {path}, using empty presets")
            return cls(path=path, data=default_data)
        except json.JSONDecodeError as e:
            logger.warning(f"Plot preset file at {path} is not valid JSON: {e}, using empty presets")
            return cls(path=path, data=default_data)
        except OSError as e:
            logger.warning(f"Error reading plot presets from {path}: {e}, using empty presets")
            return cls(path=path, data=default_data)

        if not isinstance(parsed, dict):
            logger.warning(f"Plot preset file at {path} does not contain a dict, using empty presets")
            return cls(path=path, data=default_data)

        loaded = PlotPresetData.from_json_dict(parsed)
        if int(loaded.schema_version) != int(schema_version):
            if reset_on_version_mismatch:
                logger.warning(
                    f"Plot preset schema version mismatch: loaded={loaded.schema_version}, "
                    f"expected={schema_version}, resetting to empty presets"
                )
                return cls(path=path, data=default_data)
            loaded.schema_version = int(schema_version)
        return cls(path=path, data=loaded)

    def save(self) -> None:
        """Write presets to disk."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            json_str = json.dumps(self.data.to_json_dict(), indent=2)
            self.path.write_text(json_str, encoding="utf-8")
            logger.info(f"Saved plot presets to {self.path}")
        except OSError as e:
            logger.error(f"Error saving plot presets to {self.path}: {e}")
            raise

    def names(self) -> list[str]:
        return sorted(self.data.presets)

    def get(self, name: str) -> DistributionPlotState:
        """Return the preset called name.

        Raises:
            KeyError: If there is no such preset.
            ValueError: If the stored preset cannot be deserialized.
        """
        if name not in self.data.presets:
            raise KeyError(f"No plot preset named {name!r}")
        return DistributionPlotState.from_dict(self.data.presets[name])

    def set(self, name: str, state: DistributionPlotState) -> None:
        self.data.presets[str(name)] = state.to_dict()

    def remove(self, name: str) -> None:
        self.data.presets.pop(name, None)
