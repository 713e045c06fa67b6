"""
Config Manager

Loads an animation layer YAML document (with include system support),
validates it and converts it to immutable frame config / animation settings.
"""

from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from models.config_schema import AnimationLayerSchema, FadeSchema, RuntimeSchema
from models.errors import ConfigurationError
from models.frame_config import AnimationSettings, FadeSettings, FrameConfig, TimeRangedLayer
from models.transition import resolve_easing
from utils.logger import get_logger, LogCategory
from utils.time_utils import to_epoch_ms

log = get_logger().for_category(LogCategory.CONFIG)


class ConfigManager:
    """
    Animation layer configuration manager with include system support

    Loads animation.yaml and processes include: directive to load modular YAML files.
    Falls back to factory defaults when the main document cannot be loaded.

    Example:
        config = ConfigManager()
        config.load()

        base = config.frame_config       # FrameConfig (WMS or WMTS)
        settings = config.settings       # AnimationSettings
        runtime = config.runtime         # RuntimeSchema of the demo runner
    """

    def __init__(
        self,
        config_path="config/animation.yaml",
        defaults_path: Optional[str] = "config/factory_defaults.yaml",
    ):
        """
        Initialize ConfigManager

        Args:
            config_path: Path to main animation.yaml (relative to src/ unless absolute)
            defaults_path: Path to factory defaults fallback (None disables the fallback)
        """
        self.config_path = Path(config_path)
        self.factory_defaults_path = Path(defaults_path) if defaults_path else None
        self.data: Dict = {}
        self.schema: Optional[AnimationLayerSchema] = None

    @staticmethod
    def _src_dir() -> Path:
        return Path(__file__).parent.parent

    def load(self) -> Dict:
        """
        Load YAML configuration with include system support

        Process:
        1. Load main animation.yaml
        2. If it has 'include:' list, load and merge those files
        3. Otherwise treat as monolithic config
        4. Fallback to factory defaults on failure
        5. Validate the merged document

        Returns:
            Merged config data dict
        """
        src_dir = self._src_dir()
        full_path = src_dir / self.config_path

        try:
            self.data = self._load_document(full_path)
            self.schema = self._validate(self.data)
        except Exception as ex:
            log.error("Failed to load animation config", path=str(full_path), error=str(ex), error_type=type(ex).__name__)
            if self.factory_defaults_path is None:
                if isinstance(ex, ConfigurationError):
                    raise
                raise ConfigurationError(f"Cannot load {full_path}: {ex}") from ex

            log.warn("Falling back to factory defaults")
            defaults_path = src_dir / self.factory_defaults_path
            try:
                self.data = self._load_document(defaults_path)
            except (OSError, yaml.YAMLError) as defaults_ex:
                raise ConfigurationError(f"Cannot load factory defaults {defaults_path}: {defaults_ex}") from defaults_ex
            self.schema = self._validate(self.data)

        log.info(
            "Animation config loaded",
            source="wms" if self.schema.wms else "wmts",
            layer=self.frame_config.layer,
        )
        return self.data

    def _load_document(self, path: Path) -> Dict:
        with open(path, "r", encoding="utf-8") as f:
            main_config = yaml.safe_load(f) or {}

        if not isinstance(main_config, dict):
            raise ConfigurationError(f"{path.name}: top level must be a mapping")

        # Check for include system
        if 'include' in main_config:
            log.info("Using include-based configuration")
            data = self._load_with_includes(main_config['include'], path.parent)
            # Keys of the main document override included ones
            data.update({k: v for k, v in main_config.items() if k != 'include'})
            return data

        log.debug("Using monolithic configuration")
        return main_config

    def _load_with_includes(self, include_list: List[str], config_dir: Path) -> Dict:
        """
        Load and merge multiple YAML files from include list

        Args:
            include_list: List of filenames to load (e.g., ["source.yaml", "playback.yaml"])
            config_dir: Directory containing config files

        Returns:
            Merged config dict
        """
        merged = {}

        for filename in include_list:
            filepath = config_dir / filename
            try:
                with open(filepath, 'r', encoding='utf-8') as f:
                    file_data = yaml.safe_load(f)
                    if file_data:
                        merged.update(file_data)
                        log.info(f"Loaded {filename}", keys=str(list(file_data.keys())))
            except FileNotFoundError:
                log.error(f"File not found: {filename}")
                raise
            except Exception as ex:
                log.error(f"Error loading {filename}", error=str(ex))
                raise

        return merged

    @staticmethod
    def _validate(data: Dict) -> AnimationLayerSchema:
        try:
            return AnimationLayerSchema.model_validate(data)
        except ValidationError as ex:
            raise ConfigurationError(f"Invalid animation config: {ex}") from ex

    # ------------------------------------------------------------
    # Converted values
    # ------------------------------------------------------------

    def _require_schema(self) -> AnimationLayerSchema:
        if self.schema is None:
            raise ConfigurationError("Configuration not loaded")
        return self.schema

    @property
    def frame_config(self) -> FrameConfig:
        """Base frame config (time unset)"""
        schema = self._require_schema()
        if schema.wms is not None:
            config = FrameConfig.wms(
                url=schema.wms.url,
                layers=schema.wms.layers,
                params=schema.wms.params,
                options=schema.wms.options,
                name=schema.name,
                has_legend=schema.has_legend,
            )
        else:
            config = FrameConfig.wmts(
                url=schema.wmts.url,
                layer=schema.wmts.layer,
                style=schema.wmts.style,
                matrix_set=schema.wmts.matrix_set,
                format=schema.wmts.format,
                params=schema.wmts.params,
                name=schema.name,
                has_legend=schema.has_legend,
            )
        if schema.grid_buffer is not None:
            config = replace(config, grid_buffer=schema.grid_buffer)
        return config

    @staticmethod
    def _fade(schema: FadeSchema) -> FadeSettings:
        return FadeSettings(
            time_ms=schema.time,
            easing=resolve_easing(schema.easing),
            opacities=tuple(schema.opacities) if schema.opacities is not None else None,
        )

    @property
    def settings(self) -> AnimationSettings:
        animation = self._require_schema().animation
        layers: Tuple[TimeRangedLayer, ...] = tuple(
            TimeRangedLayer(
                begin_time=to_epoch_ms(info.begin_time),
                end_time=to_epoch_ms(info.end_time),
                layer=info.layer,
                name=info.name,
                has_legend=info.has_legend,
            )
            for info in animation.layers
        )
        return AnimationSettings(
            name=animation.name,
            has_legend=animation.has_legend,
            layers=layers,
            begin_time=to_epoch_ms(animation.begin_time),
            end_time=to_epoch_ms(animation.end_time),
            resolution_time=animation.resolution_time,
            max_async_load_count=animation.max_async_load_count,
            auto_load=animation.auto_load,
            frame_rate=animation.frame_rate,
            auto_start=animation.auto_start,
            fade_in=self._fade(animation.fade_in),
            fade_out=self._fade(animation.fade_out),
        )

    @property
    def runtime(self) -> RuntimeSchema:
        return self._require_schema().runtime
