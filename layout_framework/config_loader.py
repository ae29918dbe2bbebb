#!/usr/bin/env python3
"""
Configuration loader for the layout annealer.

Loads the YAML configuration file, resolves data file paths against the
common data directory, and builds the typed configuration objects and
collaborators (keyboard, layouts, tables) the search needs.
"""

from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from layout_framework.annealing import AnnealingConfig
from layout_framework.base_metric import DEFAULT_CACHE_SIZE
from layout_framework.cleanup import CleanupConfig
from layout_framework.constraints import Constraint, ConstraintFactory
from layout_framework.data_utils import load_frequency_table, load_keyboard, load_weight_table
from layout_framework.errors import ConfigurationError
from layout_framework.evaluation import DEFAULT_METRIC_WEIGHTS, EvaluationPipeline
from layout_framework.keyboard import Keyboard
from layout_framework.layout_io import load_layout
from layout_framework.layout_model import Layout
from layout_framework.metric_factory import MetricFactory
from layout_framework.metrics import DEFAULT_METRICS, MetricEngine
from layout_framework.mutation import MutationConfig, MutationEngine
from layout_framework.presets import ALPHABET, default_constraints, get_preset
from layout_framework.reachability import DEFAULT_MODIFIER_MAP, tap_alphabet
from layout_framework.tables import FrequencyTable, WeightTable

KNOWN_SECTIONS = [
    'common', 'keyboard', 'layouts', 'required_characters', 'modifiers', 'constraints',
    'tables', 'evaluation', 'mutation', 'annealing', 'cleanup', 'output',
]

KEYBOARD_PRESETS = {
    'ferris_sweep': Keyboard.ferris_sweep,
}


def build_dataclass(cls, section_name: str, section: Optional[Dict[str, Any]]):
    """
    Build a configuration dataclass from a YAML section.

    Raises:
        ConfigurationError: If the section has unknown keys or invalid values
    """
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Section '{section_name}' must be a mapping")

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigurationError(f"Unknown keys in section '{section_name}': {unknown}. Known: {sorted(known)}")

    try:
        return cls(**section)
    except TypeError as e:
        raise ConfigurationError(f"Invalid section '{section_name}': {e}")


class ConfigLoader:
    """Handles loading and processing of YAML configuration files."""

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize configuration loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        self._config_cache: Optional[Dict[str, Any]] = None

    def load_config(self) -> Dict[str, Any]:
        """
        Load YAML configuration file.

        Returns:
            Full configuration dictionary

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ConfigurationError: If YAML parsing fails or the top level is not a mapping
        """
        if self._config_cache is not None:
            return self._config_cache

        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Error parsing YAML configuration: {e}")

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigurationError("Configuration file must contain a mapping")

        self._config_cache = config
        return config

    def get_section(self, section_name: str, default: Any = None) -> Any:
        return self.load_config().get(section_name, default)

    def get_common_config(self) -> Dict[str, Any]:
        return self.get_section('common') or {}

    def _resolve_data_file_paths(self, data_files: Dict[str, Any]) -> Dict[str, Optional[str]]:
        """
        Resolve relative data file paths against the common data directory.

        Args:
            data_files: File key -> file name (None entries are kept)

        Returns:
            File key -> resolved path
        """
        data_directories = self.get_common_config().get('data_directories', {})
        base_dir = data_directories.get('base', 'input/')

        resolved = {}
        for key, filename in data_files.items():
            if filename is None:
                resolved[key] = None
                continue

            filepath = Path(filename)
            if not filepath.is_absolute() and not str(filepath).startswith(base_dir):
                filepath = Path(base_dir) / filename
            resolved[key] = str(filepath)
        return resolved

    def get_tables_config(self) -> Dict[str, Any]:
        """Get the tables section with data file paths resolved."""
        tables = dict(self.get_section('tables') or {})
        tables['data_files'] = self._resolve_data_file_paths(tables.get('data_files') or {})
        return tables

    def get_output_config(self) -> Dict[str, Any]:
        return self.get_section('output') or {}

    def is_verbose(self) -> bool:
        return bool(self.get_common_config().get('verbose', False))

    # Typed sections
    def get_annealing_config(self) -> AnnealingConfig:
        return build_dataclass(AnnealingConfig, 'annealing', self.get_section('annealing'))

    def get_mutation_config(self) -> MutationConfig:
        return build_dataclass(MutationConfig, 'mutation', self.get_section('mutation'))

    def get_cleanup_config(self) -> CleanupConfig:
        return build_dataclass(CleanupConfig, 'cleanup', self.get_section('cleanup'))

    def get_required_characters(self) -> str:
        chars = self.get_section('required_characters')
        if chars is None or chars == 'default':
            return ALPHABET
        if not isinstance(chars, str) or not chars:
            raise ConfigurationError("required_characters must be a non-empty string or 'default'")
        return chars

    def get_modifier_map(self) -> Dict[str, Dict[str, str]]:
        modifiers = self.get_section('modifiers')
        if modifiers is None:
            return DEFAULT_MODIFIER_MAP
        if not isinstance(modifiers, dict):
            raise ConfigurationError("modifiers must map modifier names to {produced: tapped} mappings")

        modifier_map = {}
        for name, mapping in modifiers.items():
            if not isinstance(mapping, dict):
                raise ConfigurationError(f"Modifier '{name}' must map produced characters to tapped characters")
            for produced, tapped in mapping.items():
                if not isinstance(produced, str) or not isinstance(tapped, str) \
                        or len(produced) != 1 or len(tapped) != 1:
                    raise ConfigurationError(f"Modifier '{name}': invalid entry {produced!r} -> {tapped!r}")
            modifier_map[str(name)] = dict(mapping)
        return modifier_map

    def get_constraints(self) -> List[Constraint]:
        specs = self.get_section('constraints')
        if specs is None:
            return default_constraints()
        if not isinstance(specs, list):
            raise ConfigurationError("constraints must be a list")
        try:
            return ConstraintFactory.create_constraints(specs)
        except ValueError as e:
            raise ConfigurationError(str(e))

    def get_metric_names(self) -> List[str]:
        evaluation = self.get_section('evaluation') or {}
        names = evaluation.get('metrics', DEFAULT_METRICS)
        unknown = [name for name in names if name not in MetricFactory.get_available_metrics()]
        if unknown:
            raise ConfigurationError(
                f"Unknown metrics: {unknown}. Available: {MetricFactory.get_available_metrics()}"
            )
        return list(names)

    def get_metric_weights(self) -> Dict[str, float]:
        evaluation = self.get_section('evaluation') or {}
        weights = evaluation.get('metric_weights', DEFAULT_METRIC_WEIGHTS)
        if not isinstance(weights, dict):
            raise ConfigurationError("evaluation.metric_weights must be a mapping")
        for name, weight in weights.items():
            if not isinstance(weight, (int, float)) or isinstance(weight, bool) or weight < 0:
                raise ConfigurationError(f"Weight of metric '{name}' must be a non-negative number")
        return {name: float(weight) for name, weight in weights.items()}

    def get_cache_size(self) -> int:
        evaluation = self.get_section('evaluation') or {}
        cache_size = evaluation.get('cache_size', DEFAULT_CACHE_SIZE)
        if not isinstance(cache_size, int) or isinstance(cache_size, bool) or cache_size < 1:
            raise ConfigurationError(f"evaluation.cache_size must be a positive integer, got {cache_size!r}")
        return cache_size

    # Collaborators
    def load_keyboard(self) -> Keyboard:
        """
        Build the keyboard from {preset: name} or {file: csv}.

        Raises:
            ConfigurationError: If the section is invalid
        """
        section = self.get_section('keyboard') or {'preset': 'ferris_sweep'}
        if 'preset' in section:
            preset = section['preset']
            if preset not in KEYBOARD_PRESETS:
                raise ConfigurationError(f"Unknown keyboard preset '{preset}'. Available: {list(KEYBOARD_PRESETS)}")
            return KEYBOARD_PRESETS[preset]()
        if 'file' in section:
            path = self._resolve_data_file_paths({'file': section['file']})['file']
            return load_keyboard(path, verbose=self.is_verbose())
        raise ConfigurationError("keyboard section needs 'preset' or 'file'")

    def load_layout(self, role: str) -> Layout:
        """
        Load the 'reference' or 'starter' layout from {preset: name} or {file: yaml}.

        Raises:
            ConfigurationError: If the layout entry is missing or invalid
        """
        layouts = self.get_section('layouts') or {}
        entry = layouts.get(role)
        if not isinstance(entry, dict):
            raise ConfigurationError(f"layouts.{role} must be {{preset: name}} or {{file: path}}")
        if 'preset' in entry:
            try:
                return get_preset(entry['preset'])
            except ValueError as e:
                raise ConfigurationError(str(e))
        if 'file' in entry:
            return load_layout(entry['file'])
        raise ConfigurationError(f"layouts.{role} needs 'preset' or 'file'")

    def load_frequency_table(self) -> FrequencyTable:
        data_files = self.get_tables_config()['data_files']
        letters = data_files.get('letter_frequencies')
        if not letters:
            raise ConfigurationError("tables.data_files.letter_frequencies is required")
        return load_frequency_table(letters, data_files.get('bigram_frequencies'), verbose=self.is_verbose())

    def load_weight_table(self, keyboard: Keyboard) -> WeightTable:
        tables = self.get_tables_config()
        base_effort = tables['data_files'].get('base_effort')
        finger_movement = tables.get('finger_movement')
        staccato_cost = tables.get('staccato_cost')

        if base_effort:
            return load_weight_table(base_effort, keyboard, finger_movement, staccato_cost,
                                     verbose=self.is_verbose())
        return WeightTable.from_keyboard(keyboard, finger_movement=finger_movement,
                                         staccato_cost=staccato_cost)

    def build_pipeline(self, keyboard: Keyboard, verbose: bool = False) -> EvaluationPipeline:
        """Create an uncalibrated evaluation pipeline from the configuration."""
        required = self.get_required_characters()
        frequencies = self.load_frequency_table().restricted_to(required)
        engine = MetricEngine(keyboard, self.load_weight_table(keyboard), frequencies, self.get_metric_names(),
                              cache_size=self.get_cache_size())
        try:
            return EvaluationPipeline(
                keyboard,
                required,
                engine,
                metric_weights=self.get_metric_weights(),
                constraints=self.get_constraints(),
                modifier_map=self.get_modifier_map(),
                verbose=verbose,
            )
        except ValueError as e:
            raise ConfigurationError(str(e))

    def build_mutation_engine(self) -> MutationEngine:
        modifier_map = self.get_modifier_map()
        return MutationEngine(
            tap_alphabet(self.get_required_characters(), modifier_map),
            modifiers=list(modifier_map.keys()),
            config=self.get_mutation_config(),
        )

    def validate_config(self) -> List[str]:
        """
        Validate the configuration and return any issues found.

        Returns:
            List of validation error messages (empty if valid)
        """
        try:
            config = self.load_config()
        except (FileNotFoundError, ConfigurationError) as e:
            return [f"Configuration error: {e}"]

        issues = []

        unknown = [name for name in config if name not in KNOWN_SECTIONS]
        if unknown:
            issues.append(f"Unknown sections: {unknown}")

        layouts = config.get('layouts') or {}
        for role in ('reference', 'starter'):
            if role not in layouts:
                issues.append(f"Missing layouts.{role}")

        checks = [
            self.get_annealing_config,
            self.get_mutation_config,
            self.get_cleanup_config,
            self.get_required_characters,
            self.get_modifier_map,
            self.get_constraints,
            self.get_metric_names,
            self.get_metric_weights,
            self.get_cache_size,
        ]
        for check in checks:
            try:
                check()
            except ConfigurationError as e:
                issues.append(str(e))

        data_files = self.get_tables_config()['data_files']
        if not data_files.get('letter_frequencies'):
            issues.append("Missing tables.data_files.letter_frequencies")
        for file_key, filepath in data_files.items():
            if filepath is not None and not Path(filepath).exists():
                issues.append(f"Data file not found: {file_key} -> {filepath}")

        return issues


# Global configuration loader instance
_config_loader: Optional[ConfigLoader] = None


def get_config_loader(config_path: str = "config.yaml") -> ConfigLoader:
    """
    Get global configuration loader instance (singleton pattern).

    Args:
        config_path: Path to configuration file

    Returns:
        ConfigLoader instance
    """
    global _config_loader

    if _config_loader is None or _config_loader.config_path != Path(config_path):
        _config_loader = ConfigLoader(config_path)

    return _config_loader
