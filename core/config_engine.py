#!/usr/bin/env python3
"""
core/config_engine.py
SMC Engine - Config management
Yazar: SuperBot Team
Versiyon: 1.1.0

Features:
- Multi-YAML support (several config files, deep merged in load order)
- Environment variable substitution (${SMC_SWING_LENGTH})
- .env loading (python-dotenv)
- Nested key access (dot notation: smc.swing_length)
- Schema validation (pydantic)

Usage:
    from core.config_engine import ConfigEngine

    config = ConfigEngine(base_path="config/")
    config.load("smc.yaml")

    swing_length = config.get("smc.swing_length", default=50)
    smc_config = config.validate(SMCConfig, "smc")

Dependencies:
    - pyyaml
    - python-dotenv
    - pydantic
"""

import copy
import os
import re
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from core.logger_engine import get_logger

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_ENV_PATTERN = re.compile(r'\$\{([^}]+)\}')


class ConfigEngine:
    """
    Config management

    - Multi-YAML config loading
    - Environment variable substitution
    - Thread-safe access
    - pydantic schema validation
    """

    def __init__(self, base_path: str = "config/", env_file: str = ".env"):
        """
        Args:
            base_path: Folder holding the config files
            env_file: .env file name (inside base_path)
        """
        self.base_path = Path(base_path)
        self.env_file = self.base_path / env_file

        self._config: Dict[str, Any] = {}
        self._config_lock = threading.RLock()
        self._loaded_files: List[str] = []

        if self.env_file.exists():
            load_dotenv(self.env_file)
        else:
            logger.debug(f".env file not found: {self.env_file}")

    def load(self, filename: str) -> bool:
        """
        Load a single config file

        Args:
            filename: Config file name (e.g. smc.yaml)

        Returns:
            bool: True on success
        """
        file_path = self.base_path / filename

        if not file_path.exists():
            logger.error(f"Config file not found: {file_path}")
            return False

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Config load error {filename}: {e}")
            return False

        if data is None:
            data = {}

        data = self._substitute_env_vars(data)

        with self._config_lock:
            self._config = self._deep_merge(self._config, data)
            if filename not in self._loaded_files:
                self._loaded_files.append(filename)

        return True

    def load_all(self, filenames: List[str]) -> bool:
        """
        Load several config files

        Returns:
            bool: True if all of them loaded
        """
        success = True
        for filename in filenames:
            if not self.load(filename):
                success = False

        if not success:
            logger.warning("Some config files could not be loaded")

        return success

    def get(self, key: str, default: Any = None) -> Any:
        """
        Config value (nested key support)

        Example:
            length = config.get("smc.swing_length", default=50)
        """
        with self._config_lock:
            value = self._config
            for k in key.split('.'):
                if isinstance(value, dict) and k in value:
                    value = value[k]
                else:
                    return default
            return copy.deepcopy(value)

    def get_all(self) -> Dict[str, Any]:
        """Whole merged config (copy)"""
        with self._config_lock:
            return copy.deepcopy(self._config)

    def get_loaded_files(self) -> List[str]:
        return self._loaded_files.copy()

    def validate(self, schema: Type[SchemaT], config_path: Optional[str] = None) -> SchemaT:
        """
        Validate the config against a pydantic schema

        Args:
            schema: pydantic BaseModel subclass
            config_path: Config section to validate (None = root)

        Returns:
            Validated schema instance

        Raises:
            ValidationError: When validation fails
        """
        config_data = self.get(config_path, {}) if config_path else self.get_all()

        try:
            validated = schema.model_validate(config_data or {})
        except ValidationError as e:
            logger.error(f"Config validation error: {schema.__name__}")
            for error in e.errors():
                field = " -> ".join(str(x) for x in error['loc'])
                logger.error(f"   • {field}: {error['msg']}")
            raise

        logger.debug(f"Config validated: {schema.__name__}")
        return validated

    def _deep_merge(self, base: Dict, update: Dict) -> Dict:
        """Deep merge two dicts (update wins)"""
        result = copy.deepcopy(base)

        for key, value in update.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _substitute_env_vars(self, data: Any) -> Any:
        """
        ${VAR_NAME} -> os.getenv("VAR_NAME")

        A value that is exactly one placeholder is parsed as YAML after
        substitution, so ${SMC_SWING_LENGTH}=30 becomes the integer 30.
        Unknown variables are left untouched.
        """
        if isinstance(data, dict):
            return {k: self._substitute_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]
        elif isinstance(data, str):
            full = _ENV_PATTERN.fullmatch(data)
            if full and full.group(1) in os.environ:
                return yaml.safe_load(os.environ[full.group(1)])

            def replacer(match):
                return os.getenv(match.group(1), match.group(0))

            return _ENV_PATTERN.sub(replacer, data)
        else:
            return data
