"""
JSON files for pydantic models.

Writes go to a sibling ``.tmp`` file that is renamed over the target, and
the previous version is kept next to it as ``.bak``. A file that exists but
does not load is never replaced behind the user's back: loading raises the
typed configuration error and the CLI reports it (``oscsurface config
reset`` is the explicit way out, and it still keeps a backup).
"""

import logging
import shutil
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from oscsurface.exceptions import ConfigFileInvalidError, ConfigurationError, wrap_pydantic_error

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class PydanticPersistence:
    """Load, save and check model files."""

    @staticmethod
    def load_json(path: Path, model_type: type[M]) -> M:
        """
        Read and validate a model.

        Raises:
            FileNotFoundError: If path does not exist
            ConfigFileInvalidError: If the file is unreadable, empty or not JSON
            ConfigValidationError: If the model rejects the values
        """
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise
        except OSError as e:
            raise ConfigFileInvalidError(str(path), f"Cannot read file: {e}") from e

        if not text.strip():
            raise ConfigFileInvalidError(str(path), "File is empty")

        try:
            model = model_type.model_validate_json(text)
        except ValidationError as e:
            raise wrap_pydantic_error(e, str(path)) from e

        logger.debug(f"Loaded {model_type.__name__} from {path}")
        return model

    @staticmethod
    def save_json(data: BaseModel, path: Path, backup: bool = True) -> None:
        """
        Write a model atomically, creating parent directories.

        Args:
            data: Model to write
            path: Target file
            backup: Copy an existing target to ``<name>.bak`` first
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        if backup and path.exists():
            shutil.copy2(path, path.with_suffix(path.suffix + ".bak"))

        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(data.model_dump_json(indent=2), encoding="utf-8")
            temp_path.replace(path)
        finally:
            temp_path.unlink(missing_ok=True)
        logger.debug(f"Saved {type(data).__name__} to {path}")

    @staticmethod
    def validate_json(path: Path, model_type: type[M]) -> str | None:
        """Problem with the file as a one-line message, or None when it loads."""
        try:
            PydanticPersistence.load_json(path, model_type)
        except FileNotFoundError:
            return f"File not found: {path}"
        except ConfigurationError as e:
            return e.user_message
        return None

    @staticmethod
    def load_or_create(path: Path, model_type: type[M]) -> M:
        """
        Load a model, writing the defaults first if the file is missing.

        Raises:
            ConfigurationError: If the file exists but is broken; it is left untouched
        """
        try:
            return PydanticPersistence.load_json(path, model_type)
        except FileNotFoundError:
            instance = model_type()
            PydanticPersistence.save_json(instance, path, backup=False)
            logger.info(f"Created default {model_type.__name__} at {path}")
            return instance
