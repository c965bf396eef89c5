"""YAML menu provider."""
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import ValidationError

from app.core.errors import ConfigError
from app.services.menu.base import MenuCatalogue, MenuDefinition, MenuProvider

logger = logging.getLogger(__name__)


class YamlMenuProvider(MenuProvider):
    """Menu provider reading the catalogue from a YAML file."""

    def __init__(self, menu_file: Optional[str] = None):
        """Initialize with optional menu file path."""
        if menu_file is None:
            menu_file = Path(__file__).parent / "data" / "menus.yaml"
        self.menu_file = Path(menu_file)

    def load_menus(self) -> List[MenuDefinition]:
        """Load and parse the menu catalogue."""
        if not self.menu_file.exists():
            raise ConfigError(f"Menu file not found: {self.menu_file}")

        try:
            with open(self.menu_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Menu file {self.menu_file} is not valid YAML: {e}") from e

        try:
            catalogue = MenuCatalogue.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Menu file {self.menu_file} is invalid: {e}") from e

        logger.info(
            f"[MENU] Loaded {len(catalogue.menus)} menus from {self.menu_file.name}"
        )
        return catalogue.menus
