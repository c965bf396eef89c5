"""Compiled, read-only menu registry."""
import logging
from types import MappingProxyType
from typing import Iterable, List, Mapping

from app.core.errors import ConfigError, MenuNotFound
from app.services.menu.base import (
    CONFIRM_SUBMISSION,
    MAIN_MENU,
    SUBMISSION_CONFIRMED,
    MenuDefinition,
    MenuProvider,
    normalize_menu_id,
)

logger = logging.getLogger(__name__)

# Menus the session controller enters by name
REQUIRED_MENUS = (MAIN_MENU, CONFIRM_SUBMISSION, SUBMISSION_CONFIRMED)


class MenuRegistry:
    """
    Catalogue of IVR menus, validated once when it is built.

    Lookups never mutate anything, so one instance is shared by every
    request. A missing menu is a configuration error, never a caller error.
    """

    def __init__(self, menus: Iterable[MenuDefinition]):
        compiled = {}
        for menu in menus:
            if menu.id in compiled:
                raise ConfigError(f"Duplicate menu id '{menu.id}'")
            compiled[menu.id] = menu
        self._menus: Mapping[str, MenuDefinition] = MappingProxyType(compiled)
        self._validate()

    @classmethod
    def from_provider(cls, provider: MenuProvider) -> "MenuRegistry":
        """Build a registry from a menu provider."""
        registry = cls(provider.load_menus())
        logger.info(f"[MENU] Registry compiled with {len(registry)} menus")
        return registry

    def _validate(self) -> None:
        """Check the registry closure and required entry points."""
        for required in REQUIRED_MENUS:
            if required not in self._menus:
                raise ConfigError(f"Required menu '{required}' is missing")

        for menu in self._menus.values():
            for digit, transition in menu.transitions.items():
                if transition.next_menu_id not in self._menus:
                    raise ConfigError(
                        f"Menu '{menu.id}' key '{digit}' points to unknown "
                        f"menu '{transition.next_menu_id}'"
                    )
                if transition.action.is_feed and not transition.topic:
                    raise ConfigError(
                        f"Menu '{menu.id}' key '{digit}' has no feed topic"
                    )

    def get_menu(self, menu_id: str) -> MenuDefinition:
        """Get a menu by id. Raises MenuNotFound for unknown ids."""
        menu = self._menus.get(normalize_menu_id(menu_id))
        if menu is None:
            raise MenuNotFound(menu_id)
        return menu

    def menu_ids(self) -> List[str]:
        """All menu ids, in catalogue order."""
        return list(self._menus)

    def __contains__(self, menu_id: object) -> bool:
        return isinstance(menu_id, str) and normalize_menu_id(menu_id) in self._menus

    def __len__(self) -> int:
        return len(self._menus)
