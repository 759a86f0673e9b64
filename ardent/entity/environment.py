"""Process-wide collaborators used by Ardent entities.

The environment bundles the validator factory, the password hasher and the
current request. It is built from settings on first use; tests and
applications replace parts of it with the setters below.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

from ardent.core.interfaces import Hasher, RequestInput, ValidatorFactoryProtocol
from ardent.core.settings.settings import get_settings
from ardent.core.validation.catalog import load_catalog
from ardent.core.validation.validation import ValidatorFactory
from ardent.entity.hashing import Pbkdf2Hasher
from ardent.entity.request import NullRequest
from ardent.orm.store import get_default_store, set_default_store

logger = logging.getLogger(__name__)


@dataclass
class Environment:
    """Collaborators shared by every entity.

    Attributes:
        validator_factory: Builds validators for validate()
        hasher: Hashes password attributes
        request: Source of hydration input and flash target
        external: True when running outside a web request cycle; no input
            is flashed
    """
    validator_factory: ValidatorFactoryProtocol
    hasher: Hasher
    request: RequestInput
    external: bool = False


_environment: Optional[Environment] = None


def _build_default() -> Environment:
    settings = get_settings()
    factory = ValidatorFactory(catalog=load_catalog(settings.locale), presence_verifier=get_default_store())
    return Environment(validator_factory=factory, hasher=Pbkdf2Hasher(), request=NullRequest())


def get_environment() -> Environment:
    """Get the environment, building the default one on first use."""
    global _environment
    if _environment is None:
        _environment = _build_default()
        logger.debug("Built default ardent environment")
    return _environment


def reset_environment() -> None:
    """Drop the environment; the next access rebuilds it from settings."""
    global _environment
    _environment = None


def set_request(request: RequestInput) -> None:
    get_environment().request = request


def set_validator_factory(factory: ValidatorFactoryProtocol) -> None:
    get_environment().validator_factory = factory


def set_hasher(hasher: Hasher) -> None:
    get_environment().hasher = hasher


def configure_as_external(
    store: Any = None,
    lang: str = "en",
    hasher: Optional[Hasher] = None,
    extra_files: Optional[Iterable[Path]] = None,
) -> Environment:
    """Configure ardent for use outside a web request cycle.

    Installs a store as the default store, a validator factory whose
    unique and exists rules query that store, a message catalog for the
    language and a hasher. Input is never flashed in this mode.

    Args:
        store: Store for every model, the current default store when None
        lang: Locale of validation messages
        hasher: Password hasher, a Pbkdf2Hasher when None
        extra_files: YAML message files layered over the bundled catalog

    Returns:
        The new environment
    """
    global _environment

    if store is not None:
        set_default_store(store)
    store = get_default_store()

    factory = ValidatorFactory(catalog=load_catalog(lang, extra_files), presence_verifier=store)
    _environment = Environment(
        validator_factory=factory,
        hasher=hasher or Pbkdf2Hasher(),
        request=NullRequest(),
        external=True,
    )
    logger.info(f"Ardent configured as external (lang={lang}, store={getattr(store, 'name', type(store).__name__)})")
    return _environment
