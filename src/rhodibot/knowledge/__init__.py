"""Knowledge base of file and license classifications."""

from rhodibot.knowledge.languages import (
    EXTENSION_LANGUAGES,
    FILENAME_LANGUAGES,
    LOCKFILE_MANAGERS,
    MANAGER_CONFIG_FILES,
    classify_language,
    manager_for_config,
    manager_for_lockfile,
    manager_name,
)
from rhodibot.knowledge.licenses import (
    KNOWN_LICENSES,
    LICENSE_TITLES,
    identify_license,
    is_approved,
    license_alternatives,
    normalize_license,
)

__all__ = [
    "EXTENSION_LANGUAGES",
    "FILENAME_LANGUAGES",
    "LOCKFILE_MANAGERS",
    "MANAGER_CONFIG_FILES",
    "classify_language",
    "manager_for_config",
    "manager_for_lockfile",
    "manager_name",
    "KNOWN_LICENSES",
    "LICENSE_TITLES",
    "identify_license",
    "is_approved",
    "license_alternatives",
    "normalize_license",
]
