"""
Operator secrets.

The admin and buyer mnemonics are read from ADMIN_PHRASE and BUYER_PHRASE,
which may be exported in the shell or kept in a .env file loaded with
python-dotenv. Shell values win over the file.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, SecretStr

logger = logging.getLogger(__name__)

PHRASE_VARS = {
    "admin": "ADMIN_PHRASE",
    "buyer": "BUYER_PHRASE",
}

# Set once the .env lookup has run, whether or not a file was found
_dotenv_loaded: bool = False
_dotenv_path: Path | None = None


def ensure_dotenv_loaded(env_file: str = ".env") -> bool:
    """Load ``env_file`` into os.environ the first time this is called.

    Returns:
        True if a .env file has been loaded by this or an earlier call
    """
    global _dotenv_loaded, _dotenv_path

    if _dotenv_loaded:
        return _dotenv_path is not None
    _dotenv_loaded = True

    path = Path(env_file)
    if not path.is_absolute() and not path.exists():
        path = Path.cwd() / env_file
    if not path.exists():
        logger.debug("No .env file at %s", env_file)
        return False

    load_dotenv(path, override=False)
    _dotenv_path = path
    logger.debug("Loaded environment from %s", path)
    return True


class EnvironmentConfig(BaseModel):
    """Mnemonics found in the environment, kept out of reprs and logs."""

    admin_phrase: SecretStr | None = None
    buyer_phrase: SecretStr | None = None
    env_file: str = ".env"


def _read_phrase(role: str) -> SecretStr | None:
    value = os.environ.get(PHRASE_VARS[role], "").strip()
    return SecretStr(value) if value else None


def load_environment(env_file: str = ".env") -> EnvironmentConfig:
    """Load .env (once) and return the mnemonics currently set."""
    ensure_dotenv_loaded(env_file)
    return EnvironmentConfig(
        admin_phrase=_read_phrase("admin"),
        buyer_phrase=_read_phrase("buyer"),
        env_file=env_file,
    )


def get_phrase(role: str) -> str | None:
    """Mnemonic of the ``admin`` or ``buyer`` account, or None if unset.

    Raises:
        ValueError: If ``role`` is not a known account role
    """
    if role not in PHRASE_VARS:
        raise ValueError(f"Unknown account role: {role}")
    ensure_dotenv_loaded()
    phrase = _read_phrase(role)
    return phrase.get_secret_value() if phrase else None


def reset_environment() -> None:
    """Allow the next call to read .env again."""
    global _dotenv_loaded, _dotenv_path
    _dotenv_loaded = False
    _dotenv_path = None
