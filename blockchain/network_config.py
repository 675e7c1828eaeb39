"""
Network Configuration
Resolves named network profiles (RPC endpoint + signing keys) from
config/network_config.json and the process environment
"""

import os
import json
from dataclasses import dataclass
from string import Formatter
from typing import Dict, List, Optional, Tuple
from loguru import logger
from dotenv import load_dotenv

from .exceptions import ConfigError

load_dotenv()

DEFAULT_CONFIG_PATH = 'config/network_config.json'


@dataclass(frozen=True)
class NetworkProfile:
    """
    Connection parameters for one target network

    Attributes:
        name: Network key as declared in the config file
        rpc_url: HTTP JSON-RPC endpoint
        account_keys: Signing keys, first one deploys
        chain_id: Expected chain id (None = ask the node)
    """

    name: str
    rpc_url: str
    account_keys: Tuple[str, ...]
    chain_id: Optional[int] = None

    def __repr__(self) -> str:
        # Keys stay out of logs and tracebacks
        return (
            f"NetworkProfile(name={self.name!r}, rpc_url={self.rpc_url!r}, "
            f"account_keys=<{len(self.account_keys)} hidden>, chain_id={self.chain_id!r})"
        )


class NetworkConfig:
    """
    Network declarations plus the compiler version pin

    Each network declares exactly one URL source:
    - url: literal endpoint
    - url_env: environment variable holding the endpoint
    - url_template: format string whose fields are environment variable names

    and its signing keys through accounts_env (variable names) or
    default_accounts (literal keys, local development networks only).
    """

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        """
        Load network declarations

        Args:
            config_path: Path to the JSON declaration file
        """
        self.config_path = config_path

        try:
            with open(config_path, 'r') as f:
                self.config = json.load(f)
        except FileNotFoundError:
            raise ConfigError(f"Network config not found: {config_path}") from None
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid network config {config_path}: {e}") from e

        if not isinstance(self.config, dict):
            raise ConfigError(f"Network config {config_path} must be a JSON object")

        self.networks = self.config.get('networks')

        if not isinstance(self.networks, dict) or not self.networks:
            raise ConfigError(f"No networks declared in {config_path}")

        logger.debug(f"Loaded {len(self.networks)} networks from {config_path}")

    @property
    def default_network(self) -> str:
        """Network used when none is requested"""
        return self.config.get('default_network') or next(iter(self.networks))

    @property
    def compiler_version(self) -> Optional[str]:
        """Pinned Solidity compiler version"""
        return self.config.get('solidity')

    def network_names(self) -> List[str]:
        """Get all declared network names"""
        return list(self.networks.keys())

    def get_profile(self, name: Optional[str] = None) -> NetworkProfile:
        """
        Resolve and validate a network profile

        Args:
            name: Network name (None = default network)

        Returns:
            NetworkProfile with a non-empty RPC URL and at least one key

        Raises:
            ConfigError: Unknown network, malformed entry or missing variables
        """
        name = name or self.default_network
        declaration = self._get_declaration(name)

        missing = self.missing_variables(name)
        if missing:
            raise ConfigError(
                f"Network '{name}' requires environment variables: {', '.join(missing)}"
            )

        rpc_url = self._resolve_url(name, declaration)
        account_keys = self._resolve_accounts(name, declaration)

        chain_id = declaration.get('chain_id')
        if chain_id is not None and not isinstance(chain_id, int):
            raise ConfigError(f"Network '{name}' chain_id must be an integer")

        profile = NetworkProfile(
            name=name,
            rpc_url=rpc_url,
            account_keys=account_keys,
            chain_id=chain_id
        )

        logger.info(f"Using network '{name}' ({declaration.get('name', name)})")
        return profile

    def missing_variables(self, name: str) -> List[str]:
        """
        Get environment variables the network needs but which are unset

        Args:
            name: Network name

        Returns:
            Missing variable names, in declaration order
        """
        declaration = self._get_declaration(name)

        missing = []
        for var in self._required_variables(declaration):
            if not _getenv(var) and var not in missing:
                missing.append(var)

        return missing

    def _get_declaration(self, name: str) -> Dict:
        """Get raw declaration for a network"""
        if name not in self.networks:
            raise ConfigError(
                f"Unknown network '{name}' (declared: {', '.join(self.network_names())})"
            )

        declaration = self.networks[name]
        if not isinstance(declaration, dict):
            raise ConfigError(f"Network '{name}' must be a JSON object")

        return declaration

    def _required_variables(self, declaration: Dict) -> List[str]:
        """List environment variables referenced by a declaration"""
        variables = []

        if declaration.get('url_env'):
            variables.append(declaration['url_env'])

        if declaration.get('url_template'):
            variables.extend(
                field for _, field, _, _ in Formatter().parse(declaration['url_template'])
                if field
            )

        variables.extend(declaration.get('accounts_env', []))
        return variables

    def _resolve_url(self, name: str, declaration: Dict) -> str:
        """Build the RPC URL from the declared source"""
        sources = [key for key in ('url', 'url_env', 'url_template') if declaration.get(key)]

        if len(sources) != 1:
            raise ConfigError(
                f"Network '{name}' must declare exactly one of url, url_env, url_template"
            )

        source = sources[0]

        if source == 'url':
            return declaration['url']

        if source == 'url_env':
            return _getenv(declaration['url_env'])

        template = declaration['url_template']
        values = {
            field: _getenv(field)
            for _, field, _, _ in Formatter().parse(template)
            if field
        }
        return template.format(**values)

    def _resolve_accounts(self, name: str, declaration: Dict) -> Tuple[str, ...]:
        """Collect signing keys for a network"""
        if declaration.get('accounts_env'):
            keys = [_getenv(var) for var in declaration['accounts_env']]
        else:
            keys = list(declaration.get('default_accounts', []))

        if not keys:
            raise ConfigError(f"Network '{name}' declares no accounts")

        return tuple(_normalize_key(key) for key in keys)


def _getenv(var: str) -> str:
    """Read an environment variable, treating blank values as unset"""
    return (os.getenv(var) or '').strip()


def _normalize_key(key: str) -> str:
    """Ensure a private key carries the 0x prefix"""
    if key[:2].lower() == '0x':
        key = key[2:]
    return f"0x{key}"
