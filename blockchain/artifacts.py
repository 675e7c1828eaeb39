"""
Artifact Registry
Locates compiled contract artifacts in the Hardhat output layout
(artifacts/contracts/<Source>.sol/<Name>.json)
"""

import os
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional
from loguru import logger

from .exceptions import ArtifactNotFound

DEFAULT_ARTIFACTS_DIR = 'artifacts/contracts'


@dataclass(frozen=True)
class ContractArtifact:
    """Compiled contract ready for deployment"""

    contract_name: str
    source_name: str
    abi: list
    bytecode: str
    path: str


class ArtifactRegistry:
    """
    Resolves contract names to compiled artifacts
    Reads local files only, never touches the network
    """

    def __init__(
        self,
        artifacts_dir: str = DEFAULT_ARTIFACTS_DIR,
        compiler_version: Optional[str] = None
    ):
        """
        Initialize Artifact Registry

        Args:
            artifacts_dir: Root of the compiled contract artifacts
            compiler_version: Expected solc version (None = skip check)
        """
        self.artifacts_dir = Path(artifacts_dir)
        self.compiler_version = compiler_version

    def get_artifact(self, contract_name: str) -> ContractArtifact:
        """
        Load the artifact for a contract

        Args:
            contract_name: Contract name as written in Solidity

        Returns:
            ContractArtifact

        Raises:
            ArtifactNotFound: No deployable artifact for this name
        """
        path = self._find(contract_name)

        if path is None:
            raise ArtifactNotFound(
                f"Contract artifact not found: {contract_name} "
                f"(searched {self.artifacts_dir}, run 'npx hardhat compile' first)"
            )

        try:
            with open(path, 'r') as f:
                contract_json = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ArtifactNotFound(f"Unreadable artifact {path}: {e}") from e

        abi = contract_json.get('abi')
        bytecode = contract_json.get('bytecode') or ''

        if abi is None:
            raise ArtifactNotFound(f"Artifact {path} has no ABI")

        # Interfaces and abstract contracts compile to empty bytecode
        if bytecode in ('', '0x'):
            raise ArtifactNotFound(f"Contract {contract_name} has no deployable bytecode")

        self._check_compiler_version(path)

        logger.debug(f"Loaded artifact {path}")

        return ContractArtifact(
            contract_name=contract_json.get('contractName', contract_name),
            source_name=contract_json.get('sourceName', ''),
            abi=abi,
            bytecode=bytecode,
            path=str(path)
        )

    def available(self) -> List[str]:
        """List deployable contract names"""
        names = []

        for path in self._artifact_files():
            try:
                with open(path, 'r') as f:
                    contract_json = json.load(f)
            except (OSError, json.JSONDecodeError):
                continue

            if contract_json.get('bytecode') not in (None, '', '0x'):
                names.append(path.stem)

        return sorted(names)

    def _artifact_files(self) -> List[Path]:
        """All artifact JSON files, debug files excluded"""
        if not self.artifacts_dir.is_dir():
            return []

        return [
            path for path in self.artifacts_dir.rglob('*.json')
            if not path.name.endswith('.dbg.json')
        ]

    def _find(self, contract_name: str) -> Optional[Path]:
        """Find artifact file for a contract name"""
        # Conventional location first: <Name>.sol/<Name>.json
        direct = self.artifacts_dir / f"{contract_name}.sol" / f"{contract_name}.json"
        if direct.is_file():
            return direct

        matches = [
            path for path in self._artifact_files()
            if path.stem == contract_name
        ]

        if len(matches) > 1:
            logger.warning(
                f"Multiple artifacts named {contract_name}, using {matches[0]}"
            )

        return matches[0] if matches else None

    def _check_compiler_version(self, artifact_path: Path):
        """Warn when the artifact was built by a different solc version"""
        if not self.compiler_version:
            return

        build_info = self._load_build_info(artifact_path)
        if not build_info:
            return

        solc_version = build_info.get('solcVersion')
        if solc_version and solc_version != self.compiler_version:
            logger.warning(
                f"{artifact_path.stem} compiled with solc {solc_version}, "
                f"config pins {self.compiler_version}"
            )

    def _load_build_info(self, artifact_path: Path) -> Optional[Dict]:
        """Follow the .dbg.json pointer to the build-info file"""
        dbg_path = artifact_path.with_name(f"{artifact_path.stem}.dbg.json")

        try:
            with open(dbg_path, 'r') as f:
                build_info_ref = json.load(f).get('buildInfo')

            if not build_info_ref:
                return None

            with open(os.path.join(dbg_path.parent, build_info_ref), 'r') as f:
                return json.load(f)

        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"No build info for {artifact_path.stem}: {e}")
            return None
