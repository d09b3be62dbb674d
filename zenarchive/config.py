"""zenarchive configuration."""

import codecs
import os
from enum import Enum
from typing import Optional

import yaml

from zenarchive.exceptions import ConfigurationException


SUPPORTED_BINSAFE_VERSIONS = (1, 2)


class HashCheckPolicy(Enum):
    """What a BinSafe reader does when a redundant key hash disagrees."""
    IGNORE = "IGNORE"
    WARN = "WARN"
    STRICT = "STRICT"


class ArchiveConfig:
    """Configuration shared by archive readers and writers.

    Attributes:
        encoding: Codec used for keys, strings and ASCII lines. The default
            ``latin-1`` maps every byte, so no archive fails to decode.
        hash_check_policy: How BinSafe readers treat redundant hash mismatches.
        max_object_depth: Upper bound for object nesting while reading or writing.
        binsafe_version: BinSafe revision emitted by writers. Revision 1 omits
            the redundant key hash.
        archive_version: Value of the ``ver`` header line for new archives.
        user: Author recorded in new archive headers.
        date: Date recorded in new archive headers. ``None`` uses the current time.

    Example:
        Strict hash checking::

            config = ArchiveConfig()
            config.hash_check_policy = HashCheckPolicy.STRICT

        From YAML file::

            config = ArchiveConfig.from_yaml("zenarchive.yml")
    """

    def __init__(
        self,
        encoding: str = "latin-1",
        hash_check_policy: HashCheckPolicy = HashCheckPolicy.WARN,
        max_object_depth: int = 100000,
        binsafe_version: int = 2,
        archive_version: int = 1,
        user: str = "",
        date: Optional[str] = None,
    ):
        self._encoding = encoding
        self._hash_check_policy = hash_check_policy
        self._max_object_depth = max_object_depth
        self._binsafe_version = binsafe_version
        self._archive_version = archive_version
        self._user = user
        self._date = date
        self._validate()

    def _validate(self) -> None:
        try:
            codecs.lookup(self._encoding)
        except (LookupError, TypeError):
            raise ConfigurationException(f"unknown encoding: {self._encoding!r}")
        if not isinstance(self._hash_check_policy, HashCheckPolicy):
            raise ConfigurationException("hash_check_policy must be a HashCheckPolicy")
        if self._max_object_depth <= 0:
            raise ConfigurationException("max_object_depth must be positive")
        if self._binsafe_version not in SUPPORTED_BINSAFE_VERSIONS:
            raise ConfigurationException(
                f"binsafe_version must be one of {SUPPORTED_BINSAFE_VERSIONS}"
            )
        if self._archive_version < 0:
            raise ConfigurationException("archive_version must be non-negative")

    @property
    def encoding(self) -> str:
        """Get the text encoding."""
        return self._encoding

    @encoding.setter
    def encoding(self, value: str) -> None:
        self._encoding = value
        self._validate()

    @property
    def hash_check_policy(self) -> HashCheckPolicy:
        """Get the redundant hash check policy."""
        return self._hash_check_policy

    @hash_check_policy.setter
    def hash_check_policy(self, value: HashCheckPolicy) -> None:
        self._hash_check_policy = value
        self._validate()

    @property
    def max_object_depth(self) -> int:
        """Get the maximum object nesting depth."""
        return self._max_object_depth

    @max_object_depth.setter
    def max_object_depth(self, value: int) -> None:
        self._max_object_depth = value
        self._validate()

    @property
    def binsafe_version(self) -> int:
        """Get the BinSafe revision used when writing."""
        return self._binsafe_version

    @binsafe_version.setter
    def binsafe_version(self, value: int) -> None:
        self._binsafe_version = value
        self._validate()

    @property
    def archive_version(self) -> int:
        """Get the header version used when writing."""
        return self._archive_version

    @archive_version.setter
    def archive_version(self, value: int) -> None:
        self._archive_version = value
        self._validate()

    @property
    def user(self) -> str:
        """Get the header author."""
        return self._user

    @user.setter
    def user(self, value: str) -> None:
        self._user = value

    @property
    def date(self) -> Optional[str]:
        """Get the header date, or None for the time of writing."""
        return self._date

    @date.setter
    def date(self, value: Optional[str]) -> None:
        self._date = value

    @classmethod
    def from_dict(cls, data: dict) -> "ArchiveConfig":
        """Create ArchiveConfig from a dictionary."""
        policy = data.get("hash_check_policy", HashCheckPolicy.WARN)
        if isinstance(policy, str):
            try:
                policy = HashCheckPolicy(policy.upper())
            except ValueError:
                raise ConfigurationException(f"unknown hash_check_policy: {policy!r}")

        return cls(
            encoding=data.get("encoding", "latin-1"),
            hash_check_policy=policy,
            max_object_depth=data.get("max_object_depth", 100000),
            binsafe_version=data.get("binsafe_version", 2),
            archive_version=data.get("archive_version", 1),
            user=data.get("user", ""),
            date=data.get("date"),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "ArchiveConfig":
        """Load configuration from a YAML file.

        Args:
            yaml_path: Path to the YAML configuration file.

        Returns:
            ArchiveConfig instance.

        Raises:
            ConfigurationException: If the file cannot be read or parsed.
        """
        if not os.path.exists(yaml_path):
            raise ConfigurationException(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Failed to parse YAML: {e}", cause=e)
        except IOError as e:
            raise ConfigurationException(f"Failed to read configuration file: {e}", cause=e)

        return cls._from_document(data)

    @classmethod
    def from_yaml_string(cls, yaml_content: str) -> "ArchiveConfig":
        """Load configuration from a YAML string.

        Raises:
            ConfigurationException: If the YAML cannot be parsed.
        """
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Failed to parse YAML: {e}", cause=e)

        return cls._from_document(data)

    @classmethod
    def _from_document(cls, data) -> "ArchiveConfig":
        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ConfigurationException("configuration document must be a mapping")

        if "zenarchive" in data:
            data = data["zenarchive"] or {}

        return cls.from_dict(data)
