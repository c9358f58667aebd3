#!/usr/bin/env python3
"""prefix-list-monitor - Keep an AWS managed prefix list pointed at this host

Polls an IP echo service for the host's external IPv4 address and, whenever it
changes, replaces the prefix list entries this monitor owns (identified by
their description) with a single entry for the new address. Updates are
guarded by the prefix list version so concurrent edits are never clobbered.

Every option can be given as a flag, an environment variable, or a key in a
YAML config file (flag > environment > config file > default).

Options:

    AWS:
        --region            AWS_REGION               AWS region (default: boto3 default chain)
        --prefix-list-id    PREFIX_LIST_ID           Prefix list to update (required)
        --description       ENTRY_DESCRIPTION        Description that marks entries owned by
                                                     this monitor (default: Auto-updated host IP)

    IP detection:
        --ip-service        IP_SERVICE_URL           Plain-text IPv4 echo service
                                                     (default: https://api.ipify.org)
        --cidr-suffix       CIDR_SUFFIX              Prefix length for the entry (default: 32)
        --timeout           REQUEST_TIMEOUT_SECONDS  Per-call network timeout (default: 10)

    Runtime:
        --interval          CHECK_INTERVAL           Seconds between checks (default: 300)
        --once              RUN_ONCE                 Run a single check and exit
        --log-level         LOG_LEVEL                DEBUG, INFO, WARNING, ERROR (default: INFO)
        --config            PREFIX_LIST_MONITOR_CONFIG
                                                     YAML file with any of the keys below.
                                                     Example config file:
                                                       prefix_list_id: pl-0123456789abcdef0
                                                       region: us-east-1
                                                       entry_description: "office uplink"
                                                       check_interval: 120
                                                       ip_service_url: https://ipv4.icanhazip.com
                                                       cidr_suffix: 32
                                                       request_timeout: 5
                                                       once: false
                                                       log_level: DEBUG
"""

from __future__ import annotations

import argparse
import ipaddress
import logging
import os
import sys
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Set
from urllib.parse import urlparse

import boto3
import requests
import yaml
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_ENTRY_DESCRIPTION = "Auto-updated host IP"
DEFAULT_CHECK_INTERVAL = 300
DEFAULT_IP_SERVICE_URL = "https://api.ipify.org"
DEFAULT_CIDR_SUFFIX = 32
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "INFO"

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# =============================================================================
# Logging Setup
# =============================================================================

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# =============================================================================
# Errors
# =============================================================================


class MonitorError(Exception):
    """Base class for all errors raised by the monitor."""


class ConfigError(MonitorError):
    """Invalid or missing configuration. Fatal before the first check."""


class FetchFailed(MonitorError):
    """The IP echo service could not be reached or returned an error."""


class InvalidAddress(FetchFailed):
    """The IP echo service answered with something that is not an IPv4 address."""


class RemoteError(MonitorError):
    """A prefix list API call failed."""


class NotFound(RemoteError):
    """The prefix list does not exist (or is not visible to these credentials)."""


class VersionConflict(RemoteError):
    """The prefix list changed between reading its version and modifying it."""


# =============================================================================
# Address Helpers
# =============================================================================


def is_valid_ipv4(text: str) -> bool:
    """Return True if text is a strict IPv4 dotted quad such as "192.168.1.1"."""
    if not isinstance(text, str) or not text:
        return False
    try:
        ipaddress.IPv4Address(text)
    except ValueError:
        return False
    return True


def format_cidr(address: str, suffix: int) -> str:
    """Format an address and prefix length as CIDR notation."""
    if not 0 <= suffix <= 32:
        raise ValueError(f"CIDR suffix must be between 0 and 32, got {suffix}")
    return f"{address}/{suffix}"


def parse_address(text: str) -> str:
    """Extract the address from an IP echo service response.

    Surrounding whitespace is ignored. Anything other than a single IPv4
    dotted quad (IPv6 literals, several addresses, HTML error pages) is
    rejected rather than guessed at.
    """
    candidate = (text or "").strip()
    if not is_valid_ipv4(candidate):
        raise InvalidAddress(f"Invalid IP address format: {text!r}")
    return candidate


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class RemoteEntry:
    """A single prefix list entry."""

    cidr: str
    description: str = ""


@dataclass
class MonitorState:
    """What the monitor remembers between checks. Never persisted."""

    list_identifier: str
    entry_tag: str
    address_suffix: int = DEFAULT_CIDR_SUFFIX
    last_known_address: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0 <= self.address_suffix <= 32:
            raise ValueError(
                f"CIDR suffix must be between 0 and 32, got {self.address_suffix}"
            )


class OutcomeKind(Enum):
    """Result of one reconciliation cycle.

    UNCHANGED:       Address matches the last one seen, no API calls made.
    ALREADY_PRESENT: Address changed but the prefix list already has it.
    UPDATED:         Old owned entries were replaced by the new address.
    FAILED:          The cycle stopped early, state left untouched.
    """

    UNCHANGED = "unchanged"
    ALREADY_PRESENT = "already_present"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass(frozen=True)
class ReconciliationOutcome:
    kind: OutcomeKind
    address: Optional[str] = None
    cidr: Optional[str] = None
    removed_count: int = 0
    new_version: Optional[int] = None
    error: Optional[MonitorError] = None

    @classmethod
    def unchanged(cls, address: str, cidr: str) -> "ReconciliationOutcome":
        return cls(OutcomeKind.UNCHANGED, address=address, cidr=cidr)

    @classmethod
    def already_present(cls, address: str, cidr: str) -> "ReconciliationOutcome":
        return cls(OutcomeKind.ALREADY_PRESENT, address=address, cidr=cidr)

    @classmethod
    def updated(
        cls, address: str, cidr: str, removed_count: int, new_version: Optional[int] = None
    ) -> "ReconciliationOutcome":
        return cls(
            OutcomeKind.UPDATED,
            address=address,
            cidr=cidr,
            removed_count=removed_count,
            new_version=new_version,
        )

    @classmethod
    def failed(
        cls, error: MonitorError, address: Optional[str] = None, cidr: Optional[str] = None
    ) -> "ReconciliationOutcome":
        return cls(OutcomeKind.FAILED, address=address, cidr=cidr, error=error)


# =============================================================================
# IP Source Interface and Implementations
# =============================================================================


class IPSource(ABC):
    """Abstract base class for external IP detection."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the source name for logging."""
        pass

    @abstractmethod
    def fetch(self, url: str) -> str:
        """Return the raw response text of the IP echo service at url."""
        pass


class HTTPIPSource(IPSource):
    """Plain-text IP echo service over HTTP(S), e.g. api.ipify.org."""

    def __init__(self, timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT):
        self._timeout = timeout_seconds
        self._session = requests.Session()

    @property
    def name(self) -> str:
        return "HTTP IP echo"

    def fetch(self, url: str) -> str:
        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FetchFailed(f"Failed to fetch external IP from {url}: {e}") from e
        return response.text


# =============================================================================
# Allowlist Client Interface and Implementations
# =============================================================================


class AllowlistClient(ABC):
    """Abstract base class for a versioned, remotely managed allowlist."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the client name for logging."""
        pass

    @abstractmethod
    def get_version(self, list_id: str) -> int:
        """Return the current version of the list. Raises NotFound if missing."""
        pass

    @abstractmethod
    def list_owned_entries(self, list_id: str, tag: str) -> List[RemoteEntry]:
        """Return entries whose description equals tag."""
        pass

    @abstractmethod
    def conditional_mutate(
        self,
        list_id: str,
        expected_version: int,
        removals: Set[str],
        additions: Set[RemoteEntry],
    ) -> int:
        """Apply removals and additions in one request if the list is still at
        expected_version. Returns the new version.

        Raises VersionConflict if the version moved, NotFound if the list is
        gone, RemoteError for anything else.
        """
        pass

    def test_connection(self, list_id: str) -> bool:
        """Check that the list is reachable with the current credentials."""
        try:
            version = self.get_version(list_id)
        except RemoteError as e:
            logger.error(f"Failed to access {list_id} via {self.name}: {e}")
            return False
        logger.info(f"{self.name} connection successful: {list_id} is at version {version}")
        return True


class EC2PrefixListClient(AllowlistClient):
    """AWS VPC managed prefix list client backed by a boto3 EC2 client."""

    VERSION_CONFLICT_CODES = {"PrefixListVersionMismatch", "InvalidPrefixListVersion"}
    NOT_FOUND_CODES = {"InvalidPrefixListID.NotFound", "InvalidPrefixListId.NotFound"}

    def __init__(self, ec2_client: Any):
        self._client = ec2_client

    @property
    def name(self) -> str:
        region = getattr(self._client.meta, "region_name", None) or "default region"
        return f"EC2 managed prefix lists ({region})"

    def _translate(self, action: str, list_id: str, e: Exception) -> RemoteError:
        if isinstance(e, ClientError):
            code = e.response.get("Error", {}).get("Code", "")
            if code in self.VERSION_CONFLICT_CODES:
                return VersionConflict(f"{action} {list_id}: version conflict ({code}): {e}")
            if code in self.NOT_FOUND_CODES:
                return NotFound(f"{action} {list_id}: prefix list not found: {e}")
        return RemoteError(f"{action} {list_id} failed: {e}")

    def get_version(self, list_id: str) -> int:
        try:
            response = self._client.describe_managed_prefix_lists(PrefixListIds=[list_id])
        except (ClientError, BotoCoreError) as e:
            raise self._translate("Describe", list_id, e) from e

        prefix_lists = response.get("PrefixLists", [])
        if not prefix_lists:
            raise NotFound(f"Prefix list {list_id} not found")
        return int(prefix_lists[0].get("Version") or 0)

    def list_owned_entries(self, list_id: str, tag: str) -> List[RemoteEntry]:
        entries: List[RemoteEntry] = []
        try:
            paginator = self._client.get_paginator("get_managed_prefix_list_entries")
            for page in paginator.paginate(PrefixListId=list_id):
                for e in page.get("Entries", []):
                    cidr = e.get("Cidr")
                    description = e.get("Description", "")
                    if not cidr or description != tag:
                        continue
                    entries.append(RemoteEntry(cidr=cidr, description=description))
        except (ClientError, BotoCoreError) as e:
            raise self._translate("List entries of", list_id, e) from e
        return entries

    def conditional_mutate(
        self,
        list_id: str,
        expected_version: int,
        removals: Set[str],
        additions: Set[RemoteEntry],
    ) -> int:
        request: Dict[str, Any] = {"PrefixListId": list_id, "CurrentVersion": expected_version}
        if additions:
            request["AddEntries"] = [
                {"Cidr": entry.cidr, "Description": entry.description}
                for entry in sorted(additions, key=lambda entry: entry.cidr)
            ]
        if removals:
            request["RemoveEntries"] = [{"Cidr": cidr} for cidr in sorted(removals)]

        for cidr in sorted(removals):
            logger.debug(f"Removing old entry: {cidr}")
        for entry in additions:
            logger.debug(f"Adding new entry: {entry.cidr} ({entry.description})")

        try:
            response = self._client.modify_managed_prefix_list(**request)
        except (ClientError, BotoCoreError) as e:
            raise self._translate("Modify", list_id, e) from e

        new_version = int(response.get("PrefixList", {}).get("Version") or 0)
        logger.info(f"Prefix list {list_id} modified, now at version {new_version}")
        return new_version


# =============================================================================
# Provider Registry
# =============================================================================


def create_allowlist_client(settings: Settings) -> AllowlistClient:
    """Factory function to create the EC2 prefix list client."""
    boto_config = BotoConfig(
        connect_timeout=settings.request_timeout,
        read_timeout=settings.request_timeout,
        retries={"max_attempts": 3, "mode": "standard"},
    )
    try:
        session = boto3.session.Session(region_name=settings.region or None)
        ec2_client = session.client("ec2", config=boto_config)
    except BotoCoreError as e:
        raise ConfigError(f"Failed to create EC2 client: {e}") from e
    return EC2PrefixListClient(ec2_client)


# =============================================================================
# Core Reconciler
# =============================================================================


class Reconciler:
    def __init__(
        self,
        *,
        ip_source: IPSource,
        allowlist_client: AllowlistClient,
        state: MonitorState,
        ip_service_url: str = DEFAULT_IP_SERVICE_URL,
    ):
        self.ip_source = ip_source
        self.allowlist_client = allowlist_client
        self.state = state
        self.ip_service_url = ip_service_url

    def reconcile(self) -> ReconciliationOutcome:
        """Run one check and bring the prefix list in line with the current address.

        last_known_address is only written once the prefix list is known to
        hold the new address, so any failure leaves the next check to retry
        the whole sequence.
        """
        state = self.state
        list_id = state.list_identifier

        try:
            address = parse_address(self.ip_source.fetch(self.ip_service_url))
        except FetchFailed as e:
            return ReconciliationOutcome.failed(e)

        cidr = format_cidr(address, state.address_suffix)
        logger.debug(f"Detected external IP: {address}")

        if state.last_known_address is not None and state.last_known_address == address:
            logger.debug(f"IP unchanged: {address}")
            return ReconciliationOutcome.unchanged(address, cidr)

        logger.info(f"IP change detected: {state.last_known_address or 'none'} -> {address}")

        try:
            owned = self.allowlist_client.list_owned_entries(list_id, state.entry_tag)
            owned_cidrs = {entry.cidr for entry in owned}

            if cidr in owned_cidrs:
                stale = sorted(owned_cidrs - {cidr})
                if stale:
                    logger.warning(
                        f"Prefix list {list_id} also has stale entries tagged "
                        f"'{state.entry_tag}': {', '.join(stale)}"
                    )
                state.last_known_address = address
                return ReconciliationOutcome.already_present(address, cidr)

            removals = {c for c in owned_cidrs if c != cidr}
            if removals:
                logger.info(f"Replacing {len(removals)} old entries with new CIDR {cidr}")
            else:
                logger.info(f"Adding new CIDR {cidr} to prefix list {list_id}")

            version = self.allowlist_client.get_version(list_id)
            new_version = self.allowlist_client.conditional_mutate(
                list_id,
                version,
                removals,
                {RemoteEntry(cidr=cidr, description=state.entry_tag)},
            )
        except RemoteError as e:
            return ReconciliationOutcome.failed(e, address=address, cidr=cidr)

        state.last_known_address = address
        return ReconciliationOutcome.updated(address, cidr, len(removals), new_version)


# =============================================================================
# Scheduler
# =============================================================================


def log_outcome(outcome: ReconciliationOutcome) -> None:
    """Report a cycle's outcome. Conflicts are expected and log below errors."""
    if outcome.kind == OutcomeKind.UNCHANGED:
        logger.debug(f"No change: {outcome.cidr}")
    elif outcome.kind == OutcomeKind.ALREADY_PRESENT:
        logger.info(f"CIDR {outcome.cidr} already exists in prefix list")
    elif outcome.kind == OutcomeKind.UPDATED:
        logger.info(
            f"✓ Prefix list updated: {outcome.cidr} "
            f"(replaced {outcome.removed_count} old entries, version {outcome.new_version})"
        )
    elif isinstance(outcome.error, VersionConflict):
        logger.warning(
            f"Prefix list changed while applying {outcome.cidr}; will retry next check: "
            f"{outcome.error}"
        )
    elif isinstance(outcome.error, FetchFailed):
        logger.warning(f"Could not determine external IP: {outcome.error}")
    else:
        logger.error(f"Error during check while applying {outcome.cidr}: {outcome.error}")


class Scheduler:
    def __init__(self, reconciler: Reconciler, sleep: Callable[[float], None] = time.sleep):
        self.reconciler = reconciler
        self._sleep = sleep

    def run_cycle(self) -> Optional[ReconciliationOutcome]:
        """Run one check. Never raises."""
        try:
            outcome = self.reconciler.reconcile()
        except Exception as e:
            logger.error(f"Unexpected error during check: {e}", exc_info=True)
            return None
        log_outcome(outcome)
        return outcome

    def run(self, interval_seconds: float, once: bool = False) -> None:
        while True:
            self.run_cycle()

            if once:
                logger.info("Running in once mode, exiting")
                return

            self._sleep(interval_seconds)


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class Settings:
    prefix_list_id: str
    region: Optional[str] = None
    entry_description: str = DEFAULT_ENTRY_DESCRIPTION
    check_interval: int = DEFAULT_CHECK_INTERVAL
    ip_service_url: str = DEFAULT_IP_SERVICE_URL
    cidr_suffix: int = DEFAULT_CIDR_SUFFIX
    once: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL


def _parse_bool(value: Any, *, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}


def _parse_int(name: str, value: Any) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def _parse_float(name: str, value: Any) -> float:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None


def load_config_file(path: str) -> Dict[str, Any]:
    """Load settings from a YAML file. An empty path means no file."""
    if not path:
        return {}
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping of settings")
    return data


def build_parser() -> argparse.ArgumentParser:
    """Flags default to None so unset ones fall through to env and config file."""
    parser = argparse.ArgumentParser(
        prog="prefix-list-monitor",
        description="Monitor external IP and update an AWS VPC managed prefix list",
    )
    parser.add_argument("-c", "--config", help="YAML config file [PREFIX_LIST_MONITOR_CONFIG]")
    parser.add_argument("-r", "--region", help="AWS region, e.g. us-east-1 [AWS_REGION]")
    parser.add_argument("-p", "--prefix-list-id", help="Prefix list ID to update [PREFIX_LIST_ID]")
    parser.add_argument(
        "-d", "--description", help="Description for the prefix list entry [ENTRY_DESCRIPTION]"
    )
    parser.add_argument("-i", "--interval", help="Check interval in seconds [CHECK_INTERVAL]")
    parser.add_argument("--ip-service", help="IP detection service URL [IP_SERVICE_URL]")
    parser.add_argument("--cidr-suffix", help="CIDR suffix, 32 for a single host [CIDR_SUFFIX]")
    parser.add_argument(
        "--timeout", help="Network timeout in seconds [REQUEST_TIMEOUT_SECONDS]"
    )
    parser.add_argument("--log-level", help="Log level [LOG_LEVEL]")
    parser.add_argument(
        "--once", action="store_true", default=None, help="Run once and exit [RUN_ONCE]"
    )
    return parser


def load_settings(
    argv: Optional[Iterable[str]] = None, environ: Optional[Dict[str, str]] = None
) -> Settings:
    """Resolve settings from flags, environment and config file, then validate."""
    env = os.environ if environ is None else environ
    args = build_parser().parse_args(None if argv is None else list(argv))
    file_cfg = load_config_file(args.config or env.get("PREFIX_LIST_MONITOR_CONFIG", ""))

    def pick(flag_value: Any, env_name: str, key: str, default: Any) -> Any:
        if flag_value is not None:
            return flag_value
        if env.get(env_name, "") != "":
            return env[env_name]
        if file_cfg.get(key) is not None:
            return file_cfg[key]
        return default

    prefix_list_id = str(pick(args.prefix_list_id, "PREFIX_LIST_ID", "prefix_list_id", "")).strip()
    region = str(pick(args.region, "AWS_REGION", "region", "")).strip() or None
    description = str(
        pick(args.description, "ENTRY_DESCRIPTION", "entry_description", DEFAULT_ENTRY_DESCRIPTION)
    )
    interval = _parse_int(
        "CHECK_INTERVAL",
        pick(args.interval, "CHECK_INTERVAL", "check_interval", DEFAULT_CHECK_INTERVAL),
    )
    ip_service_url = str(
        pick(args.ip_service, "IP_SERVICE_URL", "ip_service_url", DEFAULT_IP_SERVICE_URL)
    ).strip()
    cidr_suffix = _parse_int(
        "CIDR_SUFFIX", pick(args.cidr_suffix, "CIDR_SUFFIX", "cidr_suffix", DEFAULT_CIDR_SUFFIX)
    )
    timeout = _parse_float(
        "REQUEST_TIMEOUT_SECONDS",
        pick(args.timeout, "REQUEST_TIMEOUT_SECONDS", "request_timeout", DEFAULT_REQUEST_TIMEOUT),
    )
    once = _parse_bool(pick(args.once, "RUN_ONCE", "once", False))
    log_level = str(pick(args.log_level, "LOG_LEVEL", "log_level", DEFAULT_LOG_LEVEL)).upper()

    errors = []
    if not prefix_list_id:
        errors.append("PREFIX_LIST_ID is required (--prefix-list-id)")
    if not description.strip():
        errors.append("ENTRY_DESCRIPTION must not be empty")
    if interval < 1:
        errors.append(f"CHECK_INTERVAL must be at least 1 second, got {interval}")
    if not 0 <= cidr_suffix <= 32:
        errors.append(f"CIDR_SUFFIX must be between 0 and 32, got {cidr_suffix}")
    if timeout <= 0:
        errors.append(f"REQUEST_TIMEOUT_SECONDS must be positive, got {timeout}")
    parsed_url = urlparse(ip_service_url)
    if parsed_url.scheme not in ("http", "https") or not parsed_url.netloc:
        errors.append(f"IP_SERVICE_URL must be an http(s) URL, got {ip_service_url!r}")
    if log_level not in LOG_LEVELS:
        errors.append(f"LOG_LEVEL must be one of {', '.join(sorted(LOG_LEVELS))}, got {log_level}")

    if errors:
        raise ConfigError("; ".join(errors))

    return Settings(
        prefix_list_id=prefix_list_id,
        region=region,
        entry_description=description,
        check_interval=interval,
        ip_service_url=ip_service_url,
        cidr_suffix=cidr_suffix,
        once=once,
        request_timeout=timeout,
        log_level=log_level,
    )


# =============================================================================
# Main
# =============================================================================


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    try:
        settings = load_settings(argv)
    except ConfigError as e:
        logger.error(f"Configuration validation failed: {e}")
        sys.exit(1)

    logging.getLogger().setLevel(getattr(logging, settings.log_level, logging.INFO))

    try:
        allowlist_client = create_allowlist_client(settings)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    if not allowlist_client.test_connection(settings.prefix_list_id):
        logger.error(f"Cannot access prefix list {settings.prefix_list_id}. Exiting.")
        sys.exit(1)

    logger.info("Starting prefix list monitor")
    logger.info(f"Prefix List ID: {settings.prefix_list_id}")
    logger.info(f"Description: {settings.entry_description}")
    logger.info(f"Check interval: {settings.check_interval}s")
    logger.info(f"IP service: {settings.ip_service_url}")
    logger.info(f"Allowlist: {allowlist_client.name}")

    reconciler = Reconciler(
        ip_source=HTTPIPSource(timeout_seconds=settings.request_timeout),
        allowlist_client=allowlist_client,
        state=MonitorState(
            list_identifier=settings.prefix_list_id,
            entry_tag=settings.entry_description,
            address_suffix=settings.cidr_suffix,
        ),
        ip_service_url=settings.ip_service_url,
    )
    scheduler = Scheduler(reconciler)

    try:
        scheduler.run(settings.check_interval, once=settings.once)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
