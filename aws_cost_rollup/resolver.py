"""
Account resolution: which (profile, account id) pairs a run analyzes

Resolution walks an ordered list of strategies. Each one either returns the
accounts to use or None to hand over to the next strategy:

1. profile-account map file (takes precedence in full when supplied)
2. AWS Organizations member listing
3. STS caller identity per profile
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError

from .errors import (
    MalformedAccountMapError,
    NoAccountsMatchedError,
    NoProfilesFoundError,
)
from .models import Account

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"


@dataclass(frozen=True)
class ResolutionContext:
    """Inputs shared by every resolution strategy"""

    profiles: tuple
    mapping_path: str | None = None
    caller_profile: str | None = None


def load_profile_account_map(path):
    """
    Read a profile-account map file

    Args:
        path: Path to a JSON object mapping profile name to account id

    Returns:
        dict of profile name -> account id

    Raises:
        MalformedAccountMapError: unreadable file, invalid JSON, a document
            that isn't an object, or an id that isn't a string
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise MalformedAccountMapError(
            f"Cannot read profile-account map {path}: {e}"
        ) from e

    try:
        mapping = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedAccountMapError(
            f"Profile-account map {path} is not valid JSON: {e}"
        ) from e

    if not isinstance(mapping, dict):
        raise MalformedAccountMapError(
            f"Profile-account map {path} must be a JSON object of "
            f"profile name to account id"
        )

    for profile, account_id in mapping.items():
        if not isinstance(account_id, str):
            raise MalformedAccountMapError(
                f"Profile-account map {path}: account id for profile "
                f"'{profile}' must be a string"
            )
    return mapping


class ResolutionStrategy(ABC):
    """One tier of the account resolution fallback chain"""

    name = "strategy"

    def __init__(self, client):
        self.client = client

    @abstractmethod
    def resolve(self, context):
        """
        Resolve accounts for the given context

        Args:
            context: ResolutionContext

        Returns:
            list of Account, or None to try the next strategy
        """

    def identify(self, profile):
        """Account id for a profile, None when the identity call fails"""
        try:
            return self.client.get_caller_account_id(profile)
        except (ClientError, BotoCoreError) as e:
            logger.warning(
                "⚠ Could not resolve account id for profile %s: %s", profile, e
            )
            return None


class MappingFileStrategy(ResolutionStrategy):
    """Accounts taken verbatim from a profile-account map file"""

    name = "profile-account map"

    def resolve(self, context):
        if not context.mapping_path:
            return None

        mapping = load_profile_account_map(context.mapping_path)
        known_profiles = set(context.profiles)

        accounts = []
        for profile, account_id in mapping.items():
            if profile not in known_profiles:
                logger.warning(
                    "⚠ Ignoring map entry for profile %s: profile is not configured",
                    profile,
                )
                continue
            accounts.append(Account(profile=profile, account_id=account_id))

        if not accounts:
            raise NoProfilesFoundError(
                f"Profile-account map {context.mapping_path} has no entries for "
                f"the configured profiles"
            )
        return accounts


class OrganizationStrategy(ResolutionStrategy):
    """One account per profile, named from the organization member listing"""

    name = "AWS Organizations"

    def resolve(self, context):
        caller = context.caller_profile
        if caller is None:
            return None

        try:
            members = self.client.list_organization_accounts(caller)
        except (ClientError, BotoCoreError) as e:
            logger.info(
                "Organization listing unavailable for profile %s (%s), "
                "falling back to caller identity",
                caller,
                e,
            )
            return None

        if not members:
            logger.info("Organization listing returned no accounts")
            return None

        names = {member["Id"]: member.get("Name") for member in members}
        accounts = []
        for profile in context.profiles:
            account_id = self.identify(profile)
            if account_id is not None and account_id not in names:
                logger.info(
                    "Profile %s account %s is not a member of the organization",
                    profile,
                    account_id,
                )
            accounts.append(
                Account(profile=profile, account_id=account_id, name=names.get(account_id))
            )

        unmatched = set(names) - {account.account_id for account in accounts}
        if unmatched:
            logger.debug(
                "%d organization accounts have no local profile", len(unmatched)
            )
        return accounts


class CallerIdentityStrategy(ResolutionStrategy):
    """One account per profile from its own STS identity"""

    name = "caller identity"

    def resolve(self, context):
        return [
            Account(profile=profile, account_id=self.identify(profile))
            for profile in context.profiles
        ]


class AccountResolver:
    """Determines the accounts to analyze"""

    def __init__(self, config, client, strategies=None):
        self.config = config
        self.client = client
        self.strategies = strategies or [
            MappingFileStrategy(client),
            OrganizationStrategy(client),
            CallerIdentityStrategy(client),
        ]

    def resolve(self, profiles=None, mapping_path=None, account_ids=None):
        """
        Resolve accounts to analyze

        Args:
            profiles: Profile names to use, or None for every configured profile
            mapping_path: Optional profile-account map file
            account_ids: Optional account id filter applied after resolution

        Returns:
            list of Account

        Raises:
            NoProfilesFoundError: no profiles and no mapping file, or a mapping
                file without usable entries
            NoAccountsMatchedError: the account id filter removed everything
            MalformedAccountMapError: the mapping file can't be parsed
        """
        # Repeated profile names collapse to one account
        universe = tuple(dict.fromkeys(profiles or self.client.available_profiles()))
        if not universe and not mapping_path:
            raise NoProfilesFoundError(
                "No AWS profiles found in ~/.aws/credentials or ~/.aws/config"
            )

        context = ResolutionContext(
            profiles=universe,
            mapping_path=mapping_path,
            caller_profile=self._caller_profile(universe),
        )

        accounts = []
        for strategy in self.strategies:
            resolved = strategy.resolve(context)
            if resolved is not None:
                logger.info(
                    "✓ Resolved %d accounts via %s", len(resolved), strategy.name
                )
                accounts = resolved
                break

        if not accounts:
            raise NoProfilesFoundError("No accounts could be resolved from any profile")

        if account_ids:
            wanted = set(account_ids)
            accounts = [account for account in accounts if account.account_id in wanted]
            if not accounts:
                raise NoAccountsMatchedError(
                    f"No resolved account matches account ids {sorted(wanted)}"
                )
        return accounts

    def _caller_profile(self, profiles):
        """Profile used for the organization listing"""
        if self.config.aws_profile and self.config.aws_profile in profiles:
            return self.config.aws_profile
        if DEFAULT_PROFILE in profiles:
            return DEFAULT_PROFILE
        return min(profiles) if profiles else None
