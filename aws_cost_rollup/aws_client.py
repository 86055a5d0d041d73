"""
AWS client for profile discovery, account identity and Cost Explorer queries
"""

import logging

import boto3
import botocore.session
from botocore.config import Config as BotoConfig

logger = logging.getLogger(__name__)


class AWSClient:
    """Handles boto3 session creation and raw AWS API calls

    Every call builds its own session for the requested profile, so concurrent
    fetch tasks never share a session or a client.
    """

    def __init__(self, config):
        self.config = config
        self.boto_config = BotoConfig(
            region_name=config.aws_region,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            # Retries for throttling are handled by the fetcher
            retries={"total_max_attempts": 1, "mode": "standard"},
        )

    def session(self, profile):
        return boto3.Session(profile_name=profile, region_name=self.config.aws_region)

    def client(self, profile, service):
        return self.session(profile).client(service, config=self.boto_config)

    def available_profiles(self):
        """Profiles configured in ~/.aws/credentials and ~/.aws/config"""
        return sorted(botocore.session.Session().available_profiles)

    def get_caller_account_id(self, profile):
        """Account id behind a profile's credentials"""
        identity = self.client(profile, "sts").get_caller_identity()
        return identity["Account"]

    def list_organization_accounts(self, profile):
        """
        List member accounts of the caller's organization

        Args:
            profile: Profile whose credentials are used for the listing

        Returns:
            list of dicts with Id, Name and Status keys
        """
        organizations = self.client(profile, "organizations")
        organizations.describe_organization()

        accounts = []
        paginator = organizations.get_paginator("list_accounts")
        for page in paginator.paginate():
            accounts.extend(page.get("Accounts", []))
        return accounts

    def get_cost_and_usage(self, profile, **params):
        """
        Run a Cost Explorer query, following NextPageToken

        Args:
            profile: Profile whose credentials are used for the query
            **params: Keyword arguments for GetCostAndUsage

        Returns:
            list of ResultsByTime entries across all pages
        """
        cost_explorer = self.client(profile, "ce")
        results = []
        request = dict(params)
        while True:
            response = cost_explorer.get_cost_and_usage(**request)
            results.extend(response.get("ResultsByTime", []))
            token = response.get("NextPageToken")
            if not token:
                break
            logger.debug("Following Cost Explorer page token for profile %s", profile)
            request["NextPageToken"] = token
        return results
