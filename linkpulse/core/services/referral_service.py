"""Referral Service: thin wrappers over the referral endpoints.

Each operation validates its required strings, sends one request through
the retrying executor and parses the response model.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

from linkpulse.domain.errors import Result, require_not_blank
from linkpulse.domain.models.referrals import (
    CreateReferralResponse, LeaderboardEntry, MilestoneResult,
    ReferralCompletion, ReferralDetails, RewardClaim,
)
from linkpulse.infrastructure.http.request_executor import RequestExecutor

logger = logging.getLogger(__name__)

REFERRAL_PATH = "/v1/api/referral"


class ReferralService:
    """Creates, looks up, completes and rewards referrals."""

    def __init__(self, executor: RequestExecutor):
        self.executor = executor

    async def create(
        self,
        user_id: str,
        metadata: Optional[Mapping[str, Any]] = None,
        user_name: Optional[str] = None,
    ) -> Result[CreateReferralResponse]:
        failure = require_not_blank(user_id, "user_id")
        if failure is not None:
            return Result.fail(failure)

        body: Dict[str, Any] = {"user_id": user_id}
        if metadata is not None:
            body["metadata"] = dict(metadata)
        if user_name is not None:
            body["user_name"] = user_name

        result = await self.executor.post(f"{REFERRAL_PATH}/create", body)
        if not result.is_ok:
            return Result.fail(result.failure)
        return Result.ok(CreateReferralResponse.from_json(result.value))

    async def get(self, code: str) -> Result[ReferralDetails]:
        failure = require_not_blank(code, "code")
        if failure is not None:
            return Result.fail(failure)

        result = await self.executor.get(f"{REFERRAL_PATH}/{quote(code, safe='')}")
        if not result.is_ok:
            return Result.fail(result.failure)
        return Result.ok(ReferralDetails.from_json(result.value))

    async def complete(
        self,
        code: str,
        referred_user_id: str,
        milestone: Optional[str] = None,
        referred_user_name: Optional[str] = None,
    ) -> Result[ReferralCompletion]:
        """Completes a referral when the referred user takes the qualifying action."""
        failure = require_not_blank(code, "code") or require_not_blank(referred_user_id, "referred_user_id")
        if failure is not None:
            return Result.fail(failure)

        body: Dict[str, Any] = {"referral_code": code, "referred_user_id": referred_user_id}
        if milestone is not None:
            body["milestone"] = milestone
        if referred_user_name is not None:
            body["referred_user_name"] = referred_user_name

        result = await self.executor.post(f"{REFERRAL_PATH}/complete", body)
        if not result.is_ok:
            return Result.fail(result.failure)
        return Result.ok(ReferralCompletion.from_json(result.value))

    async def milestone(self, code: str, milestone: str) -> Result[MilestoneResult]:
        failure = require_not_blank(code, "code") or require_not_blank(milestone, "milestone")
        if failure is not None:
            return Result.fail(failure)

        result = await self.executor.post(
            f"{REFERRAL_PATH}/milestone",
            {"referral_code": code, "milestone": milestone},
        )
        if not result.is_ok:
            return Result.fail(result.failure)
        return Result.ok(MilestoneResult.from_json(result.value))

    async def leaderboard(self, limit: Optional[int] = None) -> Result[List[LeaderboardEntry]]:
        """Fetches the leaderboard; ``limit`` of None uses the server default."""
        params = {"limit": str(limit)} if limit is not None else None
        result = await self.executor.get(f"{REFERRAL_PATH}/leaderboard", params)
        if not result.is_ok:
            return Result.fail(result.failure)
        raw_entries = result.value.get("leaderboard")
        if not isinstance(raw_entries, list):
            return Result.ok([])
        return Result.ok([LeaderboardEntry.from_json(raw) for raw in raw_entries if isinstance(raw, dict)])

    async def claim_reward(self, code: str) -> Result[RewardClaim]:
        failure = require_not_blank(code, "code")
        if failure is not None:
            return Result.fail(failure)

        result = await self.executor.post(f"{REFERRAL_PATH}/claim-reward", {"referral_code": code})
        if not result.is_ok:
            return Result.fail(result.failure)
        return Result.ok(RewardClaim.from_json(result.value))
