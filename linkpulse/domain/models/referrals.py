"""Response models for the referral and deferred deep link endpoints.

Each model parses leniently: missing strings become "" (or None when the
field is optional), missing numbers become 0.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return str(value) if value is not None else ""


def _opt_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    return str(value) if value is not None else None


def _int(data: Dict[str, Any], key: str) -> int:
    try:
        return int(data.get(key) or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class CreateReferralResponse:
    referral_code: str
    referral_id: str
    referral_url: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "CreateReferralResponse":
        return cls(
            referral_code=_str(data, "referral_code"),
            referral_id=_str(data, "referral_id"),
            referral_url=_opt_str(data, "referral_url"),
        )


@dataclass
class ReferralDetails:
    referrer_id: str
    status: str
    milestone: Optional[str] = None
    milestone_history: List[Any] = field(default_factory=list)
    reward_type: Optional[str] = None
    reward_value: Optional[str] = None
    reward_claimed: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ReferralDetails":
        history = data.get("milestone_history")
        return cls(
            referrer_id=_str(data, "referrer_id"),
            status=_str(data, "status"),
            milestone=_opt_str(data, "milestone"),
            milestone_history=list(history) if isinstance(history, list) else [],
            reward_type=_opt_str(data, "reward_type"),
            reward_value=_opt_str(data, "reward_value"),
            reward_claimed=bool(data.get("reward_claimed", False)),
            created_at=_opt_str(data, "created_at"),
        )


@dataclass
class LeaderboardEntry:
    referrer_id: str
    referrer_name: Optional[str]
    total: int
    completed: int
    pending: int
    total_reward_value: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "LeaderboardEntry":
        return cls(
            referrer_id=_str(data, "referrer_id"),
            referrer_name=_opt_str(data, "referrer_name"),
            total=_int(data, "total"),
            completed=_int(data, "completed"),
            pending=_int(data, "pending"),
            total_reward_value=_opt_str(data, "total_reward_value"),
        )


@dataclass
class CompletedReferral:
    id: str
    referrer_id: str
    referred_user_id: str
    status: str
    milestone: Optional[str] = None
    completed_at: Optional[str] = None
    reward_type: Optional[str] = None
    reward_value: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "CompletedReferral":
        return cls(
            id=_str(data, "id"),
            referrer_id=_str(data, "referrer_id"),
            referred_user_id=_str(data, "referred_user_id"),
            status=_str(data, "status"),
            milestone=_opt_str(data, "milestone"),
            completed_at=_opt_str(data, "completed_at"),
            reward_type=_opt_str(data, "reward_type"),
            reward_value=_opt_str(data, "reward_value"),
        )


@dataclass
class ReferralCompletion:
    """Wraps the nested ``referral`` object returned by the complete endpoint."""
    referral: CompletedReferral

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ReferralCompletion":
        return cls(referral=CompletedReferral.from_json(data.get("referral") or {}))


@dataclass
class MilestoneReferral:
    id: str
    referral_code: str
    milestone: str
    status: str
    reward_type: Optional[str] = None
    reward_value: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "MilestoneReferral":
        return cls(
            id=_str(data, "id"),
            referral_code=_str(data, "referral_code"),
            milestone=_str(data, "milestone"),
            status=_str(data, "status"),
            reward_type=_opt_str(data, "reward_type"),
            reward_value=_opt_str(data, "reward_value"),
        )


@dataclass
class MilestoneResult:
    referral: MilestoneReferral

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "MilestoneResult":
        return cls(referral=MilestoneReferral.from_json(data.get("referral") or {}))


@dataclass
class RewardClaim:
    success: bool
    referral_code: str
    reward_claimed: bool

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RewardClaim":
        return cls(
            success=bool(data.get("success", False)),
            referral_code=_str(data, "referral_code"),
            reward_claimed=bool(data.get("reward_claimed", False)),
        )


@dataclass
class DeferredLink:
    """A deferred deep link claimed after install."""
    deep_link_path: str
    appspace_id: str
    referrer_id: Optional[str] = None
    referral_code: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "DeferredLink":
        return cls(
            deep_link_path=_str(data, "deep_link_path"),
            appspace_id=_str(data, "appspace_id"),
            referrer_id=_opt_str(data, "referrer_id"),
            referral_code=_opt_str(data, "referral_code"),
        )


@dataclass(frozen=True)
class DeviceSignals:
    """Opaque device fields used to match a deferred link to this install."""
    timezone: str
    language: str
    screen_width: int
    screen_height: int
