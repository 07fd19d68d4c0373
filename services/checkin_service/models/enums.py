"""Enum definitions for the check-in item table."""

import enum


class EntityType(str, enum.Enum):
    """Value of the ``t`` discriminator stored on every item."""

    HOST = "host"
    LOCATION = "location"
    ACTIVITY = "activity"
    ATHLETE = "athlete"
    PET = "pet"
    CHECK_IN = "checkin"
    PET_CHECK_IN = "pet-checkin"
    REWARD = "reward"
    REWARD_CLAIM = "reward-claim"


class RewardType(str, enum.Enum):
    GLOBAL = "global"
    HOST = "host"
    PET = "pet"


class CheckInStatus(str, enum.Enum):
    ELIGIBLE = "eligible"
    CHECKED_IN_THIS_WEEK = "checked_in_this_week"
