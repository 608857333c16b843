"""Activity type to activity group lookup."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

FALLBACK_GROUP = "workout"

DEFAULT_TYPE_GROUPS: Mapping[str, str] = MappingProxyType(
    {
        "Run": "running",
        "VirtualRun": "running",
        "TrailRun": "trail-running",
        "Elliptical": "elliptical",
        "StairStepper": "stairstepper",
        "VirtualRide": "indoor",
        "VirtualRow": "indoor",
        "Ride": "cycling",
        "EBikeRide": "cycling",
        "Handcycle": "cycling",
        "Velomobile": "cycling",
        "MountainBikeRide": "mountainBikeRide",
        "EMountainBikeRide": "mountainBikeRide",
        "GravelRide": "mountainBikeRide",
        "AlpineSki": "ski",
        "BackcountrySki": "ski",
        "NordicSki": "ski",
        "RollerSki": "ski",
        "Snowboard": "ski",
        "Snowshoe": "ski",
        "Hike": "hiking",
        "Walk": "walking",
        "WeightTraining": "strengthtraining",
        "StrengthTraining": "strengthtraining",
        "Crossfit": "strengthtraining",
        "HighIntensityIntervalTraining": "highIntensityIntervalTraining",
        "Yoga": "yoga",
        "Workout": "workout",
        "Swim": "swim",
        "OpenWaterSwim": "openWaterSwim",
    }
)

DEFAULT_TIME_ONLY_GROUPS = frozenset(
    {"workout", "strengthtraining", "highIntensityIntervalTraining", "yoga"}
)


@dataclass(frozen=True)
class ActivityGroups:
    """Injectable grouping of exact activity types.

    Types absent from ``type_groups`` belong to ``fallback``.
    """

    type_groups: Mapping[str, str] = field(default_factory=lambda: DEFAULT_TYPE_GROUPS)
    fallback: str = FALLBACK_GROUP
    time_only_groups: frozenset[str] = DEFAULT_TIME_ONLY_GROUPS

    def group_for(self, activity_type: str | None) -> str:
        return self.type_groups.get(activity_type or "", self.fallback)

    def is_time_only(self, activity_type: str | None) -> bool:
        """Only types explicitly mapped to a time-only group; unmapped types keep their pace."""

        group = self.type_groups.get(activity_type or "")
        return group is not None and group in self.time_only_groups

    def known_groups(self) -> list[str]:
        groups = list(dict.fromkeys(self.type_groups.values()))
        if self.fallback not in groups:
            groups.append(self.fallback)
        return groups

    def matches(self, activity_type: str | None, group: str | None) -> bool:
        """Case-insensitive group membership test; a blank group matches everything."""

        if not group or not group.strip():
            return True
        return self.group_for(activity_type).lower() == group.strip().lower()


DEFAULT_ACTIVITY_GROUPS = ActivityGroups()
