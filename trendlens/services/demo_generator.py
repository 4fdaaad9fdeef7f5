"""
Demo Data Generator Service for TrendLens.

Generates realistic mock trend records for demonstrations when no platform
data has been collected yet. Output is deterministic for a given seed.

Supports multiple scenarios:
- steady: a few established categories with flat weekly volume
- novel_category: a category that only appears in the last weeks
- rapid_growth: an established category whose views multiply recently
- clustered: categories sharing hashtag vocabularies
- mixed: all of the above together
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Dict, List, Optional

from trendlens.models.schemas import Platform, TrendRecord, window_keys
from trendlens.models.time_window import TimeWindow

logger = logging.getLogger(__name__)


class DemoScenario(str, Enum):
    """Available demo scenarios."""
    STEADY = "steady"
    NOVEL_CATEGORY = "novel_category"
    RAPID_GROWTH = "rapid_growth"
    CLUSTERED = "clustered"
    MIXED = "mixed"


@dataclass
class CategoryProfile:
    """How one category behaves over the generated weeks."""
    name: str
    hashtags: List[str]
    platforms: List[Platform]
    items_per_week: int = 6
    base_views: int = 50000
    first_week: int = 0             # index of the first week with content
    boost_from_week: Optional[int] = None
    boost_factor: float = 1.0
    titles: List[str] = field(default_factory=list)


# Realistic hashtag pools for demo
DEMO_HASHTAGS = {
    "gaming": ["#Gaming", "#Gamer", "#Twitch", "#PS5", "#Xbox", "#GameplayClips"],
    "esports": ["#Esports", "#Gaming", "#Twitch", "#ProPlayer", "#Gamer", "#Tournament"],
    "music": ["#NewMusic", "#Remix", "#MusicVideo", "#Concert", "#Cover", "#Singer"],
    "dance": ["#Dance", "#Choreography", "#NewMusic", "#Remix", "#DanceChallenge", "#Cover"],
    "cooking": ["#Cooking", "#Recipe", "#FoodTok", "#HomeCooking", "#Baking", "#EasyRecipe"],
    "fitness": ["#Fitness", "#Workout", "#GymTok", "#HomeWorkout", "#Yoga", "#FitCheck"],
    "ai_tools": ["#AITools", "#ChatGPT", "#AIArt", "#Productivity", "#NoCode", "#AIVideo"],
}

ALL_PLATFORMS = [Platform.YOUTUBE, Platform.TIKTOK, Platform.X, Platform.INSTAGRAM]


def _steady_profiles() -> List[CategoryProfile]:
    return [
        CategoryProfile("Gaming", DEMO_HASHTAGS["gaming"], [Platform.YOUTUBE, Platform.TIKTOK], 8, 120000),
        CategoryProfile("Music", DEMO_HASHTAGS["music"], ALL_PLATFORMS, 7, 90000),
        CategoryProfile("Cooking", DEMO_HASHTAGS["cooking"], [Platform.YOUTUBE, Platform.INSTAGRAM], 5, 40000),
    ]


def scenario_profiles(scenario: DemoScenario, weeks: int) -> List[CategoryProfile]:
    """Category profiles making up a scenario over `weeks` weeks."""
    half = weeks // 2
    profiles = _steady_profiles()

    if scenario in (DemoScenario.NOVEL_CATEGORY, DemoScenario.MIXED):
        profiles.append(CategoryProfile(
            "AI Tools", DEMO_HASHTAGS["ai_tools"], [Platform.TIKTOK, Platform.X],
            items_per_week=4, base_views=150000, first_week=half,
        ))
    if scenario in (DemoScenario.RAPID_GROWTH, DemoScenario.MIXED):
        profiles.append(CategoryProfile(
            "Fitness", DEMO_HASHTAGS["fitness"], [Platform.TIKTOK, Platform.INSTAGRAM],
            items_per_week=4, base_views=30000, boost_from_week=half, boost_factor=4.5,
        ))
    if scenario in (DemoScenario.CLUSTERED, DemoScenario.MIXED):
        profiles.append(CategoryProfile(
            "Esports", DEMO_HASHTAGS["esports"], [Platform.YOUTUBE, Platform.X], 5, 70000,
        ))
        profiles.append(CategoryProfile(
            "Dance", DEMO_HASHTAGS["dance"], [Platform.TIKTOK, Platform.INSTAGRAM], 6, 80000,
        ))
    return profiles


class DemoDataGenerator:
    """
    Generates mock trend records for demonstration purposes.
    Records cover `weeks` consecutive ISO weeks ending with the anchor week.
    """

    def __init__(self, seed: int = 42):
        self.seed = seed

    def generate(
        self,
        scenario: str = "mixed",
        anchor: Optional[date] = None,
        weeks: int = 8
    ) -> List[TrendRecord]:
        """
        Build records for a scenario.

        Args:
            scenario: Demo scenario name
            anchor: Any day of the last generated week (defaults to today)
            weeks: Number of weeks to generate

        Returns:
            List of TrendRecord

        Raises:
            ValueError: unknown scenario or non-positive week count
        """
        demo_scenario = DemoScenario(scenario)
        if weeks < 1:
            raise ValueError("weeks must be positive")

        rng = random.Random(self.seed)
        last_week = TimeWindow.containing(anchor or date.today(), "week")
        week_windows = last_week.span(weeks).windows

        records: List[TrendRecord] = []
        for profile in scenario_profiles(demo_scenario, weeks):
            for index, window in enumerate(week_windows):
                if index < profile.first_week:
                    continue
                factor = profile.boost_factor if (
                    profile.boost_from_week is not None and index >= profile.boost_from_week
                ) else 1.0
                for item in range(profile.items_per_week):
                    records.append(self._make_record(rng, profile, window, index, item, factor))

        logger.info(f"Generated {len(records)} demo records: scenario={scenario}, weeks={weeks}")
        return records

    def _make_record(
        self,
        rng: random.Random,
        profile: CategoryProfile,
        window: TimeWindow,
        week_index: int,
        item: int,
        factor: float
    ) -> TrendRecord:
        day = window.start_date + timedelta(days=rng.randint(0, 6))
        timestamp = datetime.combine(day, time(hour=rng.randint(0, 23), minute=rng.randint(0, 59)))
        views = int(profile.base_views * factor * rng.uniform(0.8, 1.2))
        hashtags = rng.sample(profile.hashtags, k=min(3, len(profile.hashtags)))
        keys: Dict[str, int] = window_keys(timestamp)

        return TrendRecord(
            id=f"demo-{profile.name.lower().replace(' ', '-')}-{window.label}-{item}",
            platform=rng.choice(profile.platforms),
            category=profile.name,
            title=f"{profile.name} highlight #{week_index * profile.items_per_week + item + 1}",
            hashtags=hashtags,
            views=views,
            likes=int(views * rng.uniform(0.03, 0.08)),
            comments=int(views * rng.uniform(0.002, 0.01)),
            timestamp=timestamp,
            **keys,
        )
