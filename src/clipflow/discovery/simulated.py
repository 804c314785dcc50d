"""Stand-in discovery collaborator until real platform APIs are wired in."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable

from clipflow.discovery.processor import DiscoveryError
from clipflow.orchestrator.models import CandidateClip

logger = logging.getLogger(__name__)

SUPPORTED_PLATFORMS = ("twitch", "youtube", "rumble")
DEFAULT_CATEGORY = "gaming"
MIN_CLIPS = 3
MAX_CLIPS = 5
MIN_VIRAL_SCORE = 70
MAX_VIRAL_SCORE = 99

CLIP_TEMPLATES: dict[str, tuple[str, ...]] = {
    "gaming": (
        "Insane clutch play in ranked",
        "World first boss kill reaction",
        "Funniest rage quit ever",
        "Pro player gets outplayed",
        "Crazy speedrun skip discovered",
    ),
    "comedy": (
        "Stand-up comedy gold moment",
        "Hilarious fail compilation",
        "Comedian roasts audience member",
        "Unexpected plot twist reaction",
        "Best improv moment of the night",
    ),
    "podcast": (
        "Mind-blowing fact revealed",
        "Guest drops bombshell",
        "Host can't stop laughing",
        "Controversial take goes viral",
        "Expert explains complex topic simply",
    ),
    "sports": (
        "Unbelievable goal from midfield",
        "Last second buzzer beater",
        "Record-breaking performance",
        "Player mic'd up moment",
        "Coach's epic halftime speech",
    ),
    "news": (
        "Breaking news moment",
        "Reporter keeps composure",
        "Interviewee walks off set",
        "Live news blooper",
        "Anchor's honest reaction",
    ),
}


class SimulatedClipDiscoverer:
    """Returns 3-5 plausible clips per search after an optional delay."""

    def __init__(
        self,
        *,
        delay_seconds: float = 0.0,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.delay_seconds = delay_seconds
        self._random = rng or random.Random()  # noqa: S311
        self._sleep = sleep

    def search(self, platform: str, query: str, category: str) -> list[CandidateClip]:
        if platform != "all" and platform not in SUPPORTED_PLATFORMS:
            raise DiscoveryError(f"Unsupported platform: {platform}")
        if self.delay_seconds > 0:
            self._sleep(self.delay_seconds)

        titles = CLIP_TEMPLATES.get(category, CLIP_TEMPLATES[DEFAULT_CATEGORY])
        actual_platform = (
            self._random.choice(SUPPORTED_PLATFORMS) if platform == "all" else platform
        )
        stamp = int(time.time() * 1000)
        count = self._random.randint(MIN_CLIPS, MAX_CLIPS)
        clips = [
            CandidateClip(
                title=f"{titles[index % len(titles)]} - {query or category}",
                source_url=f"https://{actual_platform}.example.com/clip/{stamp}-{index}",
                source_platform=actual_platform,
                viral_score=self._random.randint(MIN_VIRAL_SCORE, MAX_VIRAL_SCORE),
                duration=float(self._random.randint(15, 59)),
            )
            for index in range(count)
        ]
        logger.debug(
            "Simulated discovery produced %d clips (platform=%s category=%s)",
            len(clips),
            actual_platform,
            category,
        )
        return clips
