"""Render strategies keyed by work kind, and the registry that dispatches to them."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Protocol

from clipflow.orchestrator.models import RENDER_JOB_KINDS, JobKind, TaskView

_TOPIC_RE = re.compile(r"topic:([^|]+)")
_SCRIPT_RE = re.compile(r"script:(.+)")


class UnknownWorkKindError(LookupError):
    """No strategy is registered for a task's work kind."""


class StrategyRegistrationError(ValueError):
    """A strategy was registered under an invalid or duplicate kind."""


class MediaProcessingError(RuntimeError):
    """A media collaborator could not produce output for a task."""


@dataclass(slots=True)
class ShortSpec:
    topic: str
    script: str


class MediaBackend(Protocol):
    """Media transformation collaborator; one capability per render kind."""

    def synthesize_short(self, spec: ShortSpec) -> dict[str, Any]: ...

    def extract_highlights(self, source_url: str) -> dict[str, Any]: ...

    def render_clip(self, spec: dict[str, Any]) -> dict[str, Any]: ...


class RenderStrategy(Protocol):
    def run(self, task: TaskView) -> dict[str, Any]:
        """Return the output payload, or raise to fail the task."""


def parse_short_spec(keywords: str) -> ShortSpec:
    """Parse ``topic:<topic>|script:<script>`` keywords; topic defaults to ``general``."""

    topic_match = _TOPIC_RE.search(keywords)
    script_match = _SCRIPT_RE.search(keywords)
    return ShortSpec(
        topic=topic_match.group(1).strip() if topic_match else "general",
        script=script_match.group(1).strip() if script_match else "",
    )


class AiShortStrategy:
    def __init__(self, media: MediaBackend) -> None:
        self.media = media

    def run(self, task: TaskView) -> dict[str, Any]:
        spec = parse_short_spec(str(task.input.get("keywords") or ""))
        return self.media.synthesize_short(spec)


class LongFormStrategy:
    def __init__(self, media: MediaBackend) -> None:
        self.media = media

    def run(self, task: TaskView) -> dict[str, Any]:
        source_url = task.input.get("source_url")
        if not source_url:
            raise MediaProcessingError("long_form task input is missing source_url")
        return self.media.extract_highlights(str(source_url))


class RenderClipStrategy:
    def __init__(self, media: MediaBackend) -> None:
        self.media = media

    def run(self, task: TaskView) -> dict[str, Any]:
        return self.media.render_clip(dict(task.input))


class StrategyRegistry:
    """Maps render work kinds to strategies.

    Registration rejects anything that is not a render kind, so a typo is a
    startup error; resolving an unregistered kind at runtime raises
    :class:`UnknownWorkKindError`, which the processor turns into a failed task.
    """

    def __init__(self) -> None:
        self._strategies: dict[JobKind, RenderStrategy] = {}

    def register(self, kind: JobKind | str, strategy: RenderStrategy) -> None:
        try:
            job_kind = JobKind(kind)
        except ValueError as error:
            raise StrategyRegistrationError(f"Unknown work kind: {kind!r}") from error
        if job_kind not in RENDER_JOB_KINDS:
            raise StrategyRegistrationError(f"{job_kind.value} is not a render work kind.")
        if job_kind in self._strategies:
            raise StrategyRegistrationError(f"Strategy already registered for {job_kind.value}.")
        self._strategies[job_kind] = strategy

    def resolve(self, kind: str | None) -> RenderStrategy:
        try:
            job_kind = JobKind(kind)
        except ValueError as error:
            raise UnknownWorkKindError(f"Unknown job type: {kind}") from error
        strategy = self._strategies.get(job_kind)
        if strategy is None:
            raise UnknownWorkKindError(f"Unknown job type: {kind}")
        return strategy

    def kinds(self) -> tuple[JobKind, ...]:
        return tuple(sorted(self._strategies, key=lambda kind: kind.value))


def build_default_registry(media: MediaBackend) -> StrategyRegistry:
    registry = StrategyRegistry()
    registry.register(JobKind.AI_SHORT, AiShortStrategy(media))
    registry.register(JobKind.LONG_FORM, LongFormStrategy(media))
    registry.register(JobKind.RENDER_CLIP, RenderClipStrategy(media))
    return registry
