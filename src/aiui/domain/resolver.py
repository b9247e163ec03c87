"""Action resolution: match a goal descriptor to exactly one action.

Explicit policy (the default): an action qualifies when an id the caller
names

- is one of the goal ids the action declares it serves, or
- is the action's own id, or
- is any goal declared by the manifest, when the catalog defines exactly
  one action and that action declares no goals of its own.

Resolution fails closed: zero or several qualifying actions raise
:class:`ActionNotFoundError` carrying the candidate ids.  Ties are never
broken silently.

The keyword policy is opt-in and only consulted when the caller supplies
no ids at all.  An action qualifies when its keyword score is strictly
greater than the threshold; exactly one may qualify.

Resolution is pure and deterministic for a fixed manifest + goal.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from aiui.domain.errors import ActionNotFoundError
from aiui.domain.types import ResolutionStrategy

if TYPE_CHECKING:
    from aiui.domain.manifest import ActionSpec, ManifestSpec

DEFAULT_KEYWORD_THRESHOLD = 0.5

_TOKEN = re.compile(r"[a-z0-9]+")

# Words that carry no signal for keyword overlap.
_STOPWORDS = frozenset(
    {"a", "an", "and", "at", "by", "for", "from", "in", "of", "on", "or", "the", "to", "with"}
)


class GoalDescriptor(BaseModel):
    """What the caller wants: goal/action ids and/or a free-text description."""

    model_config = {"frozen": True}

    goal_ids: tuple[str, ...] = ()
    description: str = ""

    @classmethod
    def of(cls, *goal_ids: str, description: str = "") -> GoalDescriptor:
        return cls(goal_ids=tuple(goal_ids), description=description)

    def label(self) -> str:
        if self.goal_ids:
            return ", ".join(self.goal_ids)
        return self.description


class Resolution(BaseModel):
    """The resolved action and the goal id it was matched through."""

    model_config = {"frozen": True}

    action_id: str
    goal_id: str | None = None
    strategy: ResolutionStrategy = ResolutionStrategy.EXPLICIT
    score: float | None = Field(default=None)


def tokenize(text: str) -> set[str]:
    """Lowercased word tokens of *text* minus stopwords."""
    return {tok for tok in _TOKEN.findall(text.lower()) if tok not in _STOPWORDS}


def keyword_score(description: str, action: ActionSpec) -> float:
    """Fraction of the goal's tokens that appear in the action's title + description."""
    goal_tokens = tokenize(description)
    if not goal_tokens:
        return 0.0
    action_tokens = tokenize(f"{action.title} {action.description} {action.id.replace('_', ' ')}")
    return len(goal_tokens & action_tokens) / len(goal_tokens)


def _serves(manifest: ManifestSpec, action: ActionSpec, named: Iterable[str]) -> str | None:
    """Return the id through which *action* qualifies for *named*, if any."""
    implicit = len(manifest.actions) == 1 and not action.goals
    declared_goals = set(manifest.goal_ids())
    for goal_id in named:
        if goal_id in action.goals or goal_id == action.id:
            return goal_id
        if implicit and goal_id in declared_goals:
            return goal_id
    return None


def serving_actions(manifest: ManifestSpec, goal_id: str) -> list[str]:
    """Ids of every action that would qualify for *goal_id* on its own."""
    return [a.id for a in manifest.actions if _serves(manifest, a, (goal_id,)) is not None]


def _resolve_explicit(manifest: ManifestSpec, goal: GoalDescriptor) -> Resolution:
    matches: dict[str, str] = {}
    for action in manifest.actions:
        via = _serves(manifest, action, goal.goal_ids)
        if via is not None:
            matches[action.id] = via

    if len(matches) != 1:
        raise ActionNotFoundError(goal.label(), tuple(matches))

    action_id, via = next(iter(matches.items()))
    goal_id = via if manifest.goal(via) is not None else None
    if goal_id is None:
        action = manifest.action(action_id)
        goal_id = _default_goal_id(manifest, action)
    return Resolution(action_id=action_id, goal_id=goal_id)


def _resolve_keyword(
    manifest: ManifestSpec,
    goal: GoalDescriptor,
    threshold: float,
) -> Resolution:
    scored = {a.id: keyword_score(goal.description, a) for a in manifest.actions}
    qualifying = [aid for aid, score in scored.items() if score > threshold]
    if len(qualifying) != 1:
        raise ActionNotFoundError(goal.label(), tuple(qualifying))
    action_id = qualifying[0]
    return Resolution(
        action_id=action_id,
        goal_id=_default_goal_id(manifest, manifest.action(action_id)),
        strategy=ResolutionStrategy.KEYWORD,
        score=round(scored[action_id], 4),
    )


def _default_goal_id(manifest: ManifestSpec, action: ActionSpec | None) -> str | None:
    """The goal an action is recorded against when the caller named the action."""
    if action is None:
        return None
    if action.goals:
        return action.goals[0]
    if len(manifest.actions) == 1 and len(manifest.goals) == 1:
        return manifest.goals[0].id
    return None


def resolve_goal(
    manifest: ManifestSpec,
    goal: GoalDescriptor,
    *,
    strategy: ResolutionStrategy = ResolutionStrategy.EXPLICIT,
    keyword_threshold: float = DEFAULT_KEYWORD_THRESHOLD,
) -> Resolution:
    """Resolve *goal* and report which goal id the match went through.

    Raises:
        ActionNotFoundError: If zero or several actions qualify.
    """
    if goal.goal_ids:
        return _resolve_explicit(manifest, goal)
    if strategy == ResolutionStrategy.KEYWORD and goal.description:
        return _resolve_keyword(manifest, goal, keyword_threshold)
    raise ActionNotFoundError(goal.label())


def resolve(
    manifest: ManifestSpec,
    goal: GoalDescriptor,
    *,
    strategy: ResolutionStrategy = ResolutionStrategy.EXPLICIT,
    keyword_threshold: float = DEFAULT_KEYWORD_THRESHOLD,
) -> ActionSpec:
    """Return the single action serving *goal*.

    Raises:
        ActionNotFoundError: If zero or several actions qualify.
    """
    resolution = resolve_goal(
        manifest, goal, strategy=strategy, keyword_threshold=keyword_threshold
    )
    action = manifest.action(resolution.action_id)
    assert action is not None
    return action
