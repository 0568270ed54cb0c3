"""Helpers to compute visibility deltas between two VisibilitySets."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from barometer.models.visibility import VisibilityDelta


def compute_visibility_delta(
    pre: Optional[Mapping[str, bool]],
    post: Mapping[str, bool],
    cleared: Iterable[str] = (),
) -> VisibilityDelta:
    """Compute newly visible and newly hidden block ids.

    A missing `pre` (first evaluation) counts every block as previously
    visible, so blocks that start hidden are reported in now_hidden.
    """
    before = dict(pre) if pre is not None else {bid: True for bid in post}
    now_visible = sorted(bid for bid, vis in post.items() if vis and not before.get(bid, True))
    now_hidden = sorted(bid for bid, vis in post.items() if not vis and before.get(bid, True))
    return VisibilityDelta(now_visible=now_visible, now_hidden=now_hidden, cleared=list(cleared))


__all__ = ["compute_visibility_delta"]
